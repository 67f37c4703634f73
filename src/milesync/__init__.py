"""milesync - keep daily/weekly/monthly milestones in sync on GitLab.

High-level public API:

from datetime import date
from milesync import load_config, sync_milestones, build_client

cfg = load_config('milesync.config.yaml')
summary = sync_milestones(cfg, client=build_client(cfg), today=date.today(), dry_run=True)
print(summary['totals'])

The CLI (``milesync`` / ``python -m milesync``) delegates to this library.
"""

from __future__ import annotations

from .config import ConfigError, SyncConfig, load_config
from .errors import (
    CollectionError,
    DecodeError,
    InvalidCadence,
    MilesyncError,
    NetworkError,
    ProjectNotFound,
    RemoteAPIError,
)
from .models import Milestone, MilestoneState, ReconciliationResult, RemoteMilestone
from .orchestrator import build_client, sync_milestones
from .pagination import fetch_all
from .periods import compute_milestones, desired_milestones
from .reconcile import apply_reconciliation, reconcile
from .repository import fetch_by_state, find_project_id

# Version constant (sync manually with pyproject)
__version__ = "0.2.0"

__all__ = [
    "CollectionError",
    "ConfigError",
    "DecodeError",
    "InvalidCadence",
    "Milestone",
    "MilestoneState",
    "MilesyncError",
    "NetworkError",
    "ProjectNotFound",
    "ReconciliationResult",
    "RemoteAPIError",
    "RemoteMilestone",
    "SyncConfig",
    "apply_reconciliation",
    "build_client",
    "compute_milestones",
    "desired_milestones",
    "fetch_all",
    "fetch_by_state",
    "find_project_id",
    "load_config",
    "reconcile",
    "sync_milestones",
    "__version__",
]
