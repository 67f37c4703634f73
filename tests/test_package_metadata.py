from __future__ import annotations

from importlib import import_module

import pytest


def test_milesync_dunder_all_exports() -> None:
    module = import_module("milesync")
    exported = set(module.__all__)
    expected = {
        "load_config",
        "SyncConfig",
        "compute_milestones",
        "fetch_all",
        "fetch_by_state",
        "reconcile",
        "sync_milestones",
        "__version__",
    }
    assert expected <= exported


@pytest.mark.parametrize(
    "attribute, expected_type",
    [
        ("load_config", "function"),
        ("SyncConfig", "type"),
        ("Milestone", "type"),
        ("RemoteMilestone", "type"),
        ("CollectionError", "type"),
    ],
)
def test_public_attributes(attribute: str, expected_type: str) -> None:
    module = import_module("milesync")
    value = getattr(module, attribute)
    if expected_type == "function":
        assert callable(value)
    else:
        assert isinstance(value, type)
