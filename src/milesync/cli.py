"""milesync CLI.

Subcommands:
  plan        -> print the desired period milestones (no network)
  sync        -> create missing milestones and reactivate closed ones
  project-id  -> resolve a project id from name + namespace

Exit codes: 0 success, 1 run failure, 2 configuration error.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import date
from pathlib import Path
from typing import Any

from milesync.config import (
    CONFIG_DEFAULT,
    ConfigError,
    SyncConfig,
    config_from_mapping,
    load_config,
)
from milesync.errors import MilesyncError, classify_error, redact
from milesync.logging import configure_logging
from milesync.models import sorted_by_title
from milesync.orchestrator import build_client, resolve_project_id, sync_milestones, write_summary
from milesync.periods import CADENCES, desired_milestones

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date {value!r} (expected YYYY-MM-DD)") from exc


def _add_common(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("--config", default=CONFIG_DEFAULT)
    sp.add_argument("--cadence", help=f"Override schedule cadence ({', '.join(CADENCES)})")
    sp.add_argument("--lookahead", type=int, help="Override number of periods to plan")
    sp.add_argument("--today", type=_parse_day, help="Reference date (default: local today)")


def _add_remote(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("--base-url", help="Override GitLab API base URL")
    sp.add_argument("--project-id", help="Override target project id")


def _build_parser() -> argparse.ArgumentParser:
    p = _FormatterArgumentParser(
        prog="milesync", description="Keep period milestones in sync on GitLab"
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors (env: MILESYNC_QUIET=1)",
    )
    p.add_argument("--json-logs", action="store_true", help="Emit structured JSON logs")
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    pp = sub.add_parser("plan", help="Print desired milestones without contacting the API")
    _add_common(pp)

    ps = sub.add_parser("sync", help="Create missing and reactivate closed milestones")
    _add_common(ps)
    _add_remote(ps)
    ps.add_argument("--dry-run", action="store_true", default=None)
    ps.add_argument("--summary-json", help="Write the run summary to this path")

    pi = sub.add_parser("project-id", help="Resolve a project id from name and namespace")
    pi.add_argument("--config", default=CONFIG_DEFAULT)
    pi.add_argument("--base-url", help="Override GitLab API base URL")
    pi.add_argument("--name", help="Project name (default: gitlab.project_name)")
    pi.add_argument("--namespace", help="Namespace path (default: gitlab.namespace)")
    return p


def prepare_config(args: argparse.Namespace) -> SyncConfig:
    """Load the config file (if any) and apply command line overrides."""
    config_path = Path(args.config)
    if config_path.exists() or args.config != CONFIG_DEFAULT:
        cfg = load_config(config_path)
    else:
        cfg = config_from_mapping({})
    if getattr(args, "cadence", None):
        cfg.cadence = args.cadence
    if getattr(args, "lookahead", None) is not None:
        cfg.lookahead = args.lookahead
    if getattr(args, "base_url", None):
        cfg.base_url = args.base_url
    if getattr(args, "project_id", None):
        cfg.project_id = args.project_id
    if getattr(args, "name", None):
        cfg.project_name = args.name
    if getattr(args, "namespace", None):
        cfg.namespace = args.namespace
    return cfg


def _cmd_plan(cfg: SyncConfig, args: argparse.Namespace) -> int:
    if isinstance(cfg.lookahead, bool) or cfg.lookahead <= 0:
        raise ConfigError(f"lookahead must be a positive integer, got {cfg.lookahead!r}")
    today = args.today or date.today()
    desired = desired_milestones(cfg.cadence, cfg.lookahead, today)
    for m in sorted_by_title(desired):
        print(f"{m.title}\t{m.due_date.isoformat()}")
    return EXIT_OK


def _cmd_sync(cfg: SyncConfig, args: argparse.Namespace) -> int:
    cfg.validate()
    client = build_client(cfg)
    summary = sync_milestones(
        cfg,
        client=client,
        today=args.today or date.today(),
        dry_run=args.dry_run,
    )
    if args.summary_json:
        write_summary(summary, args.summary_json)
    totals = summary["totals"]
    print(
        f"[sync] created={totals['created']} reactivated={totals['reactivated']}"
        + (" (dry-run)" if summary["dry_run"] else "")
    )
    return EXIT_OK


def _cmd_project_id(cfg: SyncConfig, args: argparse.Namespace) -> int:
    if not (cfg.project_name and cfg.namespace):
        raise ConfigError("--name and --namespace (or gitlab.project_name/namespace) are required")
    cfg.project_id = None
    client = build_client(cfg)
    print(resolve_project_id(cfg, client))
    return EXIT_OK


_HANDLERS = {
    "plan": _cmd_plan,
    "sync": _cmd_sync,
    "project-id": _cmd_project_id,
}


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    quiet = args.quiet or os.environ.get("MILESYNC_QUIET") == "1"
    try:
        cfg = prepare_config(args)
    except ConfigError as exc:
        print(f"[config] {exc}", file=sys.stderr)
        return EXIT_CONFIG
    logger = configure_logging(
        json_logging=args.json_logs or cfg.logging_json_enabled,
        level="WARNING" if quiet else cfg.logging_level,
    )
    handler = _HANDLERS[args.cmd]
    try:
        return handler(cfg, args)
    except ConfigError as exc:
        print(f"[config] {exc}", file=sys.stderr)
        return EXIT_CONFIG
    except MilesyncError as exc:
        info = classify_error(exc)
        message = redact(str(exc), secrets=[cfg.token or ""])
        logger.log_error(f"{args.cmd} failed", error=message, category=info.category)
        print(
            json.dumps({"error": message, "category": info.category, "transient": info.transient}),
            file=sys.stderr,
        )
        return EXIT_FAILURE


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
