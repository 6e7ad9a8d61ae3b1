# civitdl/cli.py
from __future__ import annotations
import argparse
import logging
from typing import List, Optional

from .core import (
    CatalogClient,
    Orchestrator,
    ProgressBoard,
    Settings,
    TransferEngine,
    load_cfg,
    make_session,
    save_cfg,
    setup_logging,
)
from .core.config import apply_env
from . import ui

logger = logging.getLogger(__name__)

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="civitdl", description="Download models from Civitai")
    ap.add_argument("-i", "--ids", nargs="+", default=[], metavar="ID", help="The IDs of the models to download")
    ap.add_argument("-a", "--all", action="store_true",
                    help="Download every version of the given models, not just the latest")
    ap.add_argument("-o", "--override-id", help="The ID of the model version to download (uses the first model ID)")
    ap.add_argument("--out", help="Base directory (overrides base_directory from the config)")
    ap.add_argument("-j", "--jobs", type=int, help="Parallel downloads (overrides max_concurrent)")
    ap.add_argument("--verbose", action="store_true", help="Enable debug logging for core/network")
    ap.add_argument("--setup", action="store_true", help="Create or edit the config file interactively")
    ap.add_argument("--show-config", action="store_true", help="Print the effective config and exit")
    args = ap.parse_args(argv)
    if not (args.ids or args.setup or args.show_config):
        ap.error("No model ids provided (use -i ID [ID ...])")
    return args

def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    cfg = apply_env(load_cfg())
    settings = Settings.from_cfg(cfg)
    setup_logging(verbose=args.verbose or settings.verbose)

    if args.setup:
        path = save_cfg(ui.prompt_settings(load_cfg()))
        ui.console.print(f"[green]Saved[/] {path}")
        return 0
    if args.show_config:
        ui.show_config(cfg)
        return 0

    jobs = max(1, args.jobs) if args.jobs else settings.max_concurrent
    base = settings.base_dir(args.out)
    logger.info("Base directory: %s", base)
    logger.debug("Preference: %s / %s", settings.preference.format.value,
                 settings.preference.resource_type.value)

    session = make_session(token=settings.token or None, pool_size=max(10, jobs))
    board = ProgressBoard()
    orchestrator = Orchestrator(
        CatalogClient(session, api_key=settings.api_key or None),
        TransferEngine(session, progress=board),
        base,
        preference=settings.preference,
        max_concurrent=jobs,
    )

    ui.announce_base(base)
    try:
        with ui.live_progress(board):
            report = orchestrator.run(args.ids, all_versions=args.all, override_id=args.override_id)
    finally:
        session.close()
    ui.render_report(report)
    return 0 if report.ok else 1

if __name__ == "__main__":
    raise SystemExit(main())
