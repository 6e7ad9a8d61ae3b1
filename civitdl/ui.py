#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
UI layer for civitdl

- Live progress bars, one per transfer, fed by the core ProgressBoard
- Run report table (done / skipped / failed with the stage it stopped at)
- Config setup prompts and a config viewer
"""

from __future__ import annotations
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt
from rich.table import Table
from rich import box
from rich.markup import escape
from rich.progress import (
    BarColumn, DownloadColumn, Progress, TextColumn, TimeRemainingColumn, TransferSpeedColumn
)

from .core import (
    ALREADY_EXISTS,
    COMPLETED,
    ProgressBoard,
    ProgressEvent,
    RunReport,
    config_path,
    human_size,
)
from .core.models import ModelFormat, ResourceType

console = Console()

# ────────────────────────── Progress ──────────────────────────
class ProgressView:
    """Maps board tracks onto rich tasks. Called from worker threads."""

    def __init__(self, progress: Progress):
        self.progress = progress
        self._tasks: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def __call__(self, ev: ProgressEvent) -> None:
        with self._lock:
            task_id = self._tasks.get(ev.label)
            if task_id is None:
                task_id = self.progress.add_task(escape(ev.label), total=ev.total or None)
                self._tasks[ev.label] = task_id
        self.progress.update(task_id, completed=ev.downloaded)


@contextmanager
def live_progress(board: ProgressBoard, console_: Optional[Console] = None) -> Iterator[Progress]:
    with Progress(
        TextColumn("[bold]{task.description}", justify="left"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        console=console_ or console,
        transient=False,
    ) as progress:
        view = ProgressView(progress)
        board.subscribe(view)
        try:
            yield progress
        finally:
            board.unsubscribe(view)

# ────────────────────────── Report ──────────────────────────
STATUS_STYLE = {
    COMPLETED: "[green]done[/]",
    ALREADY_EXISTS: "[yellow]exists[/]",
}

def render_report(report: RunReport, console_: Optional[Console] = None) -> None:
    out = console_ or console
    if not report.results:
        out.print("[yellow]Nothing to do.[/]")
        return

    table = Table(
        title="Downloads",
        show_lines=False,
        header_style="bold magenta",
        box=box.SIMPLE_HEAVY
    )
    table.add_column("Model", no_wrap=True)
    table.add_column("Version", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Stage", no_wrap=True)
    table.add_column("File / Error", overflow="fold")
    table.add_column("Size", no_wrap=True, justify="right")

    for r in report.results:
        if r.ok:
            detail = escape(str(r.path or r.filename or ""))
            size = human_size(r.bytes_written) if r.bytes_written else "-"
        else:
            detail = f"[red]{escape(str(r.error))}[/]"
            size = "-"
        table.add_row(
            r.model_id, r.version_id or "-",
            STATUS_STYLE.get(r.status, "[red]failed[/]"),
            r.stage, detail, size,
        )
    out.print(table)
    out.print(
        f"[bold]{len(report.completed)}[/] downloaded · "
        f"[bold]{len(report.skipped)}[/] already present · "
        f"[bold]{len(report.failed)}[/] failed"
    )

# ────────────────────────── Config ──────────────────────────
SECRET_KEYS = ("api_key", "token")

def _mask(v: Any) -> str:
    s = str(v or "")
    return f"{s[:4]}…" if len(s) > 4 else ("set" if s else "")

def show_config(cfg: Dict[str, Any], console_: Optional[Console] = None) -> None:
    out = console_ or console
    table = Table(title=f"Config: {config_path()}", header_style="bold magenta", box=box.SIMPLE_HEAVY)
    table.add_column("Key", no_wrap=True)
    table.add_column("Value", overflow="fold")
    for key in sorted(cfg):
        val = _mask(cfg[key]) if key in SECRET_KEYS else str(cfg[key])
        table.add_row(key, val)
    out.print(table)

def prompt_settings(existing: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    console.print(Panel.fit("civitdl setup", border_style="cyan"))
    cfg = dict(existing or {})
    cfg["base_directory"] = Prompt.ask(
        "Web UI folder (holds models/ and embeddings/)", default=cfg.get("base_directory", "")
    ).strip()
    cfg["fallback_directory"] = Prompt.ask(
        "Fallback folder if that one is missing", default=cfg.get("fallback_directory", "")
    ).strip()
    cfg["model_format"] = Prompt.ask(
        "Preferred format",
        choices=[f.value for f in ModelFormat if f is not ModelFormat.UNKNOWN],
        default=cfg.get("model_format") or ModelFormat.SAFETENSOR.value,
    )
    cfg["resource_type"] = Prompt.ask(
        "Preferred file type",
        choices=[t.value for t in ResourceType if t is not ResourceType.UNKNOWN],
        default=cfg.get("resource_type") or ResourceType.PRUNED_MODEL.value,
    )
    cfg["token"] = Prompt.ask("Session token (blank for none)", default=cfg.get("token", ""), password=True).strip()
    cfg["api_key"] = Prompt.ask("API key (blank for none)", default=cfg.get("api_key", ""), password=True).strip()
    cfg["max_concurrent"] = IntPrompt.ask("Parallel downloads", default=int(cfg.get("max_concurrent") or 4))
    return cfg

def announce_base(base: Path) -> None:
    console.print(Panel.fit(f"Saving under: [bold]{escape(str(base))}[/]", border_style="magenta"))
