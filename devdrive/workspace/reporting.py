# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/workspace/reporting.py
"""
Human-readable summary of a run, rendered with rich.

The sink only looks at the PipelineOutcome it is handed; it never talks to the
platform. Machine-readable output goes through --json-logs instead.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..core.utils import U
from .models import (
    CleanupReport,
    Created,
    Failed,
    Mounted,
    PipelineOutcome,
    Planned,
    Rejected,
    VolumeResult,
)

EXIT_OK = 0
EXIT_REJECTED = 3


def exit_code_for(outcome: PipelineOutcome) -> int:
    if isinstance(outcome, (Created, Mounted, Planned)):
        return EXIT_OK
    if isinstance(outcome, Rejected):
        return EXIT_REJECTED
    if isinstance(outcome, Failed):
        return outcome.error.code or 1
    return 1


def detach_command(path: object) -> str:
    quoted = str(path).replace("'", "''")
    return f"Dismount-VHD -Path '{quoted}'"


def remove_command(path: object) -> str:
    quoted = str(path).replace("'", "''")
    return f"Remove-Item -LiteralPath '{quoted}'"


class ReportingSink:
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def report(self, outcome: PipelineOutcome) -> int:
        if isinstance(outcome, Created):
            self._volumes("Dev Drive created", [outcome.volume], outcome)
        elif isinstance(outcome, Mounted):
            self._mounted(outcome)
        elif isinstance(outcome, Planned):
            self._planned(outcome)
        elif isinstance(outcome, Rejected):
            self._rejected(outcome)
        elif isinstance(outcome, Failed):
            self._failed(outcome)
        else:
            self.console.print(f"[red]Unknown outcome:[/red] {escape(repr(outcome))}")
        return exit_code_for(outcome)

    # -- variants ------------------------------------------------------------

    def _volumes(self, title: str, volumes: Iterable[VolumeResult], outcome: PipelineOutcome) -> None:
        table = Table(title=title)
        table.add_column("Drive", style="cyan")
        table.add_column("Filesystem", style="yellow")
        table.add_column("Label", style="white")
        table.add_column("Size", style="green")
        for v in volumes:
            table.add_row(
                v.root or "-",
                escape(v.filesystem_name or "?"),
                escape(v.label or ""),
                U.human_bytes(v.size_bytes),
            )
        self.console.print(table)
        if outcome.resolved_path is not None:
            self.console.print(f"Image: {escape(str(outcome.resolved_path))}", soft_wrap=True)

    def _mounted(self, outcome: Mounted) -> None:
        if outcome.volumes:
            self._volumes("Dev Drive mounted", outcome.volumes, outcome)
            return
        body = f"Disk {outcome.disk_number} is attached but no lettered volume was found."
        if outcome.resolved_path is not None:
            body += f"\nImage: {escape(str(outcome.resolved_path))}"
        self.console.print(Panel(body, title="Dev Drive mounted", border_style="yellow"))

    def _planned(self, outcome: Planned) -> None:
        lines: List[str] = [f"Would {escape(outcome.action)} {escape(str(outcome.resolved_path))}"]
        if outcome.creates_parent and outcome.resolved_path is not None:
            lines.append(f"Would create directory {escape(str(outcome.resolved_path.parent))}")
        for i, step in enumerate(outcome.steps, 1):
            lines.append(f"  {i}. {escape(step)}")
        self.console.print(Panel("\n".join(lines), title="Dry run", border_style="blue"))

    def _rejected(self, outcome: Rejected) -> None:
        lines = [escape(outcome.reason)]
        if outcome.disk_number is not None:
            lines.append(f"Disk number: {outcome.disk_number}")
        lines.append("Detach it first, then run again:")
        self.console.print(Panel("\n".join(lines), title="Already attached", border_style="yellow"))
        if outcome.resolved_path is not None:
            self.console.print(
                f"  {detach_command(outcome.resolved_path)}",
                markup=False,
                highlight=False,
                soft_wrap=True,
            )

    def _failed(self, outcome: Failed) -> None:
        err = outcome.error
        lines = [f"[bold]{escape(type(err).__name__)}[/bold]: {escape(err.msg)}"]
        if outcome.resolved_path is not None:
            lines.append(f"Image: {escape(str(outcome.resolved_path))}")
        step = (err.context or {}).get("step")
        if step:
            lines.append(f"Failed step: {escape(str(step))}")
        if outcome.cleanup_performed and outcome.cleanup is not None:
            lines.extend(self._cleanup_lines(outcome.cleanup))
        elif outcome.cleanup_performed:
            lines.append("Cleanup: attempted")
        self.console.print(Panel("\n".join(lines), title="Failed", border_style="red"))

        manual = self._manual_commands(outcome)
        if manual:
            self.console.print("Finish the cleanup by hand:")
            for cmd in manual:
                self.console.print(f"  {cmd}", markup=False, highlight=False, soft_wrap=True)

    # -- helpers -------------------------------------------------------------

    @staticmethod
    def _cleanup_lines(rep: CleanupReport) -> List[str]:
        out = [
            f"Cleanup: detached={'yes' if rep.detached else 'no'} deleted={'yes' if rep.deleted else 'no'}",
        ]
        for w in rep.warnings:
            out.append(f"[yellow]warning[/yellow]: {escape(str(w))}")
        return out

    @staticmethod
    def _manual_commands(outcome: Failed) -> List[str]:
        rep = outcome.cleanup
        if rep is None or rep.complete or outcome.resolved_path is None:
            return []
        steps = {w.step for w in rep.warnings}
        cmds: List[str] = []
        if "detach" in steps or ("delete" in steps and not rep.detached):
            cmds.append(detach_command(outcome.resolved_path))
        if not rep.deleted:
            cmds.append(remove_command(outcome.resolved_path))
        return cmds
