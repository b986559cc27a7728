"""
Progress tracking and summary utilities for blog operations.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
import colorlog

from blogwire.utils.error_handler import ErrorType


@dataclass
class OperationResult:
    """Represents the outcome of one blog operation."""
    title: str
    dialect: str
    action: str  # 'created', 'modified', 'fetched', 'removed', 'uploaded', 'failed'
    success: bool
    error_message: Optional[str] = None
    error_type: Optional[ErrorType] = None
    object_id: Optional[str] = None
    url: Optional[str] = None


@dataclass
class ProgressTracker:
    """Records the notifications of one or more clients and summarises them."""

    console: Console = field(default_factory=Console)
    results: List[OperationResult] = field(default_factory=list)

    def setup_colored_logging(self, level: int = logging.INFO) -> None:
        """Route root logging through a single colored console handler."""
        formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(levelname)-8s%(reset)s %(blue)s%(name)s%(reset)s: %(message)s",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )
        handler = colorlog.StreamHandler()
        handler.setFormatter(formatter)

        root = logging.getLogger()
        root.handlers[:] = [handler]
        root.setLevel(level)

    def add_result(self, result: OperationResult) -> None:
        """Add an operation result to tracking."""
        self.results.append(result)

    def attach(self, client: Any) -> None:
        """Record every terminal notification and error the client emits."""
        dialect = client.interface_name

        def succeeded(action: str):
            def record(*args: Any) -> None:
                obj = args[-1]
                self.add_result(
                    OperationResult(
                        title=getattr(obj, "title", "") or getattr(obj, "name", ""),
                        dialect=dialect,
                        action=action,
                        success=True,
                        object_id=getattr(obj, "post_id", None) or getattr(obj, "comment_id", None),
                        url=getattr(obj, "url", None) or getattr(obj, "link", None),
                    )
                )
            return record

        def failed(error_type: ErrorType, message: str, *objects: Any) -> None:
            obj = objects[-1] if objects else None
            title = (getattr(obj, "title", "") or getattr(obj, "name", "")) if obj is not None else ""
            self.add_result(
                OperationResult(
                    title=title or "(no object)",
                    dialect=dialect,
                    action="failed",
                    success=False,
                    error_message=message,
                    error_type=error_type,
                )
            )

        client.created_post.connect(succeeded("created"))
        client.modified_post.connect(succeeded("modified"))
        client.fetched_post.connect(succeeded("fetched"))
        client.removed_post.connect(succeeded("removed"))
        client.created_media.connect(succeeded("uploaded"))
        client.created_comment.connect(succeeded("created"))
        client.removed_comment.connect(succeeded("removed"))
        for signal in (client.error, client.error_post, client.error_media, client.error_comment):
            signal.connect(failed)

    def print_summary(self) -> None:
        """Print a summary table of all recorded operations."""
        if not self.results:
            self.console.print("[yellow]No operations were performed.[/yellow]")
            return

        successful = [r for r in self.results if r.success]
        failed = [r for r in self.results if not r.success]

        stats_table = Table(title="Operation Summary", show_header=True, header_style="bold magenta")
        stats_table.add_column("Category", style="cyan", no_wrap=True)
        stats_table.add_column("Count", justify="right", style="green")

        for action in ("created", "modified", "fetched", "removed", "uploaded"):
            count = len([r for r in successful if r.action == action])
            if count:
                stats_table.add_row(action.capitalize(), str(count))
        stats_table.add_row("Failed", str(len(failed)))
        stats_table.add_row("Total Operations", str(len(self.results)))

        self.console.print(stats_table)
        self.console.print()

        if successful:
            self._print_results_table("Completed Operations", successful, "green")

        if failed:
            self._print_results_table("Failed Operations", failed, "red", show_errors=True)

        if failed:
            status_color = "red"
            status_text = f"Completed with {len(failed)} failures"
        else:
            status_color = "green"
            status_text = "All operations completed successfully"

        self.console.print(
            Panel(
                f"[{status_color}]{status_text}[/{status_color}]",
                title="Final Status",
                border_style=status_color
            )
        )

    def _print_results_table(
        self,
        title: str,
        results: List[OperationResult],
        color: str,
        show_errors: bool = False
    ) -> None:
        table = Table(title=title, show_header=True, header_style=f"bold {color}")
        table.add_column("Title", style="white", no_wrap=False, max_width=40)
        table.add_column("Dialect", style="cyan", no_wrap=True)
        table.add_column("Action", style=color, no_wrap=True)

        if show_errors:
            table.add_column("Error", style="red", no_wrap=False, max_width=50)
        else:
            table.add_column("Details", style="dim", no_wrap=False, max_width=35)

        for result in results:
            if show_errors:
                kind = result.error_type.value if result.error_type else "Other"
                detail = f"{kind}: {result.error_message or 'Unknown error'}"
            else:
                detail = result.url or result.object_id or "-"
            table.add_row(result.title, result.dialect, result.action, detail)

        self.console.print(table)
        self.console.print()

    def get_dialect_summary(self) -> Dict[str, Dict[str, int]]:
        """Get summary statistics by dialect."""
        summary: Dict[str, Dict[str, int]] = {}

        for result in self.results:
            counts = summary.setdefault(
                result.dialect, {'total': 0, 'successful': 0, 'failed': 0}
            )
            counts['total'] += 1
            if result.success:
                counts['successful'] += 1
            else:
                counts['failed'] += 1

        return summary
