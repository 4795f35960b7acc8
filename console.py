"""
Terminal output for gitwrap.

Progress lines go through the `gitwrap` logger and are rendered by a
RichHandler; banners, section rules and the final summary are printed
straight to the rich console.
"""
import logging
from typing import Optional

from rich.align import Align
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from models.report import RunReport

LOGGER_NAME = "gitwrap"

custom_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "green",
    "section": "bold magenta",
    "detail": "dim",
})


def close_logging():
    """Detach and close every handler on the `gitwrap` logger."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(console: Console, verbose: bool = False, log_file: Optional[str] = None) -> logging.Logger:
    """
    Route the `gitwrap` logger to `console` (and optionally to `log_file`).
    Safe to call more than once: previous handlers are replaced.
    """
    close_logging()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    logger.addHandler(RichHandler(
        console=console,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    ))
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        logger.addHandler(file_handler)
    return logger


class Reporter:
    """Human-readable progress output. Not a stable, parseable format."""

    def __init__(self, console: Optional[Console] = None, verbose: bool = False, log_file: Optional[str] = None):
        self.console = console or Console(theme=custom_theme)
        self.logger = setup_logging(self.console, verbose, log_file)

    def close(self):
        close_logging()

    def banner(self, version: str, config_file: str):
        title = Align.center(f"[section]GIT-WRAP[/section]\n{version}")
        self.console.print(Panel(title, border_style="section"))
        self.console.print(Align.center(
            f"Please make sure that the config file\n[bold]{escape(config_file)}[/bold]\nis in the working directory."
        ))

    def section(self, title: str):
        self.console.rule(f"[section]{escape(title)}[/section]")

    def info(self, message: str):
        self.logger.info(message)

    def success(self, message: str):
        self.logger.info(f"OK: {message}")

    def detail(self, message: str):
        self.logger.info(f"> {message}")

    def warning(self, message: str):
        self.logger.warning(message)

    def error(self, message: str):
        self.logger.error(message)

    def summary(self, report: RunReport):
        table = Table(title="Summary", show_header=True, header_style="bold magenta")
        table.add_column("Project")
        table.add_column("Repository")
        table.add_column("Status")
        table.add_column("Warnings")
        for p in report.projects:
            status = "[success]done[/success]" if p.finished else f"[error]failed[/error] ({escape(p.error or '')})"
            table.add_row(escape(p.project_name or "<clone root>"), escape(p.repo_url), status, str(len(p.warnings)))
        skipped = report.total_projects - len(report.projects)
        if skipped > 0:
            table.caption = f"{skipped} project(s) not attempted"
        self.console.print(table)
