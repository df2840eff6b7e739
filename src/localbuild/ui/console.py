"""Console output formatting utilities for localbuild."""

from __future__ import annotations

from typing import Optional

import click


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False, color: Optional[bool] = None):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
            color: Force colors on/off; None lets click decide from the terminal
        """
        self.debug = debug
        self.color = color

    def _echo(self, message: str = "", err: bool = False) -> None:
        click.echo(message, err=err, color=self.color)

    def _style(self, text: str, fg: str) -> str:
        if self.color is False:
            return text
        return click.style(text, fg=fg)

    def print_build_started(self, name: str) -> None:
        """Print package build start message."""
        self._echo(f":: Building '{name}'...")

    def print_step(self, name: str, step: str) -> None:
        """Print a compound step start (only when a package runs more than one step)."""
        self._echo(f":: [{name}] {step}")

    def print_completed(self, name: str) -> None:
        """Print success message."""
        self._echo(f">> {self._style('Completed', 'green')} '{name}'")

    def print_failed(self, name: str, output: str, exit_status: Optional[int] = None) -> None:
        """
        Print failure message followed by the captured output.

        Args:
            name: Package name
            output: Combined stdout/stderr of the failed process
            exit_status: Return code, negative for a signal
        """
        self._echo(f">> {self._style(f'Failed on {name!r}', 'red')}")
        if exit_status is not None:
            self._echo(f"Exit code: {exit_status}")
        if output:
            self._echo(output.rstrip("\n"))

    def print_fatal(self, name: str, error: str, hint: Optional[str] = None) -> None:
        """Print process spawn failure."""
        self._echo(f">> {self._style('Fatal error!', 'red')} '{name}'")
        self._echo(error)
        if hint:
            self._echo(f"Hint: {hint}")

    def print_missing_script(self, name: str, script: str) -> None:
        self._echo(self._style(f":: Local '{name}' does not have a '{script}' script", "red"))

    def print_warning(self, message: str) -> None:
        """Print a non-fatal diagnostic."""
        self._echo(self._style(message, "yellow"))

    def print_output(self, name: str, output: str) -> None:
        """Replay captured output of a run (verbose mode)."""
        self._echo(f"\n:: Output of '{name}'")
        self._echo(output.rstrip("\n"))

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        self._echo(f"\n{self._style('ERROR:', 'red')} {title}", err=True)
        self._echo(message, err=True)
        if details:
            for detail in details:
                self._echo(f"  {detail}", err=True)
        if suggestion:
            self._echo(f"\n{suggestion}", err=True)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            self._echo(f"Error: {exc}", err=True)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        self._echo(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            self._echo(f"[DEBUG] {message}", err=True)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
