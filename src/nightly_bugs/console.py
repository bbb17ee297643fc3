"""Terminal output for the CLI.

Progress goes to stdout, diagnostics to stderr. Whether either stream
gets colors is decided once, when the Reporter is created: rich checks
for a terminal (and honors NO_COLOR / FORCE_COLOR) per console.
"""

from __future__ import annotations

from rich.console import Console

RULE_WIDTH = 70


def _plain_console(stderr: bool = False) -> Console:
    # markup off: bug summaries and URLs may contain square brackets
    return Console(stderr=stderr, highlight=False, markup=False, soft_wrap=True)


class Reporter:
    """Prints progress and errors for one run.

    Usage:
        reporter = Reporter()
        reporter.line("Done.", style="cyan")
        reporter.error("Error: hg.mozilla.org returned HTTP 500")
    """

    def __init__(self, out: Console | None = None, err: Console | None = None) -> None:
        self.out = out or _plain_console()
        self.err = err or _plain_console(stderr=True)

    def line(self, text: str = "", style: str | None = None) -> None:
        self.out.print(text, style=style)

    def rule(self) -> None:
        self.out.print("-" * RULE_WIDTH)

    def error(self, text: str, style: str | None = "red") -> None:
        self.err.print(text, style=style)
