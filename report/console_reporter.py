"""Console reporter with Rich output."""

from typing import Optional

from rich.console import Console

USAGE_LINES = [
    "    -vj\t\tvalidate json with jsonschema",
    "    -ve\t\tvalidate json with fastjsonschema",
    "    -vx\t\tvalidate xml with lxml",
    "    -pj\t\tpassthrough with json (jsonschema's decoder)",
    "    -pe\t\tpassthrough with tokens (fastjsonschema's decoder)",
    "    -nv\t\tdon't show version",
    "    -s (schema)\tJSON schema for validation purposes",
    "    -d (dtd)\tDTD document for xml validation purposes",
    "    -q\t\tquiet mode - no validation output, run only for exit code",
]


def _make_console(stderr: bool) -> Console:
    # Diagnostics are printed verbatim: no markup, emoji codes or wrapping.
    return Console(
        stderr=stderr,
        markup=False,
        emoji=False,
        highlight=False,
        soft_wrap=True,
    )


class ConsoleReporter:
    """Writes diagnostics to stdout and progress/summary lines to stderr.

    Quiet mode drops per-problem detail and progress lines. The version
    banner is dropped too. Summary, I/O and syntax diagnostics and usage
    text are always written.
    """

    def __init__(
        self,
        quiet: bool = False,
        out: Optional[Console] = None,
        err: Optional[Console] = None,
    ):
        self.quiet = quiet
        self.out = out or _make_console(stderr=False)
        self.err = err or _make_console(stderr=True)

    def banner(self, version: str, build_time: str) -> None:
        if self.quiet:
            return
        self.err.print(f"jjval (version: {version}  build: {build_time})")

    def usage(self, message: str) -> None:
        self.err.print(message)
        self.err.print("usage: jjval [-vj][-ve][-vx][-pj][-pe] [-s schema] [-d dtd] file...")
        for line in USAGE_LINES:
            self.err.print(line)

    def progress(self, message: str) -> None:
        if not self.quiet:
            self.err.print(message)

    def problem(self, text: str) -> None:
        if not self.quiet:
            self.out.print(text)

    def diagnostic(self, text: str) -> None:
        """Syntax, I/O and setup messages; never suppressed."""
        self.out.print(text, style="red")

    def summary(self, all_correct: bool) -> None:
        if all_correct:
            self.err.print("No validation issues encountered.", style="green")
        else:
            self.err.print("At least one validation issue encountered.", style="red")
