#!/usr/bin/env python3
"""
jjval - JSON/XML document validator CLI

Checks a batch of files with one or more validation engines and exits with
a single aggregated status:
-vj: JSON Schema validation with jsonschema (streaming problem reporting)
-ve: JSON Schema validation with fastjsonschema (first violation, as JSON)
-vx: XML well-formedness, plus DTD validation when the DTD given with -d
     matches the document's DTD reference
-pj: JSON passthrough with the json decoder (syntax only)
-pe: JSON passthrough by token scan (syntax only)

Usage:
    python jjval.py -vj -s schema.json a.json b.json
    python jjval.py -vx -d book.dtd chapter1.xml chapter2.xml
    python jjval.py -q -pj -pe data.json
"""

import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import List, Optional, Tuple

import click

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from config import Config
from report.console_reporter import ConsoleReporter
from runner import ExitCode, Orchestrator

__version__ = "1.0.5"


def get_version() -> str:
    """Installed package version, or the source version when not installed."""
    try:
        return version("jjval")
    except PackageNotFoundError:
        return __version__


def configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


@click.command(context_settings={"help_option_names": ["--help"]})
@click.argument("files", nargs=-1)
@click.option("-vj", "validate_jsonschema", is_flag=True, help="Validate JSON with jsonschema")
@click.option("-ve", "validate_fastjsonschema", is_flag=True, help="Validate JSON with fastjsonschema")
@click.option("-vx", "validate_xml", is_flag=True, help="Validate XML with lxml")
@click.option("-pj", "passthrough_json", is_flag=True, help="Passthrough with the json decoder")
@click.option("-pe", "passthrough_tokens", is_flag=True, help="Passthrough with the token scanner")
@click.option("-s", "schema_path", metavar="SCHEMA", help="JSON schema for validation purposes")
@click.option("-d", "dtd_path", metavar="DTD", help="DTD document for XML validation purposes")
@click.option("-q", "quiet", is_flag=True, help="Quiet mode: no validation output, exit code only")
@click.option("-nv", "no_version", is_flag=True, help="Don't show version")
def cli(
    files: Tuple[str, ...],
    validate_jsonschema: bool,
    validate_fastjsonschema: bool,
    validate_xml: bool,
    passthrough_json: bool,
    passthrough_tokens: bool,
    schema_path: Optional[str],
    dtd_path: Optional[str],
    quiet: bool,
    no_version: bool,
) -> int:
    """
    Validate JSON and XML files.

    FILES: one or more documents to check.

    Examples:

        jjval -vj -s schema.json good.json bad.json

        jjval -ve -pj -s schema.json data.json

        jjval -vx -d book.dtd a.xml b.xml
    """
    config = Config(
        validate_jsonschema=validate_jsonschema,
        validate_fastjsonschema=validate_fastjsonschema,
        validate_xml=validate_xml,
        passthrough_json=passthrough_json,
        passthrough_tokens=passthrough_tokens,
        schema_path=schema_path,
        dtd_path=dtd_path,
        quiet=quiet,
        show_version=not no_version,
    )
    configure_logging(config.log_level)

    reporter = ConsoleReporter(quiet=config.quiet)
    if config.show_version:
        reporter.banner(get_version(), config.build_time)

    return int(Orchestrator(config, reporter).validate(list(files)))


def run(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and return the exit code instead of exiting."""
    try:
        return cli.main(args=argv, prog_name="jjval", standalone_mode=False)
    except click.ClickException as e:
        e.show()
        return int(ExitCode.USAGE)
    except click.Abort:
        click.echo("Aborted!", err=True)
        return int(ExitCode.USAGE)


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
