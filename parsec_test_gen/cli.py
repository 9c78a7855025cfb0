"""Command-line interface for generating and checking fixture suites.

Usage::

    parsec-test-gen list
    parsec-test-gen show list_clients
    parsec-test-gen generate --output-dir testdata
    parsec-test-gen --auth-type direct --app-name root generate -k list_clients
    parsec-test-gen verify testdata/list_clients.json --format table

"""

from __future__ import annotations

import importlib.metadata
import json
import logging
import sys
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Annotated

import typer

from parsec_test_gen.errors import ParsecTestGenError
from parsec_test_gen.fixtures import TestSuite, load_suite, suite_to_json, write_suite
from parsec_test_gen.suites import OperationKind, build_suite, list_operation_kinds
from parsec_test_gen.verify import VerificationReport, verify_suite
from parsec_test_gen.wire import DEFAULT_ENVELOPE, EnvelopeOptions

_logger = logging.getLogger("parsec_test_gen.cli")

# ---------------------------------------------------------------------------
# Option enums
# ---------------------------------------------------------------------------


class OutputFormat(StrEnum):
    """Output format for the verify command."""

    auto = "auto"
    json = "json"
    table = "table"


class LogLevel(StrEnum):
    """Logging level for parsec_test_gen loggers."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogFormat(StrEnum):
    """Stderr log record format."""

    text = "text"
    json = "json"


class AuthChoice(StrEnum):
    """Authentication written into request envelopes."""

    no_auth = "no_auth"
    direct = "direct"


# ---------------------------------------------------------------------------
# Known loggers registry
# ---------------------------------------------------------------------------

_KNOWN_LOGGERS: tuple[tuple[str, str, str], ...] = (
    ("parsec_test_gen", "Root logger for all parsec-test-gen output", "Enable to see all logging"),
    ("parsec_test_gen.cli", "Command lifecycle", "See which files were written"),
    ("parsec_test_gen.suites", "One record per suite built", "Check which suites were generated"),
    ("parsec_test_gen.verify", "Failed fixture checks", "Debug fixtures rejected by verify"),
    ("parsec_test_gen.wire.request", "Request envelope encode/decode", "Debug request header or body bytes"),
    ("parsec_test_gen.wire.response", "Response envelope encode/decode", "Debug response status or body bytes"),
)

_KNOWN_LOGGER_NAMES: frozenset[str] = frozenset(name for name, _, _ in _KNOWN_LOGGERS)

# ---------------------------------------------------------------------------
# CLI config
# ---------------------------------------------------------------------------


@dataclass
class _CliConfig:
    """Holds resolved global options."""

    envelope: EnvelopeOptions = DEFAULT_ENVELOPE


app = typer.Typer(
    name="parsec-test-gen",
    help="Generate Parsec wire-protocol test fixtures.",
    add_completion=False,
    no_args_is_help=True,
)


class _CliLogHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Stderr handler installed by the CLI; at most one per logger."""


def _configure_logging(level: LogLevel | None, log_format: LogFormat, targets: list[str]) -> None:
    """Attach a stderr handler to the target loggers at the requested level.

    A handler installed by an earlier invocation in the same process is
    replaced rather than duplicated.
    """
    if level is None:
        if targets:
            sys.stderr.write("Warning: --log-logger has no effect without --log-level or --debug\n")
            sys.stderr.flush()
        return
    handler = _CliLogHandler(sys.stderr)
    if log_format == LogFormat.json:
        from parsec_test_gen.logging_utils import ParsecJsonFormatter

        handler.setFormatter(ParsecJsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(name)-30s %(levelname)-5s %(message)s"))

    for name in targets or ["parsec_test_gen"]:
        if name not in _KNOWN_LOGGER_NAMES:
            sys.stderr.write(f"Warning: unknown logger '{name}'\n")
            sys.stderr.flush()
        logger = logging.getLogger(name)
        logger.setLevel(level.value)
        for existing in [h for h in logger.handlers if isinstance(h, _CliLogHandler)]:
            logger.removeHandler(existing)
        logger.addHandler(handler)


def _version_callback(value: bool) -> None:
    if not value:
        return
    try:
        version = importlib.metadata.version("parsec-test-gen")
    except importlib.metadata.PackageNotFoundError:
        version = "unknown"
    typer.echo(f"parsec-test-gen {version}")
    raise typer.Exit()


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def _main(
    ctx: typer.Context,
    auth_type: Annotated[
        AuthChoice, typer.Option("--auth-type", help="Authentication written into request envelopes")
    ] = AuthChoice.no_auth,
    app_name: Annotated[str | None, typer.Option("--app-name", help="Application name for direct auth")] = None,
    log_level: Annotated[
        LogLevel | None,
        typer.Option("--log-level", envvar="PARSEC_TEST_GEN_LOG_LEVEL", help="Logging level for parsec_test_gen"),
    ] = None,
    log_format: Annotated[LogFormat, typer.Option("--log-format", help="Stderr log format")] = LogFormat.text,
    debug: Annotated[bool, typer.Option("--debug", help="Enable DEBUG on all parsec_test_gen loggers")] = False,
    log_logger: Annotated[
        list[str] | None, typer.Option("--log-logger", help="Target specific logger(s)", show_default=False)
    ] = None,
    version: Annotated[
        bool,
        typer.Option("--version", "-V", callback=_version_callback, is_eager=True, help="Show version and exit"),
    ] = False,
) -> None:
    """Configure envelope and logging options."""
    if auth_type == AuthChoice.direct and not app_name:
        raise typer.BadParameter("--auth-type direct requires --app-name")
    if app_name and auth_type != AuthChoice.direct:
        raise typer.BadParameter("--app-name is only valid with --auth-type direct")
    _configure_logging(LogLevel.DEBUG if debug else log_level, log_format, log_logger or [])
    envelope = EnvelopeOptions.direct(app_name) if app_name else DEFAULT_ENVELOPE
    ctx.obj = _CliConfig(envelope=envelope)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build(kind: str, config: _CliConfig) -> TestSuite:
    """Build one suite, exiting with status 2 on failure."""
    try:
        return build_suite(kind, config.envelope)
    except ParsecTestGenError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from None


def _json_indent(indent: int) -> int | None:
    return indent if indent > 0 else None


def _format_table(reports: list[tuple[Path, VerificationReport]]) -> str:
    """Format verification results as a human-readable table."""
    passed = sum(r.passed for _, r in reports)
    failed = sum(r.failed for _, r in reports)
    lines: list[str] = [f"parsec-test-gen verify: {passed} passed, {failed} failed", ""]
    for path, report in reports:
        lines.append(f"{path} (op_code 0x{report.op_code:04x})")
        for r in report.results:
            status = "PASS" if r.passed else "FAIL"
            lines.append(f"  {r.name:<45s} {status:>4s}")
            if r.error:
                lines.append(f"    {r.error}")
    return "\n".join(lines)


def _format_json(reports: list[tuple[Path, VerificationReport]]) -> str:
    """Format verification results as JSON."""
    data: dict[str, object] = {
        "total": sum(r.total for _, r in reports),
        "passed": sum(r.passed for _, r in reports),
        "failed": sum(r.failed for _, r in reports),
        "suites": [
            {
                "path": str(path),
                "op_code": report.op_code,
                "results": [
                    {"name": r.name, "category": r.category, "passed": r.passed, "error": r.error}
                    for r in report.results
                ],
            }
            for path, report in reports
        ],
    }
    return json.dumps(data, indent=2)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("list")
def list_kinds() -> None:
    """List operation kinds that have a fixture suite."""
    for name in list_operation_kinds():
        typer.echo(f"{name}  0x{OperationKind(name).opcode:04x}")


@app.command()
def show(
    ctx: typer.Context,
    kind: Annotated[str, typer.Argument(help="Operation kind, e.g. list_clients")],
    indent: Annotated[int, typer.Option("--indent", help="JSON indent, 0 for compact")] = 2,
) -> None:
    """Print one suite document to stdout."""
    suite = _build(kind, ctx.obj)
    typer.echo(suite_to_json(suite, indent=_json_indent(indent)))


@app.command()
def generate(
    ctx: typer.Context,
    output_dir: Annotated[
        Path,
        typer.Option(
            "--output-dir",
            "-o",
            envvar="PARSEC_TEST_GEN_OUTPUT_DIR",
            file_okay=False,
            help="Directory receiving <kind>.json files",
        ),
    ] = Path("testdata"),
    operations: Annotated[
        list[str] | None,
        typer.Option("--operation", "-k", help="Operation kind to generate (repeatable, default all)"),
    ] = None,
    indent: Annotated[int, typer.Option("--indent", help="JSON indent, 0 for compact")] = 2,
) -> None:
    """Write one suite document per operation kind."""
    config: _CliConfig = ctx.obj
    kinds = operations or list_operation_kinds()
    # Every suite is built before any file is written.
    suites: list[tuple[OperationKind, TestSuite]] = []
    for kind in kinds:
        suite = _build(kind, config)
        suites.append((OperationKind(kind), suite))
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        for kind, suite in suites:
            path = output_dir / f"{kind.value}.json"
            write_suite(suite, path, indent=_json_indent(indent))
            _logger.info("Wrote %s", path, extra={"path": str(path), "operation_kind": kind.value})
            typer.echo(str(path))
    except OSError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from None


@app.command()
def loggers(
    fmt: Annotated[OutputFormat, typer.Option("--format", "-f", help="Output format")] = OutputFormat.auto,
) -> None:
    """List the loggers that --log-logger accepts."""
    if fmt == OutputFormat.auto:
        fmt = OutputFormat.table if sys.stdout.isatty() else OutputFormat.json
    if fmt == OutputFormat.json:
        entries = [{"name": n, "description": d, "scenario": s} for n, d, s in _KNOWN_LOGGERS]
        typer.echo(json.dumps(entries, indent=2))
        return
    width = max(len(name) for name, _, _ in _KNOWN_LOGGERS)
    typer.echo(f"{'name':<{width}}  description")
    for name, description, scenario in _KNOWN_LOGGERS:
        typer.echo(f"{name:<{width}}  {description} ({scenario})")


@app.command()
def verify(
    paths: Annotated[list[Path], typer.Argument(help="Suite documents to check", dir_okay=False)],
    fmt: Annotated[OutputFormat, typer.Option("--format", "-f", help="Output format")] = OutputFormat.auto,
) -> None:
    """Decode every fixture in the given suite documents and check it."""
    reports: list[tuple[Path, VerificationReport]] = []
    for path in paths:
        try:
            suite = load_suite(path)
        except (OSError, ParsecTestGenError) as e:
            typer.echo(f"Error: {path}: {e}", err=True)
            raise typer.Exit(2) from None
        reports.append((path, verify_suite(suite)))

    if fmt == OutputFormat.auto:
        fmt = OutputFormat.table if sys.stdout.isatty() else OutputFormat.json
    typer.echo(_format_json(reports) if fmt == OutputFormat.json else _format_table(reports))
    if not all(report.success for _, report in reports):
        raise typer.Exit(1)
