"""Rendering helpers for ``modsplit`` command output."""

from __future__ import annotations

from enum import StrEnum
import json
import traceback

import typer

from modsplit.extraction import (
    ExtractionRun,
    FileModule,
    ImportStyle,
    ModuleStatus,
    render_import,
)

__all__ = [
    "OutputFormat",
    "emit_failure",
    "emit_imports",
    "emit_json",
    "emit_run",
    "emit_summary",
]


class OutputFormat(StrEnum):
    """Result formats accepted by ``modsplit extract --format``."""

    SUMMARY = "summary"
    JSON = "json"
    ESM = "esm"
    CJS = "cjs"


_STATUS_COLORS = {
    ModuleStatus.DONE: typer.colors.GREEN,
    ModuleStatus.FAILED: typer.colors.RED,
}


def _module_line(module: FileModule) -> str:
    return (
        f"{module.path} [{module.status.value}] "
        f"imports={len(module.imports)} exports={len(module.exports)} "
        f"segments={len(module.segments)}"
    )


def emit_summary(run: ExtractionRun) -> None:
    """Print one block per module followed by the run totals."""

    for module in run.modules.values():
        typer.secho(
            _module_line(module),
            fg=_STATUS_COLORS.get(module.status),
            bold=True,
        )
        for record in module.imports:
            line = record.location.line if record.location else "?"
            typer.echo(
                f"  import {record.kind.value} {record.specifier} "
                f"(line {line})"
            )
        for record in module.exports:
            typer.echo(f"  export {record.kind.value} {record.exported}")
        for diagnostic in module.diagnostics:
            typer.secho(f"  ! {diagnostic}", fg=typer.colors.YELLOW)

    metrics = run.metrics
    typer.secho(
        (
            f"Processed {metrics.files_processed} file(s), "
            f"{metrics.files_failed} failed: {metrics.imports} import(s), "
            f"{metrics.exports} export(s)"
        ),
        fg=typer.colors.GREEN if run.ok else typer.colors.YELLOW,
    )


def emit_json(run: ExtractionRun) -> None:
    typer.echo(json.dumps(run.to_mapping(), indent=2, sort_keys=True))


def emit_imports(run: ExtractionRun, style: ImportStyle) -> None:
    """Print every import of every module rendered in ``style``."""

    for module in run.modules.values():
        if not module.imports:
            continue
        typer.echo(f"// {module.path}")
        for record in module.imports:
            typer.echo(render_import(record, style))


def emit_run(run: ExtractionRun, output_format: OutputFormat) -> None:
    output_format = OutputFormat(output_format)
    if output_format is OutputFormat.SUMMARY:
        emit_summary(run)
    elif output_format is OutputFormat.JSON:
        emit_json(run)
    elif output_format is OutputFormat.ESM:
        emit_imports(run, ImportStyle.ESM)
    elif output_format is OutputFormat.CJS:
        emit_imports(run, ImportStyle.CJS)
    else:  # pragma: no cover - every OutputFormat is handled above
        raise AssertionError(f"Unhandled output format: {output_format!r}")


def emit_failure(exc: BaseException) -> None:
    """Print ``FAIL: <message>`` and the traceback to standard output."""

    typer.echo(f"FAIL: {exc}")
    typer.echo(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        nl=False,
    )
