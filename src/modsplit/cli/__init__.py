"""Command-line interface primitives for :mod:`modsplit`.

This module exposes the Typer application behind the ``modsplit`` console
script and wires the ``extract``, ``rewrite`` and ``config`` commands into the
extraction service.

Example:
    >>> import typer
    >>> from modsplit.cli import create_app
    >>> app = create_app()
    >>> isinstance(app, typer.Typer)
    True
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List

import typer

from modsplit.cli.output import OutputFormat, emit_failure, emit_run
from modsplit.core.config import (
    AppConfig,
    BalanceFailurePolicy,
    env_overrides,
    load_config,
    load_packaged_defaults,
    load_user_config,
    render_config,
)
from modsplit.core.logging import configure_logging, get_logger
from modsplit.extraction import (
    ExtractionError,
    ExtractionService,
    ImportStyle,
    ModuleStatus,
    normalize_path,
    rewrite_module,
)

_app_help = (
    "Extract import/export statements from JavaScript modules."
    "\n\n"
    "Use `modsplit extract FILE...` to follow a module graph and report what "
    "each file imports and exports."
)


def _load_app_config(
    *,
    config_path: Path | None = None,
    log_level: str | None = None,
    extractor_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Resolve configuration from defaults, ``--config``, env and flags."""

    user_config = load_user_config(config_path) if config_path else None
    cli_overrides: dict[str, Any] = {}
    if log_level:
        cli_overrides["log_level"] = log_level
    if extractor_overrides:
        cli_overrides["extractor"] = extractor_overrides
    return load_config(
        defaults=load_packaged_defaults(),
        user_config=user_config,
        env_config=env_overrides(),
        cli_overrides=cli_overrides,
    )


def _build_service(config: AppConfig, *, command: str) -> ExtractionService:
    level = "DEBUG" if config.extractor.trace_tokens else config.log_level
    configure_logging(level=level, log_dir=config.log_dir)
    logger = get_logger(__name__, command=command)
    return ExtractionService(
        settings=config.extractor,
        logger=logger.bind(component="extraction-service"),
    )


_CONFIG_OPTION_HELP = "Read settings from this TOML file."
_LOG_LEVEL_HELP = "Override the logging level (DEBUG/INFO/WARNING/ERROR)."
_LANG_HELP = "Force a token source by name or extension (e.g. js, mjs)."


def create_app() -> "typer.Typer":
    """Return the Typer application powering the ``modsplit`` CLI.

    Example:
        >>> from typer.testing import CliRunner
        >>> result = CliRunner().invoke(create_app(), ["extract", "--help"])
        >>> result.exit_code
        0
    """

    app = typer.Typer(
        help=_app_help,
        no_args_is_help=True,
        rich_markup_mode="rich",
        invoke_without_command=False,
        cls=typer.core.TyperGroup,
    )

    @app.callback()
    def main_callback() -> None:
        """Top-level CLI callback ensuring subcommands are dispatched."""

        return None

    @app.command(
        "extract",
        help="Extract imports/exports from FILES and every module they load.",
    )
    def extract_command(  # noqa: PLR0913 - CLI surface area intentionally explicit
        files: List[Path] | None = typer.Argument(
            None,
            metavar="[FILE]...",
            help="Entry files (defaults to the configured default entry).",
        ),
        language: str | None = typer.Option(
            None,
            "--lang",
            "-L",
            help=_LANG_HELP,
        ),
        trace: bool = typer.Option(
            False,
            "--trace",
            "-x",
            help="Log every scanned token at DEBUG level.",
        ),
        output_format: OutputFormat = typer.Option(
            OutputFormat.SUMMARY,
            "--format",
            "-f",
            case_sensitive=False,
            help="Result format: summary, json, esm or cjs.",
        ),
        balance_failure: BalanceFailurePolicy | None = typer.Option(
            None,
            "--balance-failure",
            case_sensitive=False,
            help="Abort the run or skip the file on a bracket mismatch.",
        ),
        config_path: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help=_CONFIG_OPTION_HELP,
        ),
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            "-l",
            help=_LOG_LEVEL_HELP,
        ),
    ) -> None:
        overrides: dict[str, Any] = {}
        if trace:
            overrides["trace_tokens"] = True
        if balance_failure is not None:
            overrides["balance_failure"] = BalanceFailurePolicy(
                balance_failure
            ).value

        try:
            config = _load_app_config(
                config_path=config_path,
                log_level=log_level,
                extractor_overrides=overrides,
            )
            service = _build_service(config, command="extract")
            run = service.run(files or (), language=language)
        except Exception as exc:
            emit_failure(exc)
            raise typer.Exit(code=1) from exc

        emit_run(run, output_format)

    @app.command(
        "rewrite",
        help="Rewrite the imports of FILE as ES module or CommonJS syntax.",
    )
    def rewrite_command(  # noqa: PLR0913 - CLI surface area intentionally explicit
        file: Path = typer.Argument(..., metavar="FILE"),
        style: ImportStyle = typer.Option(
            ImportStyle.ESM,
            "--style",
            "-s",
            case_sensitive=False,
            help="Import syntax to emit: esm or cjs.",
        ),
        output: Path | None = typer.Option(
            None,
            "--output",
            "-o",
            help="Write the rewritten module here instead of stdout.",
        ),
        language: str | None = typer.Option(
            None,
            "--lang",
            "-L",
            help=_LANG_HELP,
        ),
        config_path: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help=_CONFIG_OPTION_HELP,
        ),
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            "-l",
            help=_LOG_LEVEL_HELP,
        ),
    ) -> None:
        try:
            config = _load_app_config(
                config_path=config_path,
                log_level=log_level,
            )
            service = _build_service(config, command="rewrite")
            context = service.new_run()
            module = context.register(normalize_path(file))
            service.process_file(module, context, language=language)
            if module.status is ModuleStatus.FAILED:
                raise ExtractionError(module.diagnostics[-1])
            rewritten = rewrite_module(module, style)
        except Exception as exc:
            emit_failure(exc)
            raise typer.Exit(code=1) from exc

        if output is None:
            typer.echo(rewritten.decode("utf-8"), nl=False)
            return
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(rewritten)
        typer.secho(f"Wrote {output}", fg=typer.colors.GREEN)

    @app.command(
        "config",
        help="Print the effective configuration as TOML.",
    )
    def config_command(
        config_path: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help=_CONFIG_OPTION_HELP,
        ),
    ) -> None:
        try:
            config = _load_app_config(config_path=config_path)
        except Exception as exc:
            emit_failure(exc)
            raise typer.Exit(code=1) from exc
        typer.echo(render_config(config), nl=False)

    return app


__all__ = ["create_app"]
