"""Configuration models and loaders for :mod:`modsplit`."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from enum import StrEnum
import os
from pathlib import Path
from typing import Any, Mapping

import tomllib
import tomlkit
from pydantic import BaseModel, Field, field_validator, model_validator

from modsplit.resources import get_resource


class BalanceFailurePolicy(StrEnum):
    """What a bracket/interpolation mismatch does to the run."""

    ABORT_RUN = "abort-run"
    SKIP_FILE = "skip-file"


def _normalize_suffix(value: str) -> str:
    """Return ``value`` lower-cased with a single leading dot.

    Example:
        >>> _normalize_suffix("JS"), _normalize_suffix(".mjs")
        ('.js', '.mjs')
    """

    cleaned = value.strip().lower()
    if not cleaned:
        raise ValueError("Suffixes cannot be blank.")
    return cleaned if cleaned.startswith(".") else f".{cleaned}"


class ExtractorSettings(BaseModel):
    """Settings controlling import/export extraction."""

    extractable_suffixes: tuple[str, ...] = Field(
        default=(".js", ".mjs"),
        description="Specifier suffixes whose targets are followed.",
    )
    default_entry: Path = Field(
        default=Path("lib/util.js"),
        description="Entry file processed when no paths are given.",
    )
    balance_failure: BalanceFailurePolicy = Field(
        default=BalanceFailurePolicy.ABORT_RUN,
        description=(
            "Whether a bracket mismatch aborts the whole run or only fails "
            "the current file."
        ),
    )
    trace_tokens: bool = Field(
        default=False,
        description="Emit a debug log entry for every scanned token.",
    )
    language_overrides: dict[str, str] = Field(
        default_factory=dict,
        description="File extension to token source name overrides.",
    )

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @field_validator("extractable_suffixes", mode="before")
    @classmethod
    def _validate_suffixes(cls, value: Any) -> tuple[str, ...]:
        if isinstance(value, str):
            value = [value]
        suffixes = tuple(dict.fromkeys(_normalize_suffix(v) for v in value))
        if not suffixes:
            raise ValueError("At least one extractable suffix is required.")
        return suffixes

    @field_validator("balance_failure", mode="before")
    @classmethod
    def _validate_balance_failure(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower().replace("_", "-")
        return value

    @field_validator("language_overrides")
    @classmethod
    def _validate_language_overrides(
        cls,
        value: Mapping[str, str],
    ) -> dict[str, str]:
        normalized: dict[str, str] = {}
        for extension, name in (value or {}).items():
            key = _normalize_suffix(extension)
            target = str(name).strip().lower()
            if not target:
                raise ValueError(
                    f"Language override for {extension!r} cannot be blank."
                )
            normalized[key] = target
        return normalized


class AppConfig(BaseModel):
    """Root configuration for the :mod:`modsplit` application."""

    log_level: str = Field(
        default="INFO",
        description="Default logging level for the application runtime.",
    )
    log_dir: Path | None = Field(
        default=None,
        description="Directory receiving rotated JSON log files.",
    )
    extractor: ExtractorSettings = Field(
        default_factory=ExtractorSettings,
        description="Import/export extraction settings.",
    )

    model_config = {
        "str_strip_whitespace": True,
        "validate_assignment": True,
    }

    @field_validator("log_dir", mode="before")
    @classmethod
    def _blank_log_dir(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _post_process(self) -> "AppConfig":
        """Normalize fields after validation."""

        object.__setattr__(self, "log_level", self.log_level.upper())
        if self.log_dir is not None:
            object.__setattr__(self, "log_dir", self.log_dir.expanduser())
        return self


DEFAULTS_RESOURCE_NAME = "modsplit.defaults.toml"

ENV_LOG_LEVEL = "MODSPLIT_LOG_LEVEL"
ENV_BALANCE_FAILURE = "MODSPLIT_BALANCE_FAILURE"
ENV_TRACE = "MODSPLIT_TRACE"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off", ""})


def read_packaged_defaults_text() -> str:
    """Return the raw packaged defaults TOML content.

    Example:
        >>> text = read_packaged_defaults_text()
        >>> text.startswith("#")
        True
    """

    resource = get_resource(DEFAULTS_RESOURCE_NAME)
    return resource.read_text(encoding="utf-8")


def load_packaged_defaults() -> dict[str, Any]:
    """Load the packaged defaults as a plain dictionary.

    Example:
        >>> defaults = load_packaged_defaults()
        >>> defaults["extractor"]["default_entry"]
        'lib/util.js'
    """

    text = read_packaged_defaults_text()
    data: dict[str, Any] = tomllib.loads(text)
    return data


def load_user_config(path: str | Path) -> dict[str, Any]:
    """Parse the user TOML file at ``path``.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
    """

    with Path(path).expanduser().open("rb") as handle:
        return tomllib.load(handle)


def _parse_bool(name: str, raw: str) -> bool:
    normalized = raw.strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean flag (got {raw!r}).")


def env_overrides(
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Return configuration overrides read from ``MODSPLIT_*`` variables.

    Example:
        >>> env_overrides({"MODSPLIT_TRACE": "1"})
        {'extractor': {'trace_tokens': True}}
    """

    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    extractor: dict[str, Any] = {}

    level = env.get(ENV_LOG_LEVEL)
    if level:
        overrides["log_level"] = level
    policy = env.get(ENV_BALANCE_FAILURE)
    if policy:
        extractor["balance_failure"] = policy
    trace = env.get(ENV_TRACE)
    if trace is not None:
        extractor["trace_tokens"] = _parse_bool(ENV_TRACE, trace)

    if extractor:
        overrides["extractor"] = extractor
    return overrides


def _deep_merge(
    base: Mapping[str, Any],
    overlay: Mapping[str, Any],
) -> dict[str, Any]:
    """Recursively merge ``overlay`` into ``base`` returning a new dict."""

    merged: dict[str, Any] = dict(base)
    for key, value in overlay.items():
        if (
            key in merged
            and isinstance(merged[key], MappingABC)
            and isinstance(value, MappingABC)
        ):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    *,
    defaults: Mapping[str, Any],
    user_config: Mapping[str, Any] | None = None,
    env_config: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """Load configuration according to the precedence stack.

    Args:
        defaults: Packaged defaults shipped with the application.
        user_config: Parsed user TOML content.
        env_config: Settings derived from environment variables.
        cli_overrides: Settings supplied via CLI flags.

    Returns:
        A validated :class:`AppConfig` instance.
    """

    stack = dict(defaults)
    for layer in (user_config, env_config, cli_overrides):
        if layer:
            stack = _deep_merge(stack, layer)

    extractor_raw = stack.pop("extractor", None)
    if isinstance(extractor_raw, ExtractorSettings):
        extractor = extractor_raw
    elif isinstance(extractor_raw, MappingABC):
        extractor = ExtractorSettings(**extractor_raw)
    elif extractor_raw is None:
        extractor = ExtractorSettings()
    else:
        raise TypeError(
            f"Unsupported extractor configuration payload: {extractor_raw!r}"
        )
    stack["extractor"] = extractor

    return AppConfig(**stack)


def render_config(
    config: AppConfig,
    *,
    include_comments: bool = True,
) -> str:
    """Render ``config`` as TOML suitable for a user configuration file.

    Args:
        config: Configuration instance to serialize.
        include_comments: Whether to prefix precedence commentary.

    Returns:
        A TOML-formatted string.
    """

    document = tomlkit.document()

    if include_comments:
        document.add(tomlkit.comment("Effective modsplit configuration"))
        document.add(
            tomlkit.comment(
                "Precedence: CLI flags > env vars > --config file > defaults"
            )
        )
        document.add(tomlkit.comment("Environment overrides:"))
        document.add(tomlkit.comment(f"  {ENV_LOG_LEVEL}=info"))
        document.add(tomlkit.comment(f"  {ENV_BALANCE_FAILURE}=skip-file"))
        document.add(tomlkit.comment(f"  {ENV_TRACE}=1"))
        document.add(tomlkit.nl())

    document["log_level"] = config.log_level
    document["log_dir"] = str(config.log_dir) if config.log_dir else ""

    settings = config.extractor
    extractor_table = tomlkit.table()
    extractor_table["extractable_suffixes"] = list(
        settings.extractable_suffixes
    )
    extractor_table["default_entry"] = settings.default_entry.as_posix()
    extractor_table["balance_failure"] = settings.balance_failure.value
    extractor_table["trace_tokens"] = settings.trace_tokens

    overrides_table = tomlkit.table()
    for extension in sorted(settings.language_overrides):
        overrides_table[extension] = settings.language_overrides[extension]
    extractor_table["language_overrides"] = overrides_table
    document["extractor"] = extractor_table

    return tomlkit.dumps(document)


__all__ = [
    "AppConfig",
    "BalanceFailurePolicy",
    "DEFAULTS_RESOURCE_NAME",
    "ENV_BALANCE_FAILURE",
    "ENV_LOG_LEVEL",
    "ENV_TRACE",
    "ExtractorSettings",
    "env_overrides",
    "load_config",
    "load_packaged_defaults",
    "load_user_config",
    "read_packaged_defaults_text",
    "render_config",
]
