"""Tests for :mod:`modsplit.core.config`."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest
from pydantic import ValidationError

from modsplit.core.config import (
    AppConfig,
    BalanceFailurePolicy,
    ExtractorSettings,
    env_overrides,
    load_config,
    load_packaged_defaults,
    load_user_config,
    read_packaged_defaults_text,
    render_config,
)


def test_packaged_defaults_match_model_defaults() -> None:
    config = load_config(defaults=load_packaged_defaults())

    assert config == load_config(defaults={})
    assert config.log_level == "INFO"
    assert config.log_dir is None
    assert config.extractor.extractable_suffixes == (".js", ".mjs")
    assert config.extractor.default_entry == Path("lib/util.js")
    assert config.extractor.balance_failure is BalanceFailurePolicy.ABORT_RUN
    assert config.extractor.trace_tokens is False
    assert config.extractor.language_overrides == {}


def test_packaged_defaults_text_is_commented() -> None:
    assert read_packaged_defaults_text().startswith("#")


def test_precedence_cli_over_env_over_user_over_defaults() -> None:
    defaults = load_packaged_defaults()
    user = {
        "log_level": "warning",
        "extractor": {
            "balance_failure": "skip-file",
            "extractable_suffixes": [".js"],
        },
    }
    env = {"log_level": "error", "extractor": {"trace_tokens": True}}
    cli = {"log_level": "debug"}

    config = load_config(
        defaults=defaults,
        user_config=user,
        env_config=env,
        cli_overrides=cli,
    )

    assert config.log_level == "DEBUG"
    assert config.extractor.trace_tokens is True
    assert config.extractor.balance_failure is BalanceFailurePolicy.SKIP_FILE
    assert config.extractor.extractable_suffixes == (".js",)
    # Untouched nested keys survive the deep merge.
    assert config.extractor.default_entry == Path("lib/util.js")


def test_env_overrides_reads_modsplit_variables() -> None:
    overrides = env_overrides(
        {
            "MODSPLIT_LOG_LEVEL": "debug",
            "MODSPLIT_BALANCE_FAILURE": "skip-file",
            "MODSPLIT_TRACE": "yes",
            "UNRELATED": "1",
        }
    )

    assert overrides == {
        "log_level": "debug",
        "extractor": {"balance_failure": "skip-file", "trace_tokens": True},
    }


def test_env_overrides_empty_environment() -> None:
    assert env_overrides({}) == {}


def test_env_overrides_rejects_bad_trace_flag() -> None:
    with pytest.raises(ValueError):
        env_overrides({"MODSPLIT_TRACE": "sometimes"})


def test_extractor_settings_normalize_values() -> None:
    settings = ExtractorSettings(
        extractable_suffixes=["JS", ".Mjs", "js"],
        balance_failure="SKIP_FILE",
        language_overrides={"ES6": "JavaScript"},
    )

    assert settings.extractable_suffixes == (".js", ".mjs")
    assert settings.balance_failure is BalanceFailurePolicy.SKIP_FILE
    assert settings.language_overrides == {".es6": "javascript"}


@pytest.mark.parametrize(
    "payload",
    [
        {"extractable_suffixes": []},
        {"extractable_suffixes": [" "]},
        {"balance_failure": "ignore"},
        {"language_overrides": {".es6": " "}},
    ],
)
def test_extractor_settings_reject_invalid_values(payload: dict) -> None:
    with pytest.raises(ValidationError):
        ExtractorSettings(**payload)


def test_blank_log_dir_disables_file_logging(tmp_path: Path) -> None:
    assert AppConfig(log_dir="").log_dir is None
    assert AppConfig(log_dir=str(tmp_path)).log_dir == tmp_path


def test_load_user_config_reads_toml(tmp_path: Path) -> None:
    path = tmp_path / "modsplit.toml"
    path.write_text(
        'log_level = "warning"\n[extractor]\ntrace_tokens = true\n',
        encoding="utf-8",
    )

    assert load_user_config(path) == {
        "log_level": "warning",
        "extractor": {"trace_tokens": True},
    }


def test_load_user_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_user_config(tmp_path / "missing.toml")


def test_load_config_rejects_scalar_extractor() -> None:
    with pytest.raises(TypeError):
        load_config(defaults={"extractor": "fast"})


def test_render_config_round_trips_through_toml(tmp_path: Path) -> None:
    config = load_config(
        defaults=load_packaged_defaults(),
        cli_overrides={
            "log_dir": str(tmp_path / "logs"),
            "extractor": {
                "balance_failure": "skip-file",
                "language_overrides": {".es6": "javascript"},
            },
        },
    )

    rendered = render_config(config)
    assert rendered.startswith("# Effective modsplit configuration")

    reloaded = load_config(defaults=tomllib.loads(rendered))
    assert reloaded == config
