"""Integration tests for the Typer application exposed by :mod:`modsplit.cli`."""

from __future__ import annotations

import json
import tomllib
from pathlib import Path

import pytest
from typer.testing import CliRunner

from modsplit.cli import create_app

MAIN = (
    "import { a, b as c } from './x.js';\n"
    "import * as ns from './y.js';\n"
    "import Def from './z.js';\n"
    "export const total = a + c;\n"
)


@pytest.fixture()
def runner() -> CliRunner:
    """Return a Typer CLI runner for invoking the application."""

    return CliRunner()


@pytest.fixture()
def project(write_module) -> Path:
    """Write a small module graph and return its entry file."""

    main = write_module("app/main.js", MAIN)
    write_module("app/x.js", "export const a = 1, b = 2;\n")
    write_module("app/y.js", "export const size = 3;\n")
    write_module("app/z.js", "export default function () {}\n")
    return main


def _quiet(*args: str) -> list[str]:
    return [*args, "--log-level", "error"]


def test_help_lists_commands(runner: CliRunner) -> None:
    result = runner.invoke(create_app(), ["--help"])

    assert result.exit_code == 0
    for command in ("extract", "rewrite", "config"):
        assert command in result.stdout


def test_extract_summary(runner: CliRunner, project: Path) -> None:
    result = runner.invoke(
        create_app(),
        _quiet("extract", str(project)),
        catch_exceptions=False,
    )

    assert result.exit_code == 0, result.stdout
    assert f"{project} [done]" in result.stdout
    assert "import named ./x.js (line 1)" in result.stdout
    assert "import namespace ./y.js (line 2)" in result.stdout
    assert "import default ./z.js (line 3)" in result.stdout
    assert "export named total" in result.stdout
    assert "Processed 4 file(s), 0 failed" in result.stdout


def test_extract_json(runner: CliRunner, project: Path) -> None:
    result = runner.invoke(
        create_app(),
        _quiet("extract", str(project), "--format", "json"),
    )

    assert result.exit_code == 0, result.stdout
    payload = json.loads(result.stdout)
    main = payload["modules"][0]
    assert main["path"] == str(project)
    assert main["imports"][0]["bindings"] == [
        {"imported": "a", "local": "a"},
        {"imported": "b", "local": "c"},
    ]
    assert main["imports"][1]["bindings"] == "ns"
    assert [segment["kind"] for segment in main["segments"]][:2] == [
        "import-statement",
        "plain-text",
    ]
    assert payload["metrics"]["files_processed"] == 4
    assert payload["failures"] == []


@pytest.mark.parametrize(
    ("fmt", "expected"),
    [
        (
            "esm",
            [
                "import { a, b as c } from './x.js';",
                "import * as ns from './y.js';",
                "import Def from './z.js';",
            ],
        ),
        (
            "cjs",
            [
                "const { a, b: c } = require('./x.js');",
                "const ns = require('./y.js');",
                "const Def = require('./z.js');",
            ],
        ),
    ],
)
def test_extract_rendered_imports(
    runner: CliRunner,
    project: Path,
    fmt: str,
    expected: list[str],
) -> None:
    result = runner.invoke(
        create_app(),
        _quiet("extract", str(project), "-f", fmt),
    )

    assert result.exit_code == 0, result.stdout
    lines = result.stdout.splitlines()
    assert lines[0] == f"// {project}"
    assert lines[1:4] == expected


def test_balance_mismatch_fails_run(runner: CliRunner, write_module) -> None:
    bad = write_module("bad.js", "f(a, [b);\n")

    result = runner.invoke(create_app(), _quiet("extract", str(bad)))

    assert result.exit_code == 1
    assert result.stdout.startswith("FAIL: Bracket mismatch")
    assert "Traceback (most recent call last)" in result.stdout
    assert "BalanceMismatchError" in result.stdout


def test_unclosed_template_interpolation_fails_run(
    runner: CliRunner,
    write_module,
) -> None:
    bad = write_module("bad.js", "const s = `a${ {x:1 }b`;\n")

    result = runner.invoke(create_app(), _quiet("extract", str(bad)))

    assert result.exit_code == 1
    assert result.stdout.startswith("FAIL: Bracket mismatch")
    assert "found end of input [ '{' ]" in result.stdout
    assert "LexError" in result.stdout


def test_balance_failure_flag_skips_file(
    runner: CliRunner,
    write_module,
) -> None:
    bad = write_module("bad.js", "f(a, [b);\n")
    good = write_module("good.js", "export const ok = 1;\n")

    result = runner.invoke(
        create_app(),
        _quiet(
            "extract",
            str(bad),
            str(good),
            "--balance-failure",
            "skip-file",
        ),
    )

    assert result.exit_code == 0, result.stdout
    assert f"{bad} [failed]" in result.stdout
    assert f"{good} [done]" in result.stdout
    assert "Processed 1 file(s), 1 failed" in result.stdout


def test_balance_failure_env_override(
    runner: CliRunner,
    write_module,
) -> None:
    bad = write_module("bad.js", "f(a, [b);\n")

    result = runner.invoke(
        create_app(),
        _quiet("extract", str(bad)),
        env={"MODSPLIT_BALANCE_FAILURE": "skip-file"},
    )

    assert result.exit_code == 0, result.stdout
    assert "[failed]" in result.stdout


def test_missing_file_fails(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(
        create_app(),
        _quiet("extract", str(tmp_path / "absent.js")),
    )

    assert result.exit_code == 1
    assert result.stdout.startswith("FAIL: ")
    assert "FileNotFoundError" in result.stdout


def test_extract_defaults_to_configured_entry(
    runner: CliRunner,
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    write_module,
) -> None:
    write_module("lib/util.js", "export const util = 1;\n")
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(create_app(), _quiet("extract"))

    assert result.exit_code == 0, result.stdout
    assert f"{tmp_path / 'lib' / 'util.js'} [done]" in result.stdout


def test_extract_with_trace_and_lang_override(
    runner: CliRunner,
    write_module,
) -> None:
    script = write_module("script.es6", "import a from './a.js';\n")

    result = runner.invoke(
        create_app(),
        ["extract", str(script), "-L", "js", "-x"],
    )

    assert result.exit_code == 0, result.stdout
    assert f"{script} [done]" in result.stdout


def test_rewrite_to_stdout(runner: CliRunner, project: Path) -> None:
    result = runner.invoke(
        create_app(),
        _quiet("rewrite", str(project), "--style", "cjs"),
    )

    assert result.exit_code == 0, result.stdout
    assert result.stdout == (
        "const { a, b: c } = require('./x.js');\n"
        "const ns = require('./y.js');\n"
        "const Def = require('./z.js');\n"
        "export const total = a + c;\n"
    )


def test_rewrite_to_file(
    runner: CliRunner,
    project: Path,
    tmp_path: Path,
) -> None:
    target = tmp_path / "out" / "main.esm.js"

    result = runner.invoke(
        create_app(),
        _quiet("rewrite", str(project), "-s", "esm", "-o", str(target)),
    )

    assert result.exit_code == 0, result.stdout
    assert f"Wrote {target}" in result.stdout
    assert target.read_text(encoding="utf-8") == MAIN


def test_rewrite_reports_lex_failures(
    runner: CliRunner,
    write_module,
) -> None:
    broken = write_module("broken.js", "const s = 'oops\n")

    result = runner.invoke(create_app(), _quiet("rewrite", str(broken)))

    assert result.exit_code == 1
    assert "FAIL: " in result.stdout
    assert "unterminated string literal" in result.stdout


def test_config_prints_effective_settings(
    runner: CliRunner,
    tmp_path: Path,
) -> None:
    user_config = tmp_path / "modsplit.toml"
    user_config.write_text(
        '[extractor]\nextractable_suffixes = [".js"]\n',
        encoding="utf-8",
    )

    result = runner.invoke(
        create_app(),
        ["config", "--config", str(user_config)],
        env={"MODSPLIT_LOG_LEVEL": "debug", "MODSPLIT_TRACE": "1"},
    )

    assert result.exit_code == 0, result.stdout
    data = tomllib.loads(result.stdout)
    assert data["log_level"] == "DEBUG"
    assert data["extractor"]["extractable_suffixes"] == [".js"]
    assert data["extractor"]["trace_tokens"] is True
    assert data["extractor"]["default_entry"] == "lib/util.js"


def test_config_with_invalid_file_fails(
    runner: CliRunner,
    tmp_path: Path,
) -> None:
    user_config = tmp_path / "broken.toml"
    user_config.write_text("log_level = \n", encoding="utf-8")

    result = runner.invoke(
        create_app(),
        ["config", "--config", str(user_config)],
    )

    assert result.exit_code == 1
    assert result.stdout.startswith("FAIL: ")
