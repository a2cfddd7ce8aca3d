"""Tests for :mod:`modsplit.extraction.classifier`."""

from __future__ import annotations

import pytest

from modsplit.extraction import (
    Binding,
    ExportKind,
    ImportKind,
    MalformedExportError,
    MalformedImportError,
    StatementRun,
    StatementSegmenter,
    classify_export,
    classify_import,
    import_kind,
)
from modsplit.lexing import JavaScriptTokenSource


def _run(text: str) -> StatementRun:
    source = JavaScriptTokenSource(text, path="cls.js")
    segmenter = StatementSegmenter()
    while (token := source.next_token()) is not None:
        run = segmenter.feed(token)
        if run is not None:
            return run
    run = segmenter.finish()
    assert run is not None, f"no statement collected from {text!r}"
    return run


def test_named_import_with_alias() -> None:
    record = classify_import(_run("import { a, b as c } from './x.js';"))

    assert record.kind is ImportKind.NAMED
    assert record.specifier == "./x.js"
    assert record.bindings == (Binding("a", "a"), Binding("b", "c"))
    assert record.local is None
    assert record.default_local is None
    assert record.range == (0, len("import { a, b as c } from './x.js';"))


def test_namespace_import() -> None:
    record = classify_import(_run('import * as ns from "./y.js";'))

    assert record.kind is ImportKind.NAMESPACE
    assert record.specifier == "./y.js"
    assert record.local == "ns"
    assert record.bindings == (Binding("*", "ns"),)


def test_default_import() -> None:
    record = classify_import(_run("import Def from './z.js'"))

    assert record.kind is ImportKind.DEFAULT
    assert record.specifier == "./z.js"
    assert record.local == "Def"
    assert record.bindings == (Binding("default", "Def"),)


def test_default_binding_before_named_clause() -> None:
    record = classify_import(_run("import D, { a, } from './m.js';"))

    assert record.kind is ImportKind.NAMED
    assert record.default_local == "D"
    assert record.bindings == (Binding("a", "a"),)


def test_default_binding_before_namespace() -> None:
    record = classify_import(_run("import D, * as ns from './m.js';"))

    assert record.kind is ImportKind.NAMESPACE
    assert record.default_local == "D"
    assert record.local == "ns"


def test_multi_line_named_import_with_string_name() -> None:
    text = "import {\n  'kebab-name' as kebab,\n  default as main,\n} from './k.js'"
    record = classify_import(_run(text))

    assert record.bindings == (
        Binding("kebab-name", "kebab"),
        Binding("default", "main"),
    )
    assert record.text == text


def test_contextual_keywords_as_binding_names() -> None:
    record = classify_import(
        _run("import { from, as as alias } from './x.js';")
    )

    assert record.kind is ImportKind.NAMED
    assert record.specifier == "./x.js"
    assert record.bindings == (
        Binding("from", "from"),
        Binding("as", "alias"),
    )


def test_classification_is_deterministic() -> None:
    text = "import { a, b as c } from './x.js';"
    run = _run(text)

    assert classify_import(run) == classify_import(run)
    assert classify_import(_run(text)) == classify_import(run)


@pytest.mark.parametrize(
    ("text", "reason"),
    [
        ("import * from './a.js';", "expected 'as' after '*'"),
        ("import * as from './a.js';", "expected identifier after 'as'"),
        ("import * as ns './a.js' from;", "missing 'from' after import clause"),
        ("import { a from './a.js';", "unbalanced braces in import clause"),
        ("import { a } b from './a.js';", "expected '}' before 'from'"),
        ("import { a b } from './a.js';", "invalid import specifier 'a b'"),
        ("import a from x;", "missing module specifier after 'from'"),
        ("import 'x' from './a.js';", "unexpected token \"'x'\" in import clause"),
    ],
)
def test_malformed_imports(text: str, reason: str) -> None:
    with pytest.raises(MalformedImportError) as exc:
        classify_import(_run(text))

    assert exc.value.reason == reason
    assert exc.value.location.file == "cls.js"


def test_import_kind_helper() -> None:
    assert import_kind(_run("import x from 'x.js';")) is ImportKind.DEFAULT
    assert import_kind(_run("import {x} from 'x.js';")) is ImportKind.NAMED


def test_export_named_declaration() -> None:
    record = classify_export(_run("export const answer = 42;"))

    assert record.kind is ExportKind.NAMED
    assert record.exported == "answer"
    assert record.declaration == "const"
    assert record.specifier is None


def test_export_default() -> None:
    record = classify_export(_run("export default function () {}\n"))

    assert record.kind is ExportKind.DEFAULT
    assert record.exported == "default"
    assert record.declaration == "default"


def test_export_clause_uses_first_identifier() -> None:
    record = classify_export(_run("export { a, b as c };"))

    assert record.kind is ExportKind.NAMED
    assert record.exported == "a"
    assert record.declaration == "{"


def test_reexports_capture_specifier() -> None:
    star = classify_export(_run("export * from './all.js';"))
    named = classify_export(_run("export { x } from './x.js';"))
    aliased = classify_export(_run("export * as ns from './ns.js';"))

    assert (star.kind, star.exported, star.specifier) == (
        ExportKind.REEXPORT,
        "*",
        "./all.js",
    )
    assert (named.exported, named.specifier) == ("x", "./x.js")
    assert (aliased.exported, aliased.specifier) == ("ns", "./ns.js")


@pytest.mark.parametrize(
    "text",
    ["export;", "export 42;", "export { x } from y;", "export: x;"],
)
def test_malformed_exports(text: str) -> None:
    with pytest.raises(MalformedExportError):
        classify_export(_run(text))
