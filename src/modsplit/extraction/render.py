"""Render import records as ES module or CommonJS statements."""

from __future__ import annotations

from enum import StrEnum

from .records import FileModule, ImportKind, ImportRecord, SegmentKind

__all__ = ["ImportStyle", "render_import", "rewrite_module"]


class ImportStyle(StrEnum):
    """Output syntax for rendered imports."""

    ESM = "esm"
    CJS = "cjs"


def _quote(specifier: str) -> str:
    escaped = specifier.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _property(name: str) -> str:
    return name if name.isidentifier() else _quote(name)


def _esm_namespace(record: ImportRecord) -> str:
    head = f"{record.default_local}, " if record.default_local else ""
    return (
        f"import {head}* as {record.local} from {_quote(record.specifier)};"
    )


def _esm_default(record: ImportRecord) -> str:
    return f"import {record.local} from {_quote(record.specifier)};"


def _esm_named(record: ImportRecord) -> str:
    parts = []
    for binding in record.bindings:
        if binding.imported == binding.local:
            parts.append(binding.local)
        else:
            parts.append(f"{_property(binding.imported)} as {binding.local}")
    head = f"{record.default_local}, " if record.default_local else ""
    clause = "{ " + ", ".join(parts) + " }" if parts else "{}"
    return f"import {head}{clause} from {_quote(record.specifier)};"


def _cjs_namespace(record: ImportRecord) -> str:
    statement = f"const {record.local} = require({_quote(record.specifier)});"
    if record.default_local:
        statement += (
            f" const {record.default_local} = {record.local}.default;"
        )
    return statement


def _cjs_default(record: ImportRecord) -> str:
    return f"const {record.local} = require({_quote(record.specifier)});"


def _cjs_named(record: ImportRecord) -> str:
    parts = []
    if record.default_local:
        parts.append(f"default: {record.default_local}")
    for binding in record.bindings:
        if binding.imported == binding.local:
            parts.append(binding.local)
        else:
            parts.append(f"{_property(binding.imported)}: {binding.local}")
    pattern = "{ " + ", ".join(parts) + " }" if parts else "{}"
    return f"const {pattern} = require({_quote(record.specifier)});"


def render_import(
    record: ImportRecord,
    style: ImportStyle = ImportStyle.ESM,
) -> str:
    """Return ``record`` rendered as a single statement in ``style``.

    Example:
        >>> from modsplit.extraction.records import Binding
        >>> record = ImportRecord(
        ...     kind=ImportKind.NAMED,
        ...     specifier="./x.js",
        ...     bindings=(Binding("a", "a"), Binding("b", "c")),
        ...     start=0,
        ...     end=0,
        ...     text="",
        ... )
        >>> render_import(record, ImportStyle.CJS)
        "const { a, b: c } = require('./x.js');"
    """

    style = ImportStyle(style)
    kind = record.kind
    if style is ImportStyle.ESM:
        if kind is ImportKind.NAMESPACE:
            return _esm_namespace(record)
        if kind is ImportKind.DEFAULT:
            return _esm_default(record)
        if kind is ImportKind.NAMED:
            return _esm_named(record)
    elif style is ImportStyle.CJS:
        if kind is ImportKind.NAMESPACE:
            return _cjs_namespace(record)
        if kind is ImportKind.DEFAULT:
            return _cjs_default(record)
        if kind is ImportKind.NAMED:
            return _cjs_named(record)
    raise AssertionError(  # pragma: no cover - enums are exhaustive
        f"Unhandled import kind {kind!r} for style {style!r}"
    )


def rewrite_module(
    module: FileModule,
    style: ImportStyle = ImportStyle.ESM,
) -> bytes:
    """Rebuild ``module``'s buffer with every import rendered in ``style``.

    Plain-text segments are copied byte for byte.
    """

    records = {record.start: record for record in module.imports}
    chunks: list[bytes] = []
    for segment in module.segments:
        record = records.get(segment.start)
        if segment.kind is SegmentKind.IMPORT and record is not None:
            chunks.append(render_import(record, style).encode("utf-8"))
        else:
            chunks.append(segment.data)
    return b"".join(chunks)
