"""Classify collected statement runs into import and export records."""

from __future__ import annotations

from typing import Sequence

from modsplit.lexing.tokens import Token

from .errors import MalformedExportError, MalformedImportError
from .records import (
    Binding,
    ExportKind,
    ExportRecord,
    ImportKind,
    ImportRecord,
)
from .segmenter import StatementRun

__all__ = [
    "classify_export",
    "classify_import",
    "import_kind",
    "strip_quotes",
]

_QUOTES = frozenset("'\"`")


def strip_quotes(lexeme: str) -> str:
    """Remove matching enclosing quote characters from ``lexeme``.

    Example:
        >>> strip_quotes("'./x.js'"), strip_quotes("plain")
        ('./x.js', 'plain')
    """

    if len(lexeme) >= 2 and lexeme[0] in _QUOTES and lexeme[-1] == lexeme[0]:
        return lexeme[1:-1]
    return lexeme


def _is_identifier(token: Token | None) -> bool:
    return token is not None and token.type == "identifier"


def _at(tokens: Sequence[Token], index: int) -> Token | None:
    if 0 <= index < len(tokens):
        return tokens[index]
    return None


def _find_from(tokens: Sequence[Token], start: int) -> int | None:
    for index in range(start, len(tokens)):
        if tokens[index].matches("keyword", "from"):
            return index
    return None


class _ImportParser:
    """Single-use parser over the significant tokens of one import run."""

    def __init__(self, run: StatementRun) -> None:
        self.run = run
        tokens = run.significant
        if tokens and tokens[0].matches("keyword", "import"):
            tokens = tokens[1:]
        self.tokens = tokens

    def fail(self, reason: str) -> MalformedImportError:
        return MalformedImportError(
            reason, text=self.run.text, location=self.run.location
        )

    def kind(self) -> ImportKind:
        head = _at(self.tokens, 0)
        if head is None:
            raise self.fail("empty import clause")
        index = 0
        if _is_identifier(head) and self._is_comma(1):
            index = 2
        current = _at(self.tokens, index)
        if current is not None and current.matches("punctuator", "*"):
            return ImportKind.NAMESPACE
        if current is not None and current.matches("punctuator", "{"):
            return ImportKind.NAMED
        if index == 0 and _is_identifier(head):
            return ImportKind.DEFAULT
        raise self.fail(f"unexpected token {head.lexeme!r} in import clause")

    def _is_comma(self, index: int) -> bool:
        token = _at(self.tokens, index)
        return token is not None and token.matches("punctuator", ",")

    def clause_start(self) -> tuple[int, str | None]:
        """Return where the namespace/named clause begins and any default."""

        head = self.tokens[0]
        if _is_identifier(head) and self._is_comma(1):
            return 2, head.lexeme
        return 0, None

    def specifier(self, from_index: int) -> str:
        literal = _at(self.tokens, from_index + 1)
        if literal is None or literal.type != "stringLiteral":
            raise self.fail("missing module specifier after 'from'")
        return strip_quotes(literal.lexeme)

    def expect_from(self, index: int) -> int:
        token = _at(self.tokens, index)
        if token is None or not token.matches("keyword", "from"):
            raise self.fail("missing 'from' after import clause")
        return index

    def namespace(self) -> tuple[tuple[Binding, ...], int]:
        index, _ = self.clause_start()
        as_token = _at(self.tokens, index + 1)
        if as_token is None or not as_token.matches("keyword", "as"):
            raise self.fail("expected 'as' after '*'")
        alias = _at(self.tokens, index + 2)
        if not _is_identifier(alias):
            raise self.fail("expected identifier after 'as'")
        from_index = self.expect_from(index + 3)
        return (Binding(imported="*", local=alias.lexeme),), from_index

    def default(self) -> tuple[tuple[Binding, ...], int]:
        from_index = self.expect_from(1)
        local = self.tokens[0].lexeme
        return (Binding(imported="default", local=local),), from_index

    def named(self) -> tuple[tuple[Binding, ...], int]:
        index, _ = self.clause_start()

        # Brace balance is checked locally; the context stack only sees the
        # file-level view. Bindings may be named ``from``, so the clause ends
        # at the brace matching the opening one.
        closing: int | None = None
        depth = 0
        for offset in range(index, len(self.tokens)):
            token = self.tokens[offset]
            if token.matches("punctuator", "{"):
                depth += 1
            elif token.matches("punctuator", "}"):
                depth -= 1
                if depth == 0:
                    closing = offset
                    break
        if closing is None:
            raise self.fail("unbalanced braces in import clause")

        from_index = closing + 1
        after = _at(self.tokens, from_index)
        if after is None or not after.matches("keyword", "from"):
            if _find_from(self.tokens, from_index) is None:
                raise self.fail("missing 'from' after import clause")
            raise self.fail("expected '}' before 'from'")

        bindings: list[Binding] = []
        group: list[Token] = []
        for token in self.tokens[index + 1 : closing + 1]:
            if token.matches("punctuator", (",", "}")):
                if group:
                    bindings.append(self._binding(group))
                group = []
                continue
            if token.matches("punctuator", "{"):
                raise self.fail("unbalanced braces in import clause")
            group.append(token)
        return tuple(bindings), from_index

    def _binding(self, group: list[Token]) -> Binding:
        if len(group) == 1 and group[0].type in {"identifier", "keyword"}:
            name = group[0].lexeme
            return Binding(imported=name, local=name)
        if (
            len(group) == 3
            and group[1].matches("keyword", "as")
            and _is_identifier(group[2])
        ):
            return Binding(
                imported=strip_quotes(group[0].lexeme),
                local=group[2].lexeme,
            )
        rendered = " ".join(token.lexeme for token in group)
        raise self.fail(f"invalid import specifier {rendered!r}")


def import_kind(run: StatementRun) -> ImportKind:
    """Return the kind of the import clause collected in ``run``."""

    return _ImportParser(run).kind()


def classify_import(run: StatementRun) -> ImportRecord:
    """Turn an ``import ... from`` run into an :class:`ImportRecord`.

    Raises:
        MalformedImportError: If the run is not a well-formed import.
    """

    parser = _ImportParser(run)
    kind = parser.kind()
    if kind is ImportKind.NAMESPACE:
        bindings, from_index = parser.namespace()
    elif kind is ImportKind.DEFAULT:
        bindings, from_index = parser.default()
    elif kind is ImportKind.NAMED:
        bindings, from_index = parser.named()
    else:  # pragma: no cover - every ImportKind is handled above
        raise AssertionError(f"Unhandled import kind: {kind!r}")

    _, default_local = parser.clause_start()
    return ImportRecord(
        kind=kind,
        specifier=parser.specifier(from_index),
        bindings=bindings,
        start=run.start,
        end=run.end,
        text=run.text,
        location=run.location,
        default_local=default_local,
    )


def classify_export(run: StatementRun) -> ExportRecord:
    """Turn an ``export`` run into an :class:`ExportRecord`.

    The exported name is the first identifier (or the ``default`` keyword)
    after ``export``; the record still spans the whole captured statement.

    Raises:
        MalformedExportError: If no exported name can be found.
    """

    tokens = run.significant

    def fail(reason: str) -> MalformedExportError:
        return MalformedExportError(
            reason, text=run.text, location=run.location
        )

    if not tokens or not tokens[0].matches("keyword", "export"):
        raise fail("expected 'export'")
    if len(tokens) < 2:
        raise fail("missing exported declaration")
    if tokens[1].matches("punctuator", ":"):
        raise fail("'export' used as a property name")

    declaration = tokens[1].lexeme
    name_token = next(
        (
            token
            for token in tokens[1:]
            if token.type == "identifier"
            or token.matches("keyword", "default")
        ),
        None,
    )
    from_index = _find_from(tokens, 1)

    if name_token is None or (
        from_index is not None and name_token.start > tokens[from_index].start
    ):
        if declaration != "*":
            raise fail("missing exported name")
        exported = "*"
    else:
        exported = name_token.lexeme

    specifier: str | None = None
    if from_index is not None:
        literal = _at(tokens, from_index + 1)
        if literal is None or literal.type != "stringLiteral":
            raise fail("missing module specifier after 'from'")
        specifier = strip_quotes(literal.lexeme)
        kind = ExportKind.REEXPORT
    elif exported == "default":
        kind = ExportKind.DEFAULT
    else:
        kind = ExportKind.NAMED

    return ExportRecord(
        kind=kind,
        exported=exported,
        declaration=declaration,
        start=run.start,
        end=run.end,
        text=run.text,
        specifier=specifier,
        location=run.location,
    )
