"""Statement segmentation for ``import``/``export`` statements."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from modsplit.lexing.tokens import TRIVIA_TYPES, Location, Token, significant

__all__ = [
    "SegmenterState",
    "StatementRun",
    "StatementSegmenter",
]

_STATEMENT_KEYWORDS = frozenset({"import", "export"})
_OPENERS = frozenset("{[(")
_CLOSERS = frozenset("}])")


class SegmenterState(StrEnum):
    IDLE = "idle"
    COLLECTING = "collecting"


@dataclass(frozen=True, slots=True)
class StatementRun:
    """Tokens collected between a statement keyword and its terminator."""

    keyword: str
    tokens: tuple[Token, ...]
    start: int
    end: int

    @property
    def significant(self) -> list[Token]:
        return significant(self.tokens)

    @property
    def text(self) -> str:
        return "".join(token.lexeme for token in self.tokens)

    @property
    def location(self) -> Location:
        return self.tokens[0].location

    @property
    def has_from(self) -> bool:
        return any(token.matches("keyword", "from") for token in self.tokens)


class StatementSegmenter:
    """Watch a token stream and cut out import/export statements.

    A statement ends at ``;`` (kept in the run) or at a line terminator
    (left out of the run) once every bracket the statement opened is closed
    again, so multi-line clauses and exported declaration bodies stay whole.

    Example:
        >>> from modsplit.lexing import JavaScriptTokenSource
        >>> source = JavaScriptTokenSource("import a from 'a.js';")
        >>> segmenter = StatementSegmenter()
        >>> while (tok := source.next_token()) is not None:
        ...     run = segmenter.feed(tok)
        >>> run.keyword, run.start, run.end
        ('import', 0, 21)
    """

    def __init__(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self._state = SegmenterState.IDLE
        self._keyword: str | None = None
        self._tokens: list[Token] = []
        self._depth = 0
        self._seen_significant = False

    @property
    def state(self) -> SegmenterState:
        return self._state

    def feed(
        self,
        token: Token,
        *,
        interpolation_end: bool = False,
    ) -> StatementRun | None:
        """Consume ``token`` and return a run once a statement terminates."""

        if self._state is SegmenterState.IDLE:
            if token.matches("keyword", _STATEMENT_KEYWORDS):
                self._state = SegmenterState.COLLECTING
                self._keyword = token.lexeme
                self._tokens = [token]
            return None

        if (
            token.type == "lineTerminator"
            and self._depth == 0
            and self._seen_significant
        ):
            return self._complete(end=token.start)

        if not self._seen_significant and token.type not in TRIVIA_TYPES:
            self._seen_significant = True
            # ``import(...)`` and ``import.meta`` are expressions.
            if self._keyword == "import" and token.lexeme in {"(", "."}:
                self._reset()
                return None

        self._tokens.append(token)
        if token.type == "punctuator" and not interpolation_end:
            if token.lexeme in _OPENERS:
                self._depth += 1
            elif token.lexeme in _CLOSERS and self._depth > 0:
                self._depth -= 1

        if token.lexeme == ";" and self._depth == 0:
            return self._complete(end=token.end)
        return None

    def finish(self) -> StatementRun | None:
        """Return the unterminated run left at end of stream, if any."""

        if self._state is SegmenterState.IDLE or not self._tokens:
            return None
        last = self._tokens[-1]
        return self._complete(end=last.end)

    def _complete(self, *, end: int) -> StatementRun:
        tokens = tuple(self._tokens)
        run = StatementRun(
            keyword=self._keyword or tokens[0].lexeme,
            tokens=tokens,
            start=tokens[0].start,
            end=end,
        )
        self._reset()
        return run
