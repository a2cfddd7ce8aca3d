"""Token model and the contract every token source must satisfy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol, runtime_checkable

__all__ = [
    "LexError",
    "Location",
    "Token",
    "TokenSource",
    "TRIVIA_TYPES",
    "significant",
]

TRIVIA_TYPES: frozenset[str] = frozenset(
    {"whitespace", "lineTerminator", "comment"}
)


@dataclass(frozen=True, slots=True)
class Location:
    """Position of a token inside its source buffer.

    ``offset`` counts bytes of the UTF-8 encoded buffer while ``column``
    counts characters on the current line.

    Example:
        >>> str(Location(line=3, column=7, offset=41, file="a.js"))
        'a.js:3:7'
    """

    line: int
    column: int
    offset: int
    file: str | None = None

    def __str__(self) -> str:
        prefix = f"{self.file}:" if self.file else ""
        return f"{prefix}{self.line}:{self.column}"


@dataclass(frozen=True, slots=True)
class Token:
    """Single lexeme produced by a token source."""

    lexeme: str
    type: str
    id: int
    location: Location
    byte_length: int

    @property
    def start(self) -> int:
        return self.location.offset

    @property
    def end(self) -> int:
        return self.location.offset + self.byte_length

    def matches(
        self,
        type: str | None = None,
        lexeme: str | Iterable[str] | None = None,
    ) -> bool:
        """Return ``True`` when the token has ``type`` and one of ``lexeme``.

        Example:
            >>> loc = Location(line=1, column=1, offset=0)
            >>> tok = Token("from", "keyword", 4, loc, 4)
            >>> tok.matches("keyword", "from"), tok.matches(lexeme=(",", "}"))
            (True, False)
        """

        if type is not None and self.type != type:
            return False
        if lexeme is None:
            return True
        if isinstance(lexeme, str):
            return self.lexeme == lexeme
        return self.lexeme in lexeme


class LexError(RuntimeError):
    """Raised by a token source when its input is malformed."""

    def __init__(self, message: str, *, location: Location) -> None:
        super().__init__(f"{message} at {location}")
        self.reason = message
        self.location = location


@runtime_checkable
class TokenSource(Protocol):
    """Finite, single-pass producer of located tokens.

    Sources report a hierarchical lexer state. ``state_depth`` grows when the
    source enters a nested interpolation context; the consumer instructs the
    source to leave it again through :meth:`pop_state`.
    """

    path: str | None

    @property
    def state_depth(self) -> int: ...

    def current_state(self) -> str: ...

    def next_token(self) -> Token | None:
        """Return the next token or ``None`` once the input is exhausted."""

    def pop_state(self) -> None: ...


def significant(tokens: Iterable[Token]) -> list[Token]:
    """Return ``tokens`` without whitespace, line terminators, or comments."""

    return [token for token in tokens if token.type not in TRIVIA_TYPES]
