"""Shared pytest fixtures for the modsplit test-suite."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from modsplit.lexing import INITIAL_STATE, SUBSTITUTION_STATE, Location, Token


class ScriptedTokenSource:
    """Token source replaying a fixed list of ``(lexeme, type)`` pairs.

    A ``templateLiteral`` lexeme ending in ``${`` enters a substitution state
    the same way the JavaScript source does, which lets tests reach stream
    shapes the real scanner rejects earlier (for example a stream that ends
    inside an interpolation).
    """

    def __init__(
        self,
        steps: Iterable[tuple[str, str]],
        *,
        path: str | None = "scripted.js",
    ) -> None:
        self.path = path
        self._steps = list(steps)
        self._index = 0
        self._offset = 0
        self._states = [INITIAL_STATE]
        self.pops = 0

    @property
    def state_depth(self) -> int:
        return len(self._states) - 1

    def current_state(self) -> str:
        return self._states[-1]

    def pop_state(self) -> None:
        assert len(self._states) > 1, "pop_state called at depth 0"
        self._states.pop()
        self.pops += 1

    def next_token(self) -> Token | None:
        if self._index >= len(self._steps):
            return None
        lexeme, kind = self._steps[self._index]
        self._index += 1
        size = len(lexeme.encode("utf-8"))
        token = Token(
            lexeme=lexeme,
            type=kind,
            id=0,
            location=Location(
                line=1,
                column=self._offset + 1,
                offset=self._offset,
                file=self.path,
            ),
            byte_length=size,
        )
        self._offset += size
        if kind == "templateLiteral" and lexeme.endswith("${"):
            self._states.append(SUBSTITUTION_STATE)
        return token


@pytest.fixture
def scripted_source() -> Callable[..., ScriptedTokenSource]:
    """Return a factory building :class:`ScriptedTokenSource` instances."""

    return ScriptedTokenSource


@pytest.fixture
def write_module(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a helper that writes a UTF-8 module below ``tmp_path``."""

    def _write(relative: str, text: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(text.encode("utf-8"))
        return path

    return _write
