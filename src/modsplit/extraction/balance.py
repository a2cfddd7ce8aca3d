"""Bracket balancing across nested interpolation contexts."""

from __future__ import annotations

from enum import StrEnum

from modsplit.lexing.tokens import Location, Token, TokenSource

from .errors import BalanceMismatchError

__all__ = [
    "Balancer",
    "ContextEvent",
    "ContextStack",
]

_OPENERS = frozenset("{[(")
_PAIRS = {"}": "{", "]": "[", ")": "("}
_CLOSERS = {opener: closer for closer, opener in _PAIRS.items()}


class ContextEvent(StrEnum):
    """Effect a token had on the context stack."""

    NONE = "none"
    OPEN = "open"
    CLOSE = "close"
    INTERPOLATION_END = "interpolation-end"


class Balancer:
    """Bracket stack for a single lexical nesting level.

    Example:
        >>> balancer = Balancer()
        >>> balancer.push("(")
        >>> balancer.stack, balancer.depth
        (('(',), 1)
    """

    __slots__ = ("_stack",)

    def __init__(self) -> None:
        self._stack: list[str] = []

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def stack(self) -> tuple[str, ...]:
        return tuple(self._stack)

    def push(self, opener: str) -> None:
        self._stack.append(opener)

    def close(
        self,
        closer: str,
        *,
        location: Location | None = None,
        snapshot: tuple[str, ...] | None = None,
    ) -> None:
        """Pop the opener matching ``closer`` or raise on mismatch."""

        top = self._stack[-1] if self._stack else None
        if top != _PAIRS[closer]:
            raise BalanceMismatchError(
                actual=closer,
                expected=_CLOSERS.get(top) if top is not None else None,
                stack=snapshot if snapshot is not None else self.stack,
                location=location,
            )
        self._stack.pop()

    def feed(
        self,
        token: Token,
        *,
        snapshot: tuple[str, ...] | None = None,
    ) -> ContextEvent:
        lexeme = token.lexeme
        if lexeme in _OPENERS:
            self.push(lexeme)
            return ContextEvent.OPEN
        if lexeme in _PAIRS:
            self.close(lexeme, location=token.location, snapshot=snapshot)
            return ContextEvent.CLOSE
        return ContextEvent.NONE


class ContextStack:
    """One :class:`Balancer` per open interpolation level.

    The root balancer covers top-level code and is not counted by ``len``,
    so ``len(stack)`` always mirrors the token source's ``state_depth``.
    """

    def __init__(self) -> None:
        self._balancers: list[Balancer] = [Balancer()]

    def __len__(self) -> int:
        return len(self._balancers) - 1

    @property
    def top(self) -> Balancer:
        return self._balancers[-1]

    @property
    def is_empty(self) -> bool:
        """Return ``True`` when no interpolation or bracket is open."""

        return len(self) == 0 and self.top.depth == 0

    def snapshot(self) -> tuple[str, ...]:
        """Return every open bracket, outermost first.

        Each open interpolation contributes the ``{`` of its ``${`` opener.
        """

        items: list[str] = list(self._balancers[0].stack)
        for balancer in self._balancers[1:]:
            items.append("{")
            items.extend(balancer.stack)
        return tuple(items)

    def push(self) -> None:
        self._balancers.append(Balancer())

    def pop(self, *, location: Location | None = None) -> None:
        """Close the innermost interpolation context."""

        top = self.top
        if len(self) == 0 or top.depth:
            expected = _CLOSERS[top.stack[-1]] if top.depth else None
            raise BalanceMismatchError(
                actual="}",
                expected=expected,
                stack=self.snapshot(),
                location=location,
            )
        self._balancers.pop()

    def sync(self, depth: int, *, location: Location | None = None) -> None:
        """Align the stack with the token source's reported ``depth``."""

        while len(self) < depth:
            self.push()
        while len(self) > depth:
            self.pop(location=location)

    def observe(self, token: Token, source: TokenSource) -> ContextEvent:
        """Apply ``token`` to the innermost balancer.

        A ``}`` seen while the innermost balancer is empty and the source is
        nested closes the interpolation instead of a bracket.
        """

        closes_interpolation = (
            token.lexeme == "}"
            and self.top.depth == 0
            and source.state_depth > 0
        )
        if closes_interpolation:
            self.pop(location=token.location)
            source.pop_state()
            return ContextEvent.INTERPOLATION_END
        if token.lexeme in _PAIRS:
            return self.top.feed(token, snapshot=self.snapshot())
        return self.top.feed(token)

    def finish(self, *, location: Location | None = None) -> None:
        """Raise if anything is still open at end of input."""

        if self.is_empty:
            return
        stack = self.snapshot()
        raise BalanceMismatchError(
            actual=None,
            expected=_CLOSERS[stack[-1]],
            stack=stack,
            location=location,
        )
