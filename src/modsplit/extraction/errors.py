"""Domain-specific exceptions for import/export extraction."""

from __future__ import annotations

from pathlib import Path

from modsplit.lexing.tokens import Location


class ExtractionError(RuntimeError):
    """Base error for extraction failures."""


class BalanceMismatchError(ExtractionError):
    """Raised when bracket or interpolation nesting is corrupted.

    ``actual`` is ``None`` when the mismatch is detected at end of input.
    ``expected`` is the closer the innermost open bracket is waiting for.
    """

    def __init__(
        self,
        *,
        actual: str | None,
        expected: str | None,
        stack: tuple[str, ...],
        location: Location | None = None,
    ) -> None:
        found = "end of input" if actual is None else repr(actual)
        wanted = repr(expected) if expected is not None else "no closer"
        rendered = ", ".join(repr(item) for item in stack)
        where = f" at {location}" if location is not None else ""
        super().__init__(
            f"Bracket mismatch{where}: expected {wanted}, found {found} "
            f"[ {rendered} ]"
        )
        self.actual = actual
        self.expected = expected
        self.stack = stack
        self.location = location


class StatementError(ExtractionError):
    """Raised when a collected statement cannot be classified."""

    def __init__(
        self,
        message: str,
        *,
        text: str,
        location: Location | None = None,
    ) -> None:
        where = f" at {location}" if location is not None else ""
        super().__init__(f"{message}{where}: {text.strip()!r}")
        self.reason = message
        self.text = text
        self.location = location


class MalformedImportError(StatementError):
    """Raised when an import statement lacks an expected token."""


class MalformedExportError(StatementError):
    """Raised when an export statement lacks an expected token."""


class UnresolvedSpecifierError(ExtractionError):
    """Raised when a module specifier does not resolve to a file."""

    def __init__(
        self,
        *,
        specifier: str,
        importer: Path,
        resolved: Path,
    ) -> None:
        super().__init__(
            f"Cannot resolve {specifier!r} imported by {importer} "
            f"(looked for {resolved})"
        )
        self.specifier = specifier
        self.importer = importer
        self.resolved = resolved


__all__ = [
    "ExtractionError",
    "BalanceMismatchError",
    "StatementError",
    "MalformedImportError",
    "MalformedExportError",
    "UnresolvedSpecifierError",
]
