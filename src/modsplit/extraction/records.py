"""Structured records produced while extracting a module."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from modsplit.lexing.tokens import Location

__all__ = [
    "Binding",
    "ExportKind",
    "ExportRecord",
    "FileModule",
    "ImportKind",
    "ImportRecord",
    "ModuleStatus",
    "Segment",
    "SegmentKind",
]


class ImportKind(StrEnum):
    """Shape of an import clause."""

    NAMESPACE = "namespace"
    DEFAULT = "default"
    NAMED = "named"


class ExportKind(StrEnum):
    """Shape of an export statement."""

    REEXPORT = "re-export"
    DEFAULT = "default"
    NAMED = "named"


class SegmentKind(StrEnum):
    IMPORT = "import-statement"
    TEXT = "plain-text"


class ModuleStatus(StrEnum):
    """Processing state of a :class:`FileModule`."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Binding:
    """Imported name and the local identifier it is bound to."""

    imported: str
    local: str

    def to_mapping(self) -> dict[str, str]:
        return {"imported": self.imported, "local": self.local}


@dataclass(frozen=True, slots=True)
class ImportRecord:
    """Classified ``import ... from '...'`` statement.

    Namespace imports carry a single ``("*", local)`` binding and default
    imports a single ``("default", local)`` binding. A default binding that
    precedes a namespace or named clause (``import D, { a } from ...``) is
    kept in ``default_local``.
    """

    kind: ImportKind
    specifier: str
    bindings: tuple[Binding, ...]
    start: int
    end: int
    text: str
    location: Location | None = None
    default_local: str | None = None

    @property
    def range(self) -> tuple[int, int]:
        return (self.start, self.end)

    @property
    def local(self) -> str | None:
        """Return the single local identifier of namespace/default imports."""

        if self.kind is ImportKind.NAMED or not self.bindings:
            return None
        return self.bindings[0].local

    def to_mapping(self) -> dict[str, Any]:
        """Return a JSON-serializable mapping of the record."""

        bindings: Any
        if self.kind is ImportKind.NAMED:
            bindings = [binding.to_mapping() for binding in self.bindings]
        else:
            bindings = self.local
        return {
            "kind": self.kind.value,
            "specifier": self.specifier,
            "bindings": bindings,
            "default": self.default_local,
            "range": [self.start, self.end],
            "line": self.location.line if self.location else None,
            "text": self.text,
        }


@dataclass(frozen=True, slots=True)
class ExportRecord:
    """Classified ``export`` statement."""

    kind: ExportKind
    exported: str
    declaration: str
    start: int
    end: int
    text: str
    specifier: str | None = None
    location: Location | None = None

    @property
    def range(self) -> tuple[int, int]:
        return (self.start, self.end)

    def to_mapping(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "exported": self.exported,
            "declaration": self.declaration,
            "specifier": self.specifier,
            "range": [self.start, self.end],
            "line": self.location.line if self.location else None,
            "text": self.text,
        }


@dataclass(frozen=True, slots=True)
class Segment:
    """Contiguous byte range of a module buffer."""

    kind: SegmentKind
    start: int
    end: int
    data: bytes

    @property
    def text(self) -> str:
        return self.data.decode("utf-8", errors="surrogateescape")

    def to_mapping(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "range": [self.start, self.end],
            "length": self.end - self.start,
        }


@dataclass(slots=True)
class FileModule:
    """A source file together with everything extracted from it."""

    path: Path
    buffer: bytes = b""
    language: str | None = None
    imports: list[ImportRecord] = field(default_factory=list)
    exports: list[ExportRecord] = field(default_factory=list)
    segments: list[Segment] = field(default_factory=list)
    status: ModuleStatus = ModuleStatus.PENDING
    diagnostics: list[str] = field(default_factory=list)

    def reassemble(self) -> bytes:
        """Concatenate segment data in order."""

        return b"".join(segment.data for segment in self.segments)

    def to_mapping(self) -> dict[str, Any]:
        return {
            "path": str(self.path),
            "language": self.language,
            "status": self.status.value,
            "size_bytes": len(self.buffer),
            "imports": [record.to_mapping() for record in self.imports],
            "exports": [record.to_mapping() for record in self.exports],
            "segments": [segment.to_mapping() for segment in self.segments],
            "diagnostics": list(self.diagnostics),
        }
