"""Resolve import specifiers into a FIFO worklist of module paths."""

from __future__ import annotations

from collections import deque
import os
from pathlib import Path
from typing import Callable, Iterable

from modsplit.core.logging import Logger, get_logger

from .errors import UnresolvedSpecifierError
from .records import FileModule, ImportRecord

__all__ = ["DependencyResolver", "normalize_path"]

PathPredicate = Callable[[Path], bool]


def normalize_path(path: str | Path, *, base: Path | None = None) -> Path:
    """Join ``path`` onto ``base`` and collapse ``.``/``..`` components.

    Example:
        >>> normalize_path("../b/c.js", base=Path("/src/a")).as_posix()
        '/src/b/c.js'
    """

    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = (base if base is not None else Path.cwd()) / candidate
    return Path(os.path.normpath(candidate))


class DependencyResolver:
    """Decide which imports are followed and schedule them once each.

    The resolver owns the only state shared between files of a run: the set
    of every path ever scheduled and the queue of paths still to process.
    """

    def __init__(
        self,
        *,
        suffixes: Iterable[str] = (".js", ".mjs"),
        exists: PathPredicate | None = None,
        logger: Logger | None = None,
    ) -> None:
        self._suffixes = tuple(suffix.lower() for suffix in suffixes)
        self._exists = exists or Path.is_file
        self._logger = logger or get_logger(__name__, component="resolver")
        self._scheduled: set[Path] = set()
        self._queue: deque[Path] = deque()

    @property
    def suffixes(self) -> tuple[str, ...]:
        return self._suffixes

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def scheduled(self) -> frozenset[Path]:
        return frozenset(self._scheduled)

    def is_extractable(self, specifier: str) -> bool:
        return specifier.lower().endswith(self._suffixes)

    def resolve(self, importer: Path, specifier: str) -> Path:
        """Return the path ``specifier`` refers to from ``importer``."""

        return normalize_path(specifier, base=importer.parent)

    def schedule(self, path: Path) -> bool:
        """Queue ``path`` unless it was scheduled before."""

        if path in self._scheduled:
            return False
        self._scheduled.add(path)
        self._queue.append(path)
        return True

    def next(self) -> Path | None:
        """Pop the oldest pending path, or ``None`` when drained."""

        if not self._queue:
            return None
        return self._queue.popleft()

    def check(self, importer: Path, record: ImportRecord) -> Path:
        """Resolve ``record`` and verify the target exists.

        Raises:
            UnresolvedSpecifierError: If the resolved file does not exist.
        """

        resolved = self.resolve(importer, record.specifier)
        if not self._exists(resolved):
            raise UnresolvedSpecifierError(
                specifier=record.specifier,
                importer=importer,
                resolved=resolved,
            )
        return resolved

    def expand(self, module: FileModule) -> list[Path]:
        """Schedule the extractable imports of ``module``.

        Unresolvable specifiers are recorded as diagnostics on ``module``;
        the import record itself is kept.
        """

        added: list[Path] = []
        for record in module.imports:
            if not self.is_extractable(record.specifier):
                continue
            try:
                resolved = self.check(module.path, record)
            except UnresolvedSpecifierError as exc:
                module.diagnostics.append(str(exc))
                self._logger.warning(
                    "specifier-unresolved",
                    importer=str(module.path),
                    specifier=record.specifier,
                    resolved=str(exc.resolved),
                )
                continue
            if self.schedule(resolved):
                added.append(resolved)
                self._logger.debug(
                    "module-scheduled",
                    importer=str(module.path),
                    path=str(resolved),
                )
        return added
