"""Extraction driver coordinating scanning, classification and the worklist."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

from modsplit.core.config import BalanceFailurePolicy, ExtractorSettings
from modsplit.core.logging import Logger, get_logger, module_context
from modsplit.lexing import (
    LexError,
    Location,
    Token,
    TokenSource,
    TokenSourceRegistry,
    UnsupportedLanguageError,
    build_default_registry,
)

from .balance import ContextEvent, ContextStack
from .classifier import classify_export, classify_import
from .errors import (
    BalanceMismatchError,
    ExtractionError,
    MalformedExportError,
    MalformedImportError,
    StatementError,
)
from .models import ExtractionMetrics
from .partition import partition
from .records import FileModule, ModuleStatus
from .resolver import DependencyResolver, normalize_path
from .segmenter import StatementRun, StatementSegmenter

__all__ = [
    "ExtractionRun",
    "ExtractionService",
]

BufferLoader = Callable[[Path], bytes]
PathPredicate = Callable[[Path], bool]


@dataclass(slots=True)
class ExtractionRun:
    """State owned by a single extraction run.

    Modules are keyed by normalized path in the order they were first
    scheduled.
    """

    resolver: DependencyResolver
    modules: dict[Path, FileModule] = field(default_factory=dict)
    metrics: ExtractionMetrics = field(default_factory=ExtractionMetrics)
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def schedule(self, path: Path) -> FileModule | None:
        """Queue ``path`` and create its module unless seen before."""

        if not self.resolver.schedule(path):
            return None
        return self.register(path)

    def register(self, path: Path) -> FileModule:
        """Return the module for an already scheduled ``path``."""

        module = self.modules.get(path)
        if module is None:
            module = FileModule(path=path)
            self.modules[path] = module
            self.metrics.files_scheduled += 1
        return module

    def to_mapping(self) -> dict[str, object]:
        return {
            "modules": [
                module.to_mapping() for module in self.modules.values()
            ],
            "metrics": self.metrics.model_dump(),
            "failures": list(self.failures),
        }


def _error_location(buffer: bytes, offset: int, path: Path) -> Location:
    line_start = buffer.rfind(b"\n", 0, offset) + 1
    return Location(
        line=buffer.count(b"\n", 0, offset) + 1,
        column=offset - line_start + 1,
        offset=offset,
        file=str(path),
    )


class ExtractionService:
    """Process files one at a time, following imports breadth-first.

    Each file is loaded, scanned token by token, split into import/export
    statements, classified, partitioned and then mined for further files to
    schedule. ``LexError`` only fails the file being scanned, unless it is
    raised inside an open template substitution, where it is reported as
    the unclosed ``{``. What a ``BalanceMismatchError`` does depends on
    :attr:`ExtractorSettings.balance_failure`.
    """

    def __init__(
        self,
        *,
        settings: ExtractorSettings | None = None,
        registry: TokenSourceRegistry | None = None,
        loader: BufferLoader | None = None,
        exists: PathPredicate | None = None,
        logger: Logger | None = None,
    ) -> None:
        self._settings = settings or ExtractorSettings()
        self._registry = registry or build_default_registry(
            self._settings.language_overrides
        )
        self._loader = loader or Path.read_bytes
        self._exists = exists
        self._logger = logger or get_logger(
            __name__,
            component="extraction-service",
        )

    @property
    def settings(self) -> ExtractorSettings:
        return self._settings

    @property
    def registry(self) -> TokenSourceRegistry:
        return self._registry

    def new_run(self) -> ExtractionRun:
        """Return an empty run context with its own resolver."""

        resolver = DependencyResolver(
            suffixes=self._settings.extractable_suffixes,
            exists=self._exists,
            logger=self._logger,
        )
        return ExtractionRun(resolver=resolver)

    def run(
        self,
        entries: Iterable[str | Path] = (),
        *,
        language: str | None = None,
    ) -> ExtractionRun:
        """Extract ``entries`` and every module reachable from them.

        Args:
            entries: Files to start from; the configured default entry is
                used when empty.
            language: Token source name or extension forced for every file.

        Returns:
            The finished :class:`ExtractionRun`.

        Raises:
            BalanceMismatchError: Under the ``abort-run`` policy.
            OSError: If a scheduled file cannot be read.
        """

        context = self.new_run()
        paths = list(entries) or [self._settings.default_entry]
        for entry in paths:
            context.schedule(normalize_path(entry))

        self._logger.info(
            "run-started",
            entries=[str(path) for path in context.modules],
            language=language,
        )
        while (path := context.resolver.next()) is not None:
            module = context.modules[path]
            self.process_file(module, context, language=language)

        self._logger.info(
            "run-complete",
            files=context.metrics.files_processed,
            failed=context.metrics.files_failed,
            imports=context.metrics.imports,
            exports=context.metrics.exports,
        )
        return context

    def process_file(
        self,
        module: FileModule,
        context: ExtractionRun,
        *,
        language: str | None = None,
    ) -> FileModule:
        """Scan, partition and expand a single module in place."""

        with module_context(module.path):
            return self._process(module, context, language=language)

    def _process(
        self,
        module: FileModule,
        context: ExtractionRun,
        *,
        language: str | None,
    ) -> FileModule:
        module.status = ModuleStatus.IN_PROGRESS
        try:
            tokens = self.scan(module, language=language)
        except (LexError, UnsupportedLanguageError) as exc:
            self._fail(module, context, exc)
            return module
        except BalanceMismatchError as exc:
            self._fail(module, context, exc)
            policy = self._settings.balance_failure
            if policy is BalanceFailurePolicy.ABORT_RUN:
                raise
            return module

        self._finalize(module)

        for path in context.resolver.expand(module):
            context.register(path)

        module.status = ModuleStatus.DONE
        metrics = context.metrics
        metrics.files_processed += 1
        metrics.tokens_scanned += tokens
        metrics.imports += len(module.imports)
        metrics.exports += len(module.exports)
        metrics.segments += len(module.segments)
        metrics.diagnostics += len(module.diagnostics)
        if module.language:
            metrics.increment_language(module.language)
        self._logger.info(
            "file-processed",
            path=str(module.path),
            imports=len(module.imports),
            exports=len(module.exports),
            segments=len(module.segments),
            diagnostics=len(module.diagnostics),
            pending=context.resolver.pending,
        )
        return module

    def scan(self, module: FileModule, *, language: str | None = None) -> int:
        """Load ``module`` and collect its import and export records.

        Returns:
            The number of tokens pulled from the token source.

        Raises:
            LexError: If the buffer cannot be tokenized.
            BalanceMismatchError: If bracket or interpolation nesting breaks.
            UnsupportedLanguageError: If no token source matches the file.
        """

        buffer = self._loader(module.path)
        module.buffer = buffer
        try:
            text = buffer.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise LexError(
                "invalid UTF-8 byte sequence",
                location=_error_location(buffer, exc.start, module.path),
            ) from exc

        descriptor, source = self._registry.open(
            module.path, text, override=language
        )
        module.language = descriptor.name
        module.imports.clear()
        module.exports.clear()
        return self._scan_tokens(module, source)

    def _scan_tokens(self, module: FileModule, source: TokenSource) -> int:
        context = ContextStack()
        segmenter = StatementSegmenter()
        trace = self._settings.trace_tokens
        location = Location(line=1, column=1, offset=0, file=str(module.path))
        count = 0

        while (token := self._pull(source, context, location)) is not None:
            count += 1
            location = token.location
            context.sync(source.state_depth, location=location)
            event = context.observe(token, source)
            if trace:
                self._logger.debug(
                    "token",
                    path=str(module.path),
                    line=location.line,
                    column=location.column,
                    type=token.type,
                    lexeme=token.lexeme,
                    state=source.current_state(),
                    depth=len(context),
                    brackets="".join(context.snapshot()),
                    statement=segmenter.state.value,
                )
            run = segmenter.feed(
                token,
                interpolation_end=event is ContextEvent.INTERPOLATION_END,
            )
            if run is not None:
                self._dispatch(module, run)

        leftover = segmenter.finish()
        if leftover is not None:
            error = (
                MalformedExportError
                if leftover.keyword == "export"
                else MalformedImportError
            )
            self._drop(
                module,
                leftover,
                error(
                    "unterminated statement at end of input",
                    text=leftover.text,
                    location=leftover.location,
                ),
            )
        context.finish(location=location)
        return count

    @staticmethod
    def _pull(
        source: TokenSource,
        context: ContextStack,
        location: Location,
    ) -> Token | None:
        """Return the next token.

        A ``LexError`` raised while an interpolation is still open is
        reported as the unclosed bracket it stems from, chained to the
        original error.
        """

        try:
            return source.next_token()
        except LexError as exc:
            if len(context) == 0:
                raise
            try:
                context.finish(location=exc.location or location)
            except BalanceMismatchError as mismatch:
                raise mismatch from exc
            raise

    def _dispatch(self, module: FileModule, run: StatementRun) -> None:
        try:
            if run.keyword == "export":
                module.exports.append(classify_export(run))
            elif run.has_from:
                module.imports.append(classify_import(run))
            else:
                self._logger.debug(
                    "statement-skipped",
                    path=str(module.path),
                    line=run.location.line,
                    text=run.text.strip(),
                )
        except StatementError as exc:
            self._drop(module, run, exc)

    def _drop(
        self,
        module: FileModule,
        run: StatementRun,
        exc: StatementError,
    ) -> None:
        module.diagnostics.append(str(exc))
        self._logger.warning(
            "statement-malformed",
            path=str(module.path),
            reason=exc.reason,
            line=run.location.line,
        )

    def _finalize(self, module: FileModule) -> None:
        module.segments = partition(
            module.buffer,
            (record.range for record in module.imports),
        )
        if module.reassemble() != module.buffer:
            raise ExtractionError(
                f"Segments of {module.path} do not reproduce its buffer"
            )

    def _fail(
        self,
        module: FileModule,
        context: ExtractionRun,
        exc: Exception,
    ) -> None:
        module.status = ModuleStatus.FAILED
        module.diagnostics.append(str(exc))
        context.failures.append(f"{module.path}: {exc}")
        context.metrics.files_failed += 1
        context.metrics.diagnostics += len(module.diagnostics)
        self._logger.error(
            "file-failed",
            path=str(module.path),
            error=type(exc).__name__,
            message=str(exc),
        )
