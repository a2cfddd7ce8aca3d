"""Import/export extraction engine.

The package turns a token stream into classified import and export records,
partitions each module buffer into import and plain-text segments, and
follows extractable imports through a FIFO worklist.

Example:
    >>> from modsplit.extraction import partition
    >>> [segment.kind.value for segment in partition(b"x", [])]
    ['plain-text']
"""

from __future__ import annotations

from .balance import Balancer, ContextEvent, ContextStack
from .classifier import (
    classify_export,
    classify_import,
    import_kind,
    strip_quotes,
)
from .errors import (
    BalanceMismatchError,
    ExtractionError,
    MalformedExportError,
    MalformedImportError,
    StatementError,
    UnresolvedSpecifierError,
)
from .models import ExtractionMetrics
from .partition import normalize_ranges, partition
from .records import (
    Binding,
    ExportKind,
    ExportRecord,
    FileModule,
    ImportKind,
    ImportRecord,
    ModuleStatus,
    Segment,
    SegmentKind,
)
from .render import ImportStyle, render_import, rewrite_module
from .resolver import DependencyResolver, normalize_path
from .segmenter import SegmenterState, StatementRun, StatementSegmenter
from .service import ExtractionRun, ExtractionService

__all__ = [
    "BalanceMismatchError",
    "Balancer",
    "Binding",
    "ContextEvent",
    "ContextStack",
    "DependencyResolver",
    "ExportKind",
    "ExportRecord",
    "ExtractionError",
    "ExtractionMetrics",
    "ExtractionRun",
    "ExtractionService",
    "FileModule",
    "ImportKind",
    "ImportRecord",
    "ImportStyle",
    "MalformedExportError",
    "MalformedImportError",
    "ModuleStatus",
    "Segment",
    "SegmentKind",
    "SegmenterState",
    "StatementError",
    "StatementRun",
    "StatementSegmenter",
    "UnresolvedSpecifierError",
    "classify_export",
    "classify_import",
    "import_kind",
    "normalize_path",
    "normalize_ranges",
    "partition",
    "render_import",
    "rewrite_module",
    "strip_quotes",
]
