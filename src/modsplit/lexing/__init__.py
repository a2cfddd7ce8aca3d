"""Token sources consumed by the extraction engine."""

from __future__ import annotations

from .javascript import (
    INITIAL_STATE,
    SUBSTITUTION_STATE,
    JavaScriptTokenSource,
)
from .registry import (
    TokenSourceDescriptor,
    TokenSourceRegistry,
    UnsupportedLanguageError,
    build_default_registry,
)
from .tokens import (
    TRIVIA_TYPES,
    LexError,
    Location,
    Token,
    TokenSource,
    significant,
)

__all__ = [
    "INITIAL_STATE",
    "SUBSTITUTION_STATE",
    "TRIVIA_TYPES",
    "JavaScriptTokenSource",
    "LexError",
    "Location",
    "Token",
    "TokenSource",
    "TokenSourceDescriptor",
    "TokenSourceRegistry",
    "UnsupportedLanguageError",
    "build_default_registry",
    "significant",
]
