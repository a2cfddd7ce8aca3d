"""Token source registry and selection by file extension."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Mapping

from .javascript import JavaScriptTokenSource
from .tokens import TokenSource

__all__ = [
    "TokenSourceFactory",
    "TokenSourceDescriptor",
    "TokenSourceRegistry",
    "UnsupportedLanguageError",
    "build_default_registry",
]


TokenSourceFactory = Callable[[str, str | None], TokenSource]


def _normalize_extension(extension: str) -> str:
    return extension.strip().lower().lstrip(".")


@dataclass(frozen=True, slots=True)
class TokenSourceDescriptor:
    """Descriptor tying a token source implementation to file extensions."""

    name: str
    display_name: str
    factory: TokenSourceFactory
    extensions: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "extensions",
            tuple(
                dict.fromkeys(
                    _normalize_extension(ext) for ext in self.extensions if ext
                )
            ),
        )


class UnsupportedLanguageError(LookupError):
    """Raised when no token source matches a path or override."""


class TokenSourceRegistry:
    """Registry mapping files to token source variants."""

    def __init__(
        self,
        *,
        descriptors: Iterable[TokenSourceDescriptor],
        extension_overrides: Mapping[str, str] | None = None,
    ) -> None:
        self._descriptors: dict[str, TokenSourceDescriptor] = {}
        self._extensions: dict[str, str] = {}
        for descriptor in descriptors:
            self._descriptors[descriptor.name] = descriptor
            for extension in descriptor.extensions:
                self._extensions[extension] = descriptor.name
        for extension, name in (extension_overrides or {}).items():
            self.register_extension(extension, name)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._descriptors))

    def register_extension(self, extension: str, name: str) -> None:
        """Route files ending in ``extension`` to the source ``name``."""

        if name not in self._descriptors:
            raise UnsupportedLanguageError(
                f"Unknown token source {name!r} for extension {extension!r}"
            )
        self._extensions[_normalize_extension(extension)] = name

    def lookup(self, key: str) -> TokenSourceDescriptor:
        """Return the descriptor registered as ``key`` (name or extension).

        Example:
            >>> registry = build_default_registry()
            >>> registry.lookup("mjs").name
            'javascript'
        """

        normalized = _normalize_extension(key)
        if normalized in self._descriptors:
            return self._descriptors[normalized]
        name = self._extensions.get(normalized)
        if name is None:
            raise UnsupportedLanguageError(
                f"No token source registered for {key!r}"
            )
        return self._descriptors[name]

    def select(
        self,
        path: Path,
        *,
        override: str | None = None,
    ) -> TokenSourceDescriptor:
        """Return the descriptor for ``path``, honouring ``override``."""

        if override:
            return self.lookup(override)
        if not path.suffix:
            raise UnsupportedLanguageError(
                f"Cannot infer a token source for {path} (no extension)"
            )
        return self.lookup(path.suffix)

    def open(
        self,
        path: Path,
        text: str,
        *,
        override: str | None = None,
    ) -> tuple[TokenSourceDescriptor, TokenSource]:
        """Instantiate a fresh token source for ``text`` read from ``path``."""

        descriptor = self.select(path, override=override)
        return descriptor, descriptor.factory(text, str(path))


def _javascript_factory(text: str, path: str | None) -> TokenSource:
    return JavaScriptTokenSource(text, path=path)


_DEFAULT_DESCRIPTORS: tuple[TokenSourceDescriptor, ...] = (
    TokenSourceDescriptor(
        name="javascript",
        display_name="JavaScript",
        factory=_javascript_factory,
        extensions=("js", "mjs", "cjs", "jsx"),
    ),
)


def build_default_registry(
    extension_overrides: Mapping[str, str] | None = None,
) -> TokenSourceRegistry:
    """Return a registry populated with the bundled token sources."""

    return TokenSourceRegistry(
        descriptors=_DEFAULT_DESCRIPTORS,
        extension_overrides=extension_overrides,
    )
