"""Data models summarizing an extraction run."""

from __future__ import annotations

from typing import Mapping

from pydantic import BaseModel, Field, field_validator

__all__ = ["ExtractionMetrics"]


class ExtractionMetrics(BaseModel):
    """Aggregated counters describing the outcome of an extraction run."""

    files_scheduled: int = Field(default=0, ge=0)
    files_processed: int = Field(default=0, ge=0)
    files_failed: int = Field(default=0, ge=0)
    tokens_scanned: int = Field(default=0, ge=0)
    imports: int = Field(default=0, ge=0)
    exports: int = Field(default=0, ge=0)
    segments: int = Field(default=0, ge=0)
    diagnostics: int = Field(default=0, ge=0)
    languages: dict[str, int] = Field(default_factory=dict)

    model_config = {
        "validate_assignment": True,
    }

    @field_validator("languages")
    @classmethod
    def _validate_languages(
        cls,
        value: Mapping[str, int],
    ) -> dict[str, int]:
        normalized: dict[str, int] = {}
        for name, count in (value or {}).items():
            if count < 0:
                raise ValueError(
                    "Language file counts must be >= 0 (got "
                    f"{count} for {name!r})."
                )
            normalized[str(name).strip()] = int(count)
        return normalized

    def increment_language(self, name: str, *, count: int = 1) -> None:
        """Increment the file counter for token source ``name``."""

        if count < 0:
            raise ValueError("count must be >= 0")
        key = name.strip()
        self.languages[key] = self.languages.get(key, 0) + count
