"""Partition a module buffer into import and plain-text segments."""

from __future__ import annotations

from typing import Iterable

from .records import Segment, SegmentKind

__all__ = ["normalize_ranges", "partition"]


def normalize_ranges(
    ranges: Iterable[tuple[int, int]],
    *,
    size: int,
) -> list[tuple[int, int]]:
    """Return ``ranges`` sorted and de-duplicated.

    Raises:
        ValueError: If a range is inverted, out of bounds, or overlaps the
            previous range.
    """

    ordered = sorted(set(ranges))
    previous_end = 0
    for start, end in ordered:
        if start < 0 or end > size or start > end:
            raise ValueError(
                f"Range [{start}, {end}) is outside buffer of {size} bytes"
            )
        if start < previous_end:
            raise ValueError(
                f"Range [{start}, {end}) overlaps a range ending at "
                f"{previous_end}"
            )
        previous_end = end
    return ordered


def partition(
    buffer: bytes,
    ranges: Iterable[tuple[int, int]],
) -> list[Segment]:
    """Cut ``buffer`` into ordered, gap-free segments.

    Each range becomes an import segment; the bytes between ranges become
    plain-text segments, and empty gaps are skipped. Joining the ``data`` of
    the result always reproduces ``buffer``.

    Example:
        >>> segments = partition(b"ab;cd", [(0, 3)])
        >>> [(segment.kind.value, segment.data) for segment in segments]
        [('import-statement', b'ab;'), ('plain-text', b'cd')]
    """

    segments: list[Segment] = []
    cursor = 0
    for start, end in normalize_ranges(ranges, size=len(buffer)):
        if start > cursor:
            segments.append(
                Segment(
                    kind=SegmentKind.TEXT,
                    start=cursor,
                    end=start,
                    data=buffer[cursor:start],
                )
            )
        segments.append(
            Segment(
                kind=SegmentKind.IMPORT,
                start=start,
                end=end,
                data=buffer[start:end],
            )
        )
        cursor = end
    if cursor < len(buffer):
        segments.append(
            Segment(
                kind=SegmentKind.TEXT,
                start=cursor,
                end=len(buffer),
                data=buffer[cursor:],
            )
        )
    return segments
