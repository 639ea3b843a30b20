"""End-of-day consolidation of segments into capped reporting blocks."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable

from .models import MAX_BLOCK_MINUTES, PART_SUFFIX, ConsolidatedBlock, Segment
from .sequence import checked_duration, offset_time
from .time_segments import chunk_minutes

LOGGER = logging.getLogger("zeitblock.consolidator")


def consolidate(segments: Iterable[Segment]) -> list[ConsolidatedBlock]:
    """Merge closed work segments by label and re-split them into blocks.

    Open segments, breaks and unlabeled segments take no part. Each label
    group is laid out from its earliest start; groups above the cap get a
    part number on every block.
    """
    grouped: dict[str, list[Segment]] = defaultdict(list)
    for segment in segments:
        if segment.end is None or segment.is_break:
            continue
        key = segment.normalized_label
        if not key:
            continue
        grouped[key].append(segment)

    blocks: list[ConsolidatedBlock] = []
    for key in sorted(grouped):
        blocks.extend(_layout_group(grouped[key]))

    blocks.sort(key=lambda block: (block.start, block.end, block.label))
    LOGGER.debug(
        "Segments consolidated",
        extra={"event": "consolidate", "groups": len(grouped), "blocks": len(blocks)},
    )
    return blocks


def _layout_group(members: list[Segment]) -> list[ConsolidatedBlock]:
    ordered = sorted(members, key=lambda segment: (segment.start, segment.end))
    first = ordered[0]
    total = sum(checked_duration(segment) for segment in ordered)
    numbered = total > MAX_BLOCK_MINUTES

    blocks: list[ConsolidatedBlock] = []
    cursor = first.start
    for number, minutes in enumerate(chunk_minutes(total, MAX_BLOCK_MINUTES), start=1):
        end = offset_time(cursor, minutes, context="Consolidated block")
        label = first.label + PART_SUFFIX.format(number=number) if numbered else first.label
        blocks.append(
            ConsolidatedBlock(
                day=first.day,
                start=cursor,
                end=end,
                label=label,
                duration_minutes=minutes,
            )
        )
        cursor = end
    return blocks
