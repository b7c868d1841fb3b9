"""Filtering, facets and compatibility search over a user's loop catalog."""

from typing import Iterable, Optional

from pydantic import BaseModel, Field, field_validator

from .models import Loop

# Two loops are tempo-compatible within this fraction of the first loop's BPM
BPM_TOLERANCE = 0.08


class LoopFilter(BaseModel):
    """
    Catalog filter. Every criterion that is set must match.

    Tags are matched as a subset of the loop's tags; a BPM range excludes
    loops without a BPM.
    """

    part_type: Optional[str] = None
    bpm_min: Optional[int] = Field(default=None, ge=0)
    bpm_max: Optional[int] = Field(default=None, ge=0)
    key: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    starred_only: bool = False
    imported_only: bool = False
    query: str = ""

    @field_validator("part_type", "key", mode="before")
    @classmethod
    def _blank_is_unset(cls, value):
        return value or None

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, value):
        return (value or "").strip()

    @classmethod
    def from_query_params(cls, params) -> "LoopFilter":
        """Build from a QueryDict; `tag` may be repeated or comma separated."""
        tags = []
        for raw in params.getlist("tag") + params.getlist("tags"):
            tags.extend(t.strip() for t in raw.split(",") if t.strip())
        return cls(
            part_type=params.get("part_type"),
            bpm_min=params.get("bpm_min") or None,
            bpm_max=params.get("bpm_max") or None,
            key=params.get("key"),
            tags=tags,
            starred_only=_truthy(params.get("starred")),
            imported_only=_truthy(params.get("imported")),
            query=params.get("q", ""),
        )

    @property
    def has_bpm_range(self) -> bool:
        return self.bpm_min is not None or self.bpm_max is not None

    @property
    def is_active(self) -> bool:
        return self != LoopFilter()

    def matches(self, loop: Loop) -> bool:
        if self.part_type is not None and loop.part_type != self.part_type:
            return False
        if self.has_bpm_range:
            if loop.bpm is None:
                return False
            if self.bpm_min is not None and loop.bpm < self.bpm_min:
                return False
            if self.bpm_max is not None and loop.bpm > self.bpm_max:
                return False
        if self.key is not None and loop.key != self.key:
            return False
        if self.tags and not set(self.tags) <= set(loop.tags or []):
            return False
        if self.starred_only and not loop.is_starred:
            return False
        if self.imported_only and not loop.is_imported:
            return False
        if self.query:
            needle = self.query.casefold()
            haystacks = (loop.song_title, loop.song_artist, loop.part_type)
            if not any(needle in h.casefold() for h in haystacks):
                return False
        return True

    def apply(self, loops: Iterable[Loop]) -> list[Loop]:
        """Matching loops, newest first."""
        result = [loop for loop in loops if self.matches(loop)]
        result.sort(key=lambda loop: loop.date_created, reverse=True)
        return result


def _truthy(value) -> bool:
    return str(value).lower() in ("1", "true", "yes", "on")


def available_part_types(loops: Iterable[Loop]) -> list[str]:
    return sorted({loop.part_type for loop in loops})


def available_keys(loops: Iterable[Loop]) -> list[str]:
    return sorted({loop.key for loop in loops if loop.key})


def available_tags(loops: Iterable[Loop]) -> list[str]:
    return sorted({tag for loop in loops for tag in (loop.tags or [])})


def is_compatible(loop: Loop, candidate: Loop) -> bool:
    """Keys match and tempos are within tolerance. Unknown values always match."""
    key_match = loop.key is None or candidate.key is None or loop.key == candidate.key
    if loop.bpm is not None and candidate.bpm is not None:
        bpm_match = abs(loop.bpm - candidate.bpm) <= loop.bpm * BPM_TOLERANCE
    else:
        bpm_match = True
    return key_match and bpm_match


def find_compatible_loops(loop: Loop, loops: Iterable[Loop]) -> list[Loop]:
    """Every other loop that can be played alongside `loop`."""
    return [c for c in loops if c.id != loop.id and is_compatible(loop, c)]
