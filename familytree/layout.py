"""Layout strategies.

Three interchangeable strategies share one interface: ``full`` (tidy tree of
uniform cards), ``compact`` (grid-packed content-sized cards) and ``focus``
(one person with ancestors and children).

Every pass starts from the record snapshot, assigns generations, resolves the
direct tree where needed and returns a fresh ``LayoutResult``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from .config import LayoutConfig
from .direct_tree import resolve_direct_tree
from .focus import compute_focus_layout
from .generations import assign_generations, generation_levels
from .grid import compute_compact_layout
from .models import Bounds, Edge, Position
from .records import RecordSet, with_generations
from .tidy import compute_tidy_layout

log = logging.getLogger(__name__)

# Canvas used by the renderer when there is nothing to show.
_EMPTY_BOUNDS = Bounds(min_x=0.0, max_x=1000.0, min_y=0.0, max_y=1000.0)


@dataclass(frozen=True)
class LayoutResult:
    mode: str
    positions: dict[str, Position] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    generations: list[int] = field(default_factory=list)
    # Generation of every positioned person that has one.
    generation_of: dict[str, int] = field(default_factory=dict)
    bounds: Bounds = _EMPTY_BOUNDS
    focus_id: Optional[str] = None
    ancestors: list[str] = field(default_factory=list)
    direct_children: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.positions


def compute_bounds(positions: dict[str, Position], padding: float) -> Bounds:
    if not positions:
        return _EMPTY_BOUNDS
    return Bounds(
        min_x=min(p.x for p in positions.values()) - padding,
        max_x=max(p.right for p in positions.values()) + padding,
        min_y=min(p.y for p in positions.values()) - padding,
        max_y=max(p.bottom for p in positions.values()) + padding,
    )


class LayoutStrategy(ABC):
    name: str = ""

    @abstractmethod
    def compute(self, records: RecordSet, config: LayoutConfig) -> LayoutResult:
        raise NotImplementedError

    def _prepare(self, records: RecordSet, config: LayoutConfig) -> RecordSet:
        generations = assign_generations(records, config.root_id)
        return with_generations(records, generations)

    def _result(self, records: RecordSet, config: LayoutConfig, positions, edges, **extra) -> LayoutResult:
        generation_of = {
            pid: records.people[pid].generation
            for pid in positions
            if pid in records.people and records.people[pid].generation is not None
        }
        return LayoutResult(
            mode=self.name,
            positions=positions,
            edges=edges,
            generations=generation_levels(generation_of),
            generation_of=generation_of,
            bounds=compute_bounds(positions, config.bounds_padding),
            **extra,
        )


class FullTreeStrategy(LayoutStrategy):
    """Tidy tree of the direct tree, uniform cards."""

    name = "full"

    def compute(self, records: RecordSet, config: LayoutConfig) -> LayoutResult:
        records = self._prepare(records, config)
        tree = resolve_direct_tree(records, config.root_id)
        positions, edges = compute_tidy_layout(tree, config)
        log.info("Full tree layout: %d people, %d edges", len(positions), len(edges))
        return self._result(records, config, positions, edges)


class CompactStrategy(LayoutStrategy):
    """Grid-packed direct tree with content-sized cards."""

    name = "compact"

    def compute(self, records: RecordSet, config: LayoutConfig) -> LayoutResult:
        records = self._prepare(records, config)
        tree = resolve_direct_tree(records, config.root_id)
        positions, edges = compute_compact_layout(records, tree, config)
        log.info("Compact layout: %d people, %d edges", len(positions), len(edges))
        return self._result(records, config, positions, edges)


class FocusStrategy(LayoutStrategy):
    """One person's ancestors and direct children."""

    name = "focus"

    def __init__(self, focus_id: str) -> None:
        self.focus_id = focus_id

    def compute(self, records: RecordSet, config: LayoutConfig) -> LayoutResult:
        records = self._prepare(records, config)
        focus = compute_focus_layout(records, self.focus_id, config)
        log.info("Focus layout for %s: %d people", self.focus_id, len(focus.positions))
        return self._result(
            records,
            config,
            focus.positions,
            focus.edges,
            focus_id=focus.focus_id,
            ancestors=focus.ancestors,
            direct_children=focus.direct_children,
        )


LAYOUT_MODES = ("full", "compact", "focus")


def get_strategy(mode: str, focus_id: Optional[str] = None) -> LayoutStrategy:
    m = (mode or "").strip().lower()
    if m == "full":
        return FullTreeStrategy()
    if m == "compact":
        return CompactStrategy()
    if m == "focus":
        if not focus_id:
            raise ValueError("focus layout requires a focus person id")
        return FocusStrategy(focus_id)
    raise ValueError(f"unknown layout mode: {mode!r} (expected one of {', '.join(LAYOUT_MODES)})")


def compute_layout(
    records: RecordSet,
    config: LayoutConfig,
    mode: str = "compact",
    focus_id: Optional[str] = None,
) -> LayoutResult:
    return get_strategy(mode, focus_id).compute(records, config)
