from __future__ import annotations

import logging

from .records import RecordSet

log = logging.getLogger(__name__)


def assign_generations(records: RecordSet, root_id: str) -> dict[str, int]:
    """Return person -> generation offset relative to *root_id*.

    Root is generation 0, a parent of someone at ``g`` is ``g - 1`` and a child
    is ``g + 1``. Every person connected to the root through parent or child
    links is assigned exactly once: the first visit wins, later visits are
    no-ops, which also breaks cycles in the source data.

    The walk is depth-first with an explicit stack, so the result is the same
    pre-order a recursive walk would give. Expansion order is fixed: parents
    (families by id, husband slot then wife slot) before children (families by
    id, children by id). Input row order therefore never changes the result.
    """

    if root_id not in records.people:
        log.warning("Root %s not found; no generations assigned", root_id)
        return {}

    generations: dict[str, int] = {}
    stack: list[tuple[str, int]] = [(root_id, 0)]

    while stack:
        pid, gen = stack.pop()
        if pid in generations:
            continue
        if pid not in records.people:
            # Referenced by a family row but never defined as a person.
            continue
        generations[pid] = gen

        upward: list[tuple[str, int]] = []
        for fid in records.child_to_families.get(pid, ()):
            for parent_id in records.families[fid].parents:
                upward.append((parent_id, gen - 1))

        downward: list[tuple[str, int]] = []
        for fid in records.parent_to_families.get(pid, ()):
            for child_id in sorted(records.families[fid].children):
                downward.append((child_id, gen + 1))

        # Pushed in reverse so the first neighbour is popped first.
        for item in reversed(upward + downward):
            if item[0] not in generations:
                stack.append(item)

    log.debug("Assigned generations to %d of %d people", len(generations), len(records.people))
    return generations


def generation_levels(generations: dict[str, int]) -> list[int]:
    """Distinct generation numbers, ascending."""
    return sorted(set(generations.values()))
