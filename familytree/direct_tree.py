"""Reduce the family graph to a proper tree rooted at one person.

A child listed in several families has several candidate parents. The direct
tree keeps exactly one parent edge per child so the layout can treat the data
as a tree, following the blood line rather than forking through in-laws.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field

from .records import RecordSet

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectTree:
    root_id: str
    chosen_parent_of: dict[str, str] = field(default_factory=dict)
    in_tree: frozenset[str] = frozenset()
    children_of: dict[str, list[str]] = field(default_factory=dict)
    # BFS discovery order, root first.
    order: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.in_tree

    def children(self, pid: str) -> list[str]:
        return self.children_of.get(pid, [])

    def path_to_root(self, pid: str) -> list[str]:
        """Chosen-parent chain from *pid* up to the root (inclusive).

        Returns an empty list for people outside the tree.
        """

        if pid not in self.in_tree:
            return []
        out = [pid]
        cur = pid
        # Bounded by tree size even if the invariant were ever broken.
        for _ in range(len(self.in_tree)):
            if cur == self.root_id:
                return out
            cur = self.chosen_parent_of[cur]
            out.append(cur)
        raise RuntimeError(f"chosen-parent chain from {pid} does not reach the root")


def _parent_to_children(records: RecordSet) -> dict[str, list[str]]:
    out: dict[str, set[str]] = {}
    for fid in sorted(records.families):
        fam = records.families[fid]
        for pid in fam.parents:
            out.setdefault(pid, set()).update(fam.children)
    return {pid: sorted(kids) for pid, kids in out.items()}


def _display_key(records: RecordSet, pid: str) -> tuple[str, str, str]:
    name = records.name_of(pid)
    return (name.casefold(), name, pid)


def resolve_direct_tree(records: RecordSet, root_id: str) -> DirectTree:
    if root_id not in records.people:
        log.warning("Root %s not found; direct tree is empty", root_id)
        return DirectTree(root_id=root_id)

    parent_to_children = _parent_to_children(records)

    chosen_parent_of: dict[str, str] = {}
    in_tree: set[str] = {root_id}
    order: list[str] = [root_id]
    queue: deque[str] = deque([root_id])

    while queue:
        parent_id = queue.popleft()
        for child_id in parent_to_children.get(parent_id, ()):
            if child_id == root_id:
                # Source data lists the root as someone's child: a cycle.
                log.debug("Ignoring cyclic edge %s -> root %s", parent_id, root_id)
                continue
            if child_id not in records.people:
                continue

            chosen = chosen_parent_of.get(child_id)
            if chosen is not None:
                if chosen == parent_id and child_id not in in_tree:
                    in_tree.add(child_id)
                    order.append(child_id)
                    queue.append(child_id)
                continue

            candidates = [pid for pid in records.parents_of(child_id) if pid in in_tree]
            if not candidates:
                # Picked up later once one of its parents becomes reachable.
                continue

            preferred = [pid for pid in candidates if records.is_child(pid)]
            pick = min(preferred or candidates)
            chosen_parent_of[child_id] = pick

            if pick == parent_id and child_id not in in_tree:
                in_tree.add(child_id)
                order.append(child_id)
                queue.append(child_id)

    children_of: dict[str, list[str]] = {}
    for child_id, parent_id in chosen_parent_of.items():
        if child_id in in_tree and parent_id in in_tree:
            children_of.setdefault(parent_id, []).append(child_id)
    for kids in children_of.values():
        kids.sort(key=lambda cid: _display_key(records, cid))

    log.debug("Direct tree from %s holds %d people", root_id, len(in_tree))
    return DirectTree(
        root_id=root_id,
        chosen_parent_of={c: p for c, p in chosen_parent_of.items() if c in in_tree},
        in_tree=frozenset(in_tree),
        children_of=children_of,
        order=tuple(order),
    )
