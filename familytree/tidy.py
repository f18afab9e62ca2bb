#------------------------------------------------------------
#
# Tidy tree positioning (top-down orientation) after:
#
#   Improving Walker's Algorithm to Run in Linear Time
#   Christoph Buchheim, Michael Juenger, and Sebastian Leipert
#
#   Positioning Nodes for General Trees
#   John Q. Walker II
#
# Nodes are uniform cards. Preliminary x values are in "gap units": adjacent
# siblings (and the facing contours of neighbouring subtrees) are at least
# ``sibling_gap`` apart; the final pass scales by ``horizontal_scale``.
#------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Optional

from .config import LayoutConfig
from .direct_tree import DirectTree
from .models import Edge, Position

log = logging.getLogger(__name__)


class DrawNode:
    """Per-pass scratch state for one person in the direct tree."""

    __slots__ = (
        "id",
        "parent",
        "children",
        "number",
        "depth",
        "prelim",
        "mod",
        "thread",
        "ancestor",
        "change",
        "shift",
        "x",
        "_lmost_sibling",
    )

    def __init__(self, pid: str, parent: Optional[DrawNode] = None, depth: int = 0, number: int = 1):
        self.id = pid
        self.parent = parent
        self.children: list[DrawNode] = []
        # Position among siblings, 1..n.
        self.number = number
        self.depth = depth
        self.prelim = 0.0
        self.mod = 0.0
        self.thread: Optional[DrawNode] = None
        self.ancestor: DrawNode = self
        self.change = 0.0
        self.shift = 0.0
        self.x = 0.0
        self._lmost_sibling: Optional[DrawNode] = None

    def left(self) -> Optional[DrawNode]:
        return self.children[0] if self.children else self.thread

    def right(self) -> Optional[DrawNode]:
        return self.children[-1] if self.children else self.thread

    def lbrother(self) -> Optional[DrawNode]:
        if self.parent is None or self.number == 1:
            return None
        return self.parent.children[self.number - 2]

    @property
    def lmost_sibling(self) -> Optional[DrawNode]:
        if self._lmost_sibling is None and self.parent is not None and self is not self.parent.children[0]:
            self._lmost_sibling = self.parent.children[0]
        return self._lmost_sibling

    def __repr__(self) -> str:
        return f"DrawNode({self.id!r}, prelim={self.prelim}, mod={self.mod})"


def build_draw_tree(tree: DirectTree) -> Optional[DrawNode]:
    """Materialise the direct tree as ``DrawNode`` objects (iteratively)."""

    if tree.is_empty:
        return None
    root = DrawNode(tree.root_id)
    attached = {tree.root_id}
    stack = [root]
    while stack:
        node = stack.pop()
        for cid in tree.children(node.id):
            # Each child gets exactly one parent back-reference.
            if cid in attached:
                continue
            attached.add(cid)
            child = DrawNode(cid, node, node.depth + 1, len(node.children) + 1)
            node.children.append(child)
            stack.append(child)
    return root


def _place(v: DrawNode, gap: float) -> None:
    """Preliminary x of *v* once every child is walked and apportioned."""

    if not v.children:
        w = v.lbrother()
        v.prelim = w.prelim + gap if w is not None else 0.0
        return

    execute_shifts(v)

    midpoint = (v.children[0].prelim + v.children[-1].prelim) / 2
    w = v.lbrother()
    if w is not None:
        v.prelim = w.prelim + gap
        v.mod = v.prelim - midpoint
    else:
        v.prelim = midpoint


def first_walk(root: DrawNode, gap: float) -> None:
    """Post-order pass over an explicit stack.

    Each child is apportioned against its left siblings as soon as its own
    subtree is finished, before the next sibling is walked.
    """

    # Frames are [node, index of next child, default ancestor].
    stack: list[list] = [[root, 0, None]]
    while stack:
        frame = stack[-1]
        v, i = frame[0], frame[1]
        if i < len(v.children):
            if i == 0:
                frame[2] = v.children[0]
            frame[1] = i + 1
            stack.append([v.children[i], 0, None])
            continue

        stack.pop()
        _place(v, gap)
        if stack:
            parent_frame = stack[-1]
            parent_frame[2] = apportion(v, parent_frame[2], gap)


def apportion(v: DrawNode, default_ancestor: DrawNode, gap: float) -> DrawNode:
    w = v.lbrother()
    if w is None:
        return default_ancestor

    # In Buchheim notation: i = inner, o = outer, r = right, l = left.
    vir = vor = v
    vil = w
    vol = v.lmost_sibling
    sir = sor = v.mod
    sil = vil.mod
    sol = vol.mod
    while vil.right() is not None and vir.left() is not None:
        vil = vil.right()
        vir = vir.left()
        vol = vol.left()
        vor = vor.right()
        vor.ancestor = v
        shift = (vil.prelim + sil) - (vir.prelim + sir) + gap
        if shift > 0:
            move_subtree(ancestor(vil, v, default_ancestor), v, shift)
            sir += shift
            sor += shift
        sil += vil.mod
        sir += vir.mod
        sol += vol.mod
        sor += vor.mod

    if vil.right() is not None and vor.right() is None:
        vor.thread = vil.right()
        vor.mod += sil - sor
    if vir.left() is not None and vol.left() is None:
        vol.thread = vir.left()
        vol.mod += sir - sol
        default_ancestor = v
    return default_ancestor


def move_subtree(wl: DrawNode, wr: DrawNode, shift: float) -> None:
    # Spread the shift over the subtrees between wl and wr so spacing stays even.
    subtrees = wr.number - wl.number
    wr.change -= shift / subtrees
    wr.shift += shift
    wl.change += shift / subtrees
    wr.prelim += shift
    wr.mod += shift


def execute_shifts(v: DrawNode) -> None:
    shift = change = 0.0
    for w in reversed(v.children):
        w.prelim += shift
        w.mod += shift
        change += w.change
        shift += w.shift + change


def ancestor(vil: DrawNode, v: DrawNode, default_ancestor: DrawNode) -> DrawNode:
    if vil.ancestor.parent is v.parent:
        return vil.ancestor
    return default_ancestor


def second_walk(root: DrawNode) -> list[DrawNode]:
    """Resolve final x (prelim + ancestor modifiers); return nodes in pre-order."""

    out: list[DrawNode] = []
    stack: list[tuple[DrawNode, float]] = [(root, 0.0)]
    while stack:
        v, m = stack.pop()
        v.x = v.prelim + m
        out.append(v)
        for w in reversed(v.children):
            stack.append((w, m + v.mod))
    return out


def compute_tidy_layout(tree: DirectTree, config: LayoutConfig) -> tuple[dict[str, Position], list[Edge]]:
    root = build_draw_tree(tree)
    if root is None:
        return {}, []

    first_walk(root, config.sibling_gap)
    nodes = second_walk(root)

    half = config.node_width / 2
    raw: dict[str, tuple[float, float]] = {}
    for n in nodes:
        raw[n.id] = (n.x * config.horizontal_scale - half, n.depth * config.row_height)

    min_x = min(x for x, _ in raw.values())
    max_x = max(x + config.node_width for x, _ in raw.values())
    mid = (min_x + max_x) / 2

    positions = {
        pid: Position(x - mid, y, config.node_width, config.node_height)
        for pid, (x, y) in raw.items()
    }

    edges: list[Edge] = []
    for n in nodes:
        if not n.children:
            continue
        parent_pos = positions[n.id]
        x1 = parent_pos.center_x
        y1 = parent_pos.bottom
        jy = y1 + config.tidy_jog_offset
        for c in n.children:
            child_pos = positions[c.id]
            x2 = child_pos.center_x
            edges.append(
                Edge(
                    from_id=n.id,
                    to_id=c.id,
                    x1=x1,
                    y1=y1,
                    x2=x2,
                    y2=child_pos.y,
                    jx=(x1 + x2) / 2,
                    jy=jy,
                )
            )

    log.debug("Tidy layout placed %d nodes, %d edges", len(positions), len(edges))
    return positions, edges
