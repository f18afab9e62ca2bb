from __future__ import annotations

import pytest

from familytree.config import LayoutConfig
from familytree.direct_tree import resolve_direct_tree
from familytree.layout import compute_layout
from familytree.tidy import build_draw_tree, compute_tidy_layout


def test_two_children_side_by_side_under_centred_root(make_records, config) -> None:
    records = make_records(["R", "A", "B"], [("F1", "R", None, ["A", "B"])])
    tree = resolve_direct_tree(records, "R")

    positions, edges = compute_tidy_layout(tree, config)

    r, a, b = positions["R"], positions["A"], positions["B"]
    assert a.y == b.y == config.row_height
    assert r.y == 0
    assert a.right <= b.x
    assert b.center_x - a.center_x >= config.sibling_gap * config.horizontal_scale
    assert r.center_x == pytest.approx((a.center_x + b.center_x) / 2)
    assert r.center_x == pytest.approx(0.0)

    assert [(e.from_id, e.to_id) for e in edges] == [("R", "A"), ("R", "B")]
    for e in edges:
        assert e.jy2 is None
        assert e.y1 == r.bottom
        assert e.jy == r.bottom + config.tidy_jog_offset
        assert len(e.waypoints()) == 4


def test_lone_root_is_centred_on_origin(make_records, config) -> None:
    tree = resolve_direct_tree(make_records(["R"], []), "R")

    positions, edges = compute_tidy_layout(tree, config)

    assert edges == []
    assert positions["R"].x == pytest.approx(-config.node_width / 2)
    assert positions["R"].y == 0
    assert positions["R"].center_x == pytest.approx(0.0)


def test_empty_tree_has_no_positions(make_records, config) -> None:
    tree = resolve_direct_tree(make_records(["A"], []), "R")
    assert compute_tidy_layout(tree, config) == ({}, [])


def _subtree(tree, pid: str) -> set[str]:
    out = {pid}
    stack = [pid]
    while stack:
        for c in tree.children(stack.pop()):
            out.add(c)
            stack.append(c)
    return out


def _depths(tree) -> dict[str, int]:
    depth = {tree.root_id: 0}
    for pid in tree.order:
        for c in tree.children(pid):
            depth[c] = depth[pid] + 1
    return depth


def test_sibling_subtree_contours_keep_the_minimum_gap(make_records, config) -> None:
    records = make_records(
        ["R", "A", "B", "C", "A1", "A2", "A3", "A31", "A32", "C1", "C11", "C12", "C13", "C111"],
        [
            ("F0", "R", None, ["A", "B", "C"]),
            ("FA", "A", None, ["A1", "A2", "A3"]),
            ("FA3", "A3", None, ["A31", "A32"]),
            ("FC", "C", None, ["C1"]),
            ("FC1", "C1", None, ["C11", "C12", "C13"]),
            ("FC11", "C11", None, ["C111"]),
        ],
    )
    tree = resolve_direct_tree(records, "R")
    positions, _edges = compute_tidy_layout(tree, config)
    depth = _depths(tree)
    min_sep = config.sibling_gap * config.horizontal_scale - 1e-6

    assert set(positions) == tree.in_tree
    for parent in tree.order:
        kids = tree.children(parent)
        for i, left in enumerate(kids):
            for right in kids[i + 1:]:
                ls, rs = _subtree(tree, left), _subtree(tree, right)
                for d in {depth[p] for p in ls} & {depth[p] for p in rs}:
                    right_contour = max(positions[p].center_x for p in ls if depth[p] == d)
                    left_contour = min(positions[p].center_x for p in rs if depth[p] == d)
                    assert left_contour - right_contour >= min_sep

    # Cards on one row never overlap.
    rows: dict[float, list] = {}
    for pos in positions.values():
        rows.setdefault(pos.y, []).append(pos)
    for row in rows.values():
        row.sort(key=lambda p: p.x)
        for a, b in zip(row, row[1:]):
            assert a.right <= b.x

    # Parents sit over the middle of their children.
    for parent in tree.order:
        kids = tree.children(parent)
        if kids:
            mid = (positions[kids[0]].center_x + positions[kids[-1]].center_x) / 2
            assert positions[parent].center_x == pytest.approx(mid)


def test_draw_tree_numbers_siblings(make_records) -> None:
    tree = resolve_direct_tree(make_records(["R", "A", "B"], [("F1", "R", None, ["A", "B"])]), "R")

    root = build_draw_tree(tree)

    assert [c.id for c in root.children] == ["A", "B"]
    assert [c.number for c in root.children] == [1, 2]
    assert root.children[1].lbrother() is root.children[0]
    assert root.children[0].lbrother() is None
    assert all(c.depth == 1 for c in root.children)


def test_deep_single_line_chain_lays_out_without_recursion_limit(make_records) -> None:
    ids = [f"P{i:04d}" for i in range(1500)]
    families = [(f"F{i:04d}", ids[i], None, [ids[i + 1]]) for i in range(len(ids) - 1)]
    records = make_records(ids, families)
    config = LayoutConfig(root_id="P0000")

    result = compute_layout(records, config, mode="full")

    assert len(result.positions) == 1500
    assert len(result.edges) == 1499
    assert all(p.center_x == pytest.approx(0.0) for p in result.positions.values())
    assert result.positions["P1499"].y == pytest.approx(1499 * config.row_height)
