from __future__ import annotations

from dataclasses import replace
from typing import Any

from .direct_tree import DirectTree
from .layout import LayoutResult
from .models import Bounds, Edge, Person, Position
from .records import RecordSet, spouse_attachments


def _drop_empty(fields: dict[str, Any]) -> dict[str, Any]:
    """Drop None and blank-string values from a flat node payload (0 stays)."""

    out: dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        elif value is None:
            continue
        out[key] = value
    return out


def _round(v: float) -> float:
    # Payload coordinates carry two decimals.
    return round(float(v), 2)


def _person_to_public(p: Person, pos: Position | None = None) -> dict[str, Any]:
    node: dict[str, Any] = {
        "id": p.id,
        "name": p.name,
        "gender": p.gender.value,
        "birth": p.birth_date,
        "death": p.death_date,
        "birthPlace": p.birth_place,
        "title": p.title,
        "generation": p.generation,
    }
    if pos is not None:
        node.update(
            {
                "x": _round(pos.x),
                "y": _round(pos.y),
                "width": _round(pos.width),
                "height": _round(pos.height),
                "centerX": _round(pos.center_x),
            }
        )
    return _drop_empty(node)


def _edge_to_public(e: Edge, generation: int | None) -> dict[str, Any]:
    return {
        "from": e.from_id,
        "to": e.to_id,
        "x1": _round(e.x1),
        "y1": _round(e.y1),
        "x2": _round(e.x2),
        "y2": _round(e.y2),
        "jX": _round(e.jx),
        "jY": _round(e.jy),
        "jY2": None if e.jy2 is None else _round(e.jy2),
        "generation": generation,
        "points": [[_round(x), _round(y)] for x, y in e.waypoints()],
    }


def _bounds_to_public(b: Bounds) -> dict[str, float]:
    return {
        "minX": _round(b.min_x),
        "maxX": _round(b.max_x),
        "minY": _round(b.min_y),
        "maxY": _round(b.max_y),
    }


def layout_to_public(result: LayoutResult, records: RecordSet, root_id: str) -> dict[str, Any]:
    """JSON payload consumed by the renderer."""

    gen_of = result.generation_of

    nodes: list[dict[str, Any]] = []
    for pid, pos in result.positions.items():
        person = records.people.get(pid) or Person(id=pid)
        if person.generation is None and pid in gen_of:
            person = replace(person, generation=gen_of[pid])
        nodes.append(_person_to_public(person, pos))

    edges = [
        _edge_to_public(e, e.generation if e.generation is not None else gen_of.get(e.to_id))
        for e in result.edges
    ]

    spouses = {
        partner: ids
        for partner, ids in spouse_attachments(records, root_id).items()
        if partner in result.positions
    }

    out: dict[str, Any] = {
        "mode": result.mode,
        "rootId": root_id,
        "nodes": nodes,
        "edges": edges,
        "bounds": _bounds_to_public(result.bounds),
        "generations": list(result.generations),
        "spouses": spouses,
    }
    if result.focus_id is not None:
        out["focusId"] = result.focus_id
        out["ancestors"] = list(result.ancestors)
        out["directChildren"] = list(result.direct_children)
    return out


def generations_to_public(generations: dict[str, int], records: RecordSet, root_id: str) -> dict[str, Any]:
    by_level: dict[int, list[str]] = {}
    for pid, gen in generations.items():
        by_level.setdefault(gen, []).append(pid)
    return {
        "rootId": root_id,
        "generations": {pid: generations[pid] for pid in sorted(generations)},
        "levels": [{"generation": g, "people": sorted(by_level[g])} for g in sorted(by_level)],
        "unassigned": sorted(pid for pid in records.people if pid not in generations),
    }


def direct_tree_to_public(tree: DirectTree, records: RecordSet) -> dict[str, Any]:
    return {
        "rootId": tree.root_id,
        "order": list(tree.order),
        "parents": {cid: tree.chosen_parent_of[cid] for cid in sorted(tree.chosen_parent_of)},
        "children": {pid: list(kids) for pid, kids in tree.children_of.items()},
        "excluded": sorted(pid for pid in records.people if pid not in tree.in_tree),
    }
