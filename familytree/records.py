"""Record snapshots consumed by the layout engine.

The tabular parser lives outside this package; here we only normalise its
output (people, marriages, parent/child links) into a ``RecordSet`` with the
indexes every traversal needs. A ``RecordSet`` is built once per data load and
treated as read-only by every layout pass.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Iterable, Mapping

from .models import Family, Marriage, ParentChildLink, Person, normalize_gender

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordSet:
    people: dict[str, Person]
    families: dict[str, Family]
    links: tuple[ParentChildLink, ...] = ()
    child_ids: frozenset[str] = frozenset()
    child_to_families: dict[str, tuple[str, ...]] = field(default_factory=dict)
    parent_to_families: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def is_child(self, pid: str) -> bool:
        """True when *pid* appears as a child in any parent/child link."""
        return pid in self.child_ids

    def parents_of(self, pid: str) -> list[str]:
        out: list[str] = []
        for fid in self.child_to_families.get(pid, ()):
            for parent_id in self.families[fid].parents:
                if parent_id not in out:
                    out.append(parent_id)
        return out

    def name_of(self, pid: str) -> str:
        p = self.people.get(pid)
        return p.name if p else ""

    def generations(self) -> dict[str, int]:
        return {pid: p.generation for pid, p in self.people.items() if p.generation is not None}


def build_record_set(
    people: Iterable[Person],
    marriages: Iterable[Marriage],
    links: Iterable[ParentChildLink],
) -> RecordSet:
    people_by_id: dict[str, Person] = {}
    for p in people:
        if p.id in people_by_id:
            log.debug("Duplicate person id %s ignored", p.id)
            continue
        people_by_id[p.id] = p

    families: dict[str, Family] = {}
    for m in marriages:
        if m.id in families:
            log.debug("Duplicate family id %s ignored", m.id)
            continue
        families[m.id] = Family(
            id=m.id,
            husband_id=m.husband_id or None,
            wife_id=m.wife_id or None,
            date=m.date,
            place=m.place,
        )

    kept_links: list[ParentChildLink] = []
    child_ids: set[str] = set()
    child_to_families: dict[str, set[str]] = {}
    for link in links:
        if not link.child_id:
            continue
        # Child-ness is a property of the person, even when the family row is missing.
        child_ids.add(link.child_id)
        fam = families.get(link.family_id)
        if fam is None:
            log.debug("Link %s -> %s references unknown family", link.family_id, link.child_id)
            continue
        if link.child_id in fam.children:
            continue
        fam.children.append(link.child_id)
        kept_links.append(link)
        child_to_families.setdefault(link.child_id, set()).add(fam.id)

    parent_to_families: dict[str, set[str]] = {}
    for fam in families.values():
        for pid in fam.parents:
            parent_to_families.setdefault(pid, set()).add(fam.id)

    return RecordSet(
        people=people_by_id,
        families=families,
        links=tuple(kept_links),
        child_ids=frozenset(child_ids),
        child_to_families={k: tuple(sorted(v)) for k, v in child_to_families.items()},
        parent_to_families={k: tuple(sorted(v)) for k, v in parent_to_families.items()},
    )


def with_generations(records: RecordSet, generations: Mapping[str, int]) -> RecordSet:
    """Return a new snapshot whose people carry their assigned generation."""

    people = {
        pid: replace(p, generation=generations.get(pid))
        for pid, p in records.people.items()
    }
    return replace(records, people=people)


# ---------------------------------------------------------------------------
# Loading from JSON-like payloads
# ---------------------------------------------------------------------------


def _field(row: Mapping[str, Any], *names: str) -> str:
    for n in names:
        v = row.get(n)
        if v is None:
            continue
        s = str(v).strip()
        if s:
            return s
    return ""


def _person_from_row(row: Mapping[str, Any]) -> Person | None:
    pid = _field(row, "id")
    if not pid:
        return None
    name = _field(row, "name", "display_name", "displayName")
    if not name:
        name = " ".join(
            x for x in (_field(row, "given", "given_name"), _field(row, "surname")) if x
        )
    return Person(
        id=pid,
        name=name or "Unknown",
        gender=normalize_gender(_field(row, "gender", "sex")),
        birth_date=_field(row, "birth_date", "birthDate", "birth"),
        death_date=_field(row, "death_date", "deathDate", "death"),
        birth_place=_field(row, "birth_place", "birthPlace"),
        title=_field(row, "title"),
        note=_field(row, "note"),
    )


def _marriage_from_row(row: Mapping[str, Any]) -> Marriage | None:
    fid = _field(row, "id")
    if not fid:
        return None
    return Marriage(
        id=fid,
        husband_id=_field(row, "husband_id", "husbandId", "husband") or None,
        wife_id=_field(row, "wife_id", "wifeId", "wife") or None,
        date=_field(row, "date"),
        place=_field(row, "place"),
    )


def _link_from_row(row: Mapping[str, Any]) -> ParentChildLink | None:
    fid = _field(row, "family_id", "familyId")
    cid = _field(row, "child_id", "childId")
    if not fid or not cid:
        return None
    return ParentChildLink(family_id=fid, child_id=cid)


def _rows(payload: Mapping[str, Any], *keys: str) -> list[Mapping[str, Any]]:
    for k in keys:
        v = payload.get(k)
        if isinstance(v, list):
            return [r for r in v if isinstance(r, Mapping)]
    return []


def load_records(payload: Mapping[str, Any]) -> RecordSet:
    """Build a ``RecordSet`` from ``{"people": [...], "marriages": [...], "links": [...]}``.

    Rows without an id are skipped; snake_case and camelCase keys are accepted.
    """

    people = [p for p in (_person_from_row(r) for r in _rows(payload, "people", "persons")) if p]
    marriages = [
        m for m in (_marriage_from_row(r) for r in _rows(payload, "marriages", "families")) if m
    ]
    links = [
        lk
        for lk in (_link_from_row(r) for r in _rows(payload, "links", "family_children", "familyChildren"))
        if lk
    ]
    records = build_record_set(people, marriages, links)
    log.info(
        "Loaded %d people, %d families, %d child links",
        len(records.people),
        len(records.families),
        len(records.links),
    )
    return records


def _iter_jsonl(path: Path) -> Iterable[dict[str, Any]]:
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            yield json.loads(line)


def load_records_file(path: Path | str) -> RecordSet:
    """Load records from a JSON document or a typed JSONL stream.

    JSONL lines carry ``"type": "person" | "marriage" | "link"``.
    """

    path = Path(path)
    if path.suffix.lower() == ".jsonl":
        grouped: dict[str, list[dict[str, Any]]] = {"people": [], "marriages": [], "links": []}
        bucket = {"person": "people", "marriage": "marriages", "family": "marriages", "link": "links"}
        for rec in _iter_jsonl(path):
            key = bucket.get(str(rec.get("type") or "").strip().lower())
            if key is None:
                log.debug("Skipping JSONL row without a known type: %r", rec)
                continue
            grouped[key].append(rec)
        return load_records(grouped)

    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, Mapping):
        raise ValueError(f"{path}: expected a JSON object with people/marriages/links")
    return load_records(data)


# ---------------------------------------------------------------------------
# Spouse attachments
# ---------------------------------------------------------------------------


def is_spouse_only(records: RecordSet, pid: str, root_id: str) -> bool:
    """A person who only married into the tree (a parent slot, never a child)."""

    if pid == root_id or records.is_child(pid):
        return False
    return pid in records.parent_to_families


def spouse_attachments(records: RecordSet, root_id: str) -> dict[str, list[str]]:
    """Map partner id -> spouse-only people drawn next to that partner.

    A spouse-only person is attached to the first partner (families in id
    order) who is a blood child, otherwise to their first partner.
    """

    out: dict[str, list[str]] = {}
    for pid in sorted(records.people):
        if not is_spouse_only(records, pid, root_id):
            continue

        partners: list[str] = []
        for fid in records.parent_to_families.get(pid, ()):
            fam = records.families[fid]
            other = fam.wife_id if fam.husband_id == pid else fam.husband_id
            if other and other != pid and other not in partners:
                partners.append(other)
        if not partners:
            continue

        chosen = next((x for x in partners if records.is_child(x)), partners[0])
        out.setdefault(chosen, []).append(pid)
    return out
