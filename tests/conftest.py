from __future__ import annotations

from typing import Callable, Iterable, Optional, Union

import pytest

from familytree.config import LayoutConfig
from familytree.models import Marriage, ParentChildLink, Person
from familytree.records import RecordSet, build_record_set

# (id) or (id, name) or (id, name, birth_date)
PersonSpec = Union[str, tuple]
# (family_id, husband_id, wife_id, [child ids])
FamilySpec = tuple[str, Optional[str], Optional[str], list[str]]


def build_records(people: Iterable[PersonSpec], families: Iterable[FamilySpec]) -> RecordSet:
    persons: list[Person] = []
    for p in people:
        if isinstance(p, str):
            persons.append(Person(id=p, name=p))
            continue
        pid, name, *rest = p
        persons.append(Person(id=pid, name=name, birth_date=rest[0] if rest else ""))

    marriages: list[Marriage] = []
    links: list[ParentChildLink] = []
    for fid, husband, wife, children in families:
        marriages.append(Marriage(id=fid, husband_id=husband, wife_id=wife))
        links.extend(ParentChildLink(family_id=fid, child_id=c) for c in children)
    return build_record_set(persons, marriages, links)


@pytest.fixture()
def make_records() -> Callable[..., RecordSet]:
    return build_records


@pytest.fixture()
def config() -> LayoutConfig:
    return LayoutConfig(root_id="R")
