"""Layout routes: run a layout pass over posted records or the server dataset."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from ..config import LayoutConfig, LayoutConfigError
from ..direct_tree import resolve_direct_tree
from ..generations import assign_generations
from ..layout import LayoutResult, compute_layout
from ..records import RecordSet, load_records, load_records_file
from ..serialize import direct_tree_to_public, generations_to_public, layout_to_public

log = logging.getLogger(__name__)

router = APIRouter()

_DATA_ENV = "FAMILYTREE_DATA"


class RecordsPayload(BaseModel):
    people: list[dict[str, Any]] = []
    marriages: list[dict[str, Any]] = []
    links: list[dict[str, Any]] = []
    root_id: Optional[str] = None
    config: dict[str, Any] = {}


class LayoutRequest(RecordsPayload):
    mode: Literal["full", "compact", "focus"] = "compact"
    focus_id: Optional[str] = None


def _config_for(root_id: str | None, overrides: dict[str, Any] | None) -> LayoutConfig:
    opts = dict(overrides or {})
    if root_id and root_id.strip():
        opts["root_id"] = root_id.strip()
    try:
        return LayoutConfig.from_env().with_overrides(opts)
    except LayoutConfigError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _records_from(body: RecordsPayload) -> RecordSet:
    return load_records({"people": body.people, "marriages": body.marriages, "links": body.links})


@lru_cache(maxsize=4)
def _load_dataset(path: str) -> RecordSet:
    log.info("Loading dataset from %s", path)
    return load_records_file(Path(path))


def _dataset() -> RecordSet:
    path = (os.environ.get(_DATA_ENV) or "").strip()
    if not path:
        raise HTTPException(status_code=503, detail=f"No dataset configured (set {_DATA_ENV})")
    try:
        return _load_dataset(path)
    except FileNotFoundError as e:
        raise HTTPException(status_code=503, detail=f"Dataset not found: {path}") from e
    except ValueError as e:
        # json.JSONDecodeError is a ValueError too.
        raise HTTPException(status_code=503, detail=f"Dataset unreadable: {e}") from e


def _run_layout(
    records: RecordSet,
    config: LayoutConfig,
    mode: str,
    focus_id: str | None,
) -> dict[str, Any]:
    if mode == "focus":
        focus_id = (focus_id or "").strip() or None
        if focus_id is None:
            raise HTTPException(status_code=400, detail="focus_id is required for mode=focus")
        if focus_id not in records.people:
            raise HTTPException(status_code=404, detail="person not found")

    try:
        result: LayoutResult = compute_layout(records, config, mode=mode, focus_id=focus_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return layout_to_public(result, records, config.root_id)


@router.post("/layout")
def post_layout(body: LayoutRequest) -> dict[str, Any]:
    """Lay out the posted records.

    ``mode`` picks the strategy: ``full`` (tidy tree), ``compact`` (grid) or
    ``focus`` (``focus_id`` with ancestors and children). ``config`` overrides
    any ``LayoutConfig`` option for this request only.
    """

    config = _config_for(body.root_id, body.config)
    records = _records_from(body)
    return _run_layout(records, config, body.mode, body.focus_id)


@router.get("/layout")
def get_layout(
    mode: Literal["full", "compact", "focus"] = Query(default="compact"),
    focus: Optional[str] = Query(default=None),
    root: Optional[str] = Query(default=None),
) -> dict[str, Any]:
    """Lay out the server-side dataset named by ``FAMILYTREE_DATA``."""

    records = _dataset()
    config = _config_for(root, None)
    return _run_layout(records, config, mode, focus)


@router.post("/tree/generations")
def post_generations(body: RecordsPayload) -> dict[str, Any]:
    config = _config_for(body.root_id, body.config)
    records = _records_from(body)
    if config.root_id not in records.people:
        raise HTTPException(status_code=404, detail="root person not found")
    return generations_to_public(assign_generations(records, config.root_id), records, config.root_id)


@router.post("/tree/direct")
def post_direct_tree(body: RecordsPayload) -> dict[str, Any]:
    config = _config_for(body.root_id, body.config)
    records = _records_from(body)
    if config.root_id not in records.people:
        raise HTTPException(status_code=404, detail="root person not found")
    return direct_tree_to_public(resolve_direct_tree(records, config.root_id), records)
