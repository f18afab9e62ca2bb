"""Layout configuration.

Every tunable constant used by the positioners and the edge router lives on
``LayoutConfig``. Build it once (defaults, ``from_env`` or ``with_overrides``)
and pass it into each layout pass. Invalid values are rejected here so that
layout code never has to guard against them.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Mapping

DEFAULT_ROOT_ID = "[I0000]"

_ENV_PREFIX = "FAMILYTREE_"


class LayoutConfigError(ValueError):
    """Raised for configuration values no layout pass can work with."""


@dataclass(frozen=True)
class LayoutConfig:
    root_id: str = DEFAULT_ROOT_ID

    # Tidy tree (uniform cards).
    node_width: float = 250.0
    node_height: float = 120.0
    row_height: float = 260.0
    sibling_gap: float = 70.0
    horizontal_scale: float = 4.0
    tidy_jog_offset: float = 40.0

    # Grid packing (compact and focus views).
    grid_columns: int = 12
    nominal_total_width: float = 1920.0
    min_card_width: float = 40.0
    base_card_height: float = 36.0
    birth_line_height: float = 8.0
    card_padding: float = 24.0
    min_h_gap: float = 20.0
    min_v_gap: float = 30.0
    row_stagger: float = 8.0
    max_scan_rows: int = 1000

    # Edge routing.
    lane_spacing: float = 25.0
    lane_buffer: float = 15.0
    lane_max_offset: int = 5
    route_clearance: float = 20.0
    route_approach: float = 10.0
    route_search_step: float = 30.0
    route_min_search: float = 200.0

    # Focus view.
    ancestor_depth_limit: int = 20

    bounds_padding: float = 5.0

    def __post_init__(self) -> None:
        if not str(self.root_id or "").strip():
            raise LayoutConfigError("root_id must not be empty")

        positive = (
            "node_width",
            "node_height",
            "row_height",
            "sibling_gap",
            "horizontal_scale",
            "grid_columns",
            "nominal_total_width",
            "min_card_width",
            "base_card_height",
            "lane_spacing",
            "route_search_step",
            "max_scan_rows",
            "ancestor_depth_limit",
        )
        for name in positive:
            if getattr(self, name) <= 0:
                raise LayoutConfigError(f"{name} must be > 0 (got {getattr(self, name)!r})")

        non_negative = (
            "tidy_jog_offset",
            "birth_line_height",
            "card_padding",
            "min_h_gap",
            "min_v_gap",
            "row_stagger",
            "lane_buffer",
            "lane_max_offset",
            "route_clearance",
            "route_approach",
            "route_min_search",
            "bounds_padding",
        )
        for name in non_negative:
            if getattr(self, name) < 0:
                raise LayoutConfigError(f"{name} must be >= 0 (got {getattr(self, name)!r})")

        if not isinstance(self.grid_columns, int) or isinstance(self.grid_columns, bool):
            raise LayoutConfigError("grid_columns must be an integer")

    @property
    def column_width(self) -> float:
        return self.nominal_total_width / self.grid_columns

    def with_overrides(self, overrides: Mapping[str, Any] | None) -> LayoutConfig:
        """Return a copy with *overrides* applied (validated like any other config)."""

        if not overrides:
            return self
        known = {f.name: f for f in fields(self)}
        changes: dict[str, Any] = {}
        for key, value in overrides.items():
            f = known.get(key)
            if f is None:
                raise LayoutConfigError(f"unknown layout option: {key}")
            changes[key] = _coerce(key, value, type(getattr(self, key)))
        return replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LayoutConfig:
        """Build a config from ``FAMILYTREE_<OPTION>`` environment variables.

        E.g. ``FAMILYTREE_ROOT_ID=[I0001]`` or ``FAMILYTREE_GRID_COLUMNS=16``.
        """

        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(_ENV_PREFIX + f.name.upper())
            if raw is None or not raw.strip():
                continue
            overrides[f.name] = raw.strip()
        return cls().with_overrides(overrides)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _coerce(name: str, value: Any, target: type) -> Any:
    if target is str:
        return str(value)
    try:
        if target is int:
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(value)
            return int(value)
        return float(value)
    except (TypeError, ValueError):
        raise LayoutConfigError(f"{name} must be a number (got {value!r})") from None
