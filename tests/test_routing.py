from __future__ import annotations

from familytree.config import LayoutConfig
from familytree.models import Position
from familytree.routing import EdgeRouter, path_hits_box, segment_hits_box


def test_segment_hits_box_includes_the_border() -> None:
    box = Position(0, 100, 100, 40)
    assert segment_hits_box((100, 0), (100, 300), box)
    assert not segment_hits_box((101, 0), (101, 300), box)
    assert segment_hits_box((-50, 120), (50, 120), box)
    assert not path_hits_box([(-50, 0), (-50, 90), (200, 90)], box)


def test_clear_path_gets_a_single_jog_at_the_midpoint() -> None:
    cfg = LayoutConfig()
    router = EdgeRouter({"P": Position(0, 0, 100, 40), "D": Position(200, 200, 100, 40)}, cfg)

    edge = router.route("P", "D", generation=1)

    assert edge is not None
    assert (edge.x1, edge.y1, edge.x2, edge.y2) == (50, 40, 250, 200)
    # Midpoint 120 snapped to the 25px lane grid.
    assert edge.jy == 125
    assert edge.jy2 is None
    assert edge.generation == 1
    assert edge.waypoints() == [(50, 40), (50, 125), (250, 125), (250, 200)]


def test_card_between_parent_and_child_forces_a_two_jog_detour() -> None:
    cfg = LayoutConfig()
    x_box = Position(0, 100, 100, 40)
    positions = {
        "P": Position(0, 0, 100, 40),
        "X": x_box,
        "D": Position(0, 200, 100, 40),
    }
    router = EdgeRouter(positions, cfg)

    assert router.cards_in_path("P", "D") == [x_box]
    edge = router.route("P", "D")

    assert edge is not None
    assert edge.jy2 is not None
    assert positions["P"].bottom < edge.jy < x_box.y
    assert x_box.bottom < edge.jy2 < positions["D"].y
    assert not (x_box.x <= edge.jx <= x_box.right)
    for a, b in edge.segments():
        assert not segment_hits_box(a, b, x_box)
    pts = edge.waypoints()
    assert pts[0] == (50, 40)
    assert pts[-1] == (50, 200)


def test_overlapping_runs_of_different_parents_use_different_lanes() -> None:
    cfg = LayoutConfig()
    positions = {
        "P1": Position(0, 0, 100, 40),
        "P2": Position(150, 0, 100, 40),
        "D1": Position(300, 200, 100, 40),
        "D3": Position(500, 200, 100, 40),
        "D2": Position(-100, 200, 100, 40),
    }
    router = EdgeRouter(positions, cfg)

    e1 = router.route("P1", "D1")
    e3 = router.route("P1", "D3")
    e2 = router.route("P2", "D2")

    # Siblings share their parent's bus.
    assert e1.jy == e3.jy == 125
    assert e2.jy == 150


def test_lane_falls_back_to_preferred_elevation_when_band_is_full() -> None:
    cfg = LayoutConfig(lane_max_offset=0)
    router = EdgeRouter({}, cfg)

    first = router.claim_lane("A", 0, 100, 120, 40, 200)
    second = router.claim_lane("B", 0, 100, 120, 40, 200)

    assert first == 125
    assert second == 120


def test_missing_endpoint_is_not_routed() -> None:
    router = EdgeRouter({"P": Position(0, 0, 100, 40)}, LayoutConfig())
    assert router.route("P", "nobody") is None


def test_obstacle_wider_than_the_search_window_is_routed_around() -> None:
    cfg = LayoutConfig()
    # Far wider than span + 2 * route_min_search around the midpoint.
    wide = Position(-500, 100, 1100, 40)
    positions = {
        "P": Position(0, 0, 100, 40),
        "X": wide,
        "D": Position(0, 200, 100, 40),
    }
    assert wide.width > 2 * cfg.route_min_search

    edge = EdgeRouter(positions, cfg).route("P", "D")

    assert edge is not None
    assert edge.jy2 is not None
    assert edge.jx < wide.x or edge.jx > wide.right
    for a, b in edge.segments():
        assert not segment_hits_box(a, b, wide)


def test_detour_clears_every_card_in_a_crowded_band() -> None:
    cfg = LayoutConfig()
    positions = {
        "P": Position(0, 0, 100, 40),
        "D": Position(0, 300, 100, 40),
        "X1": Position(-700, 100, 900, 40),
        "X2": Position(-100, 180, 1000, 40),
    }

    edge = EdgeRouter(positions, cfg).route("P", "D")

    assert edge.jy2 is not None
    for name in ("X1", "X2"):
        for a, b in edge.segments():
            assert not segment_hits_box(a, b, positions[name]), name
