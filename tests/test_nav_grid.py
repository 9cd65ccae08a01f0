"""Unit tests for the navigation grid: building, lookups and re-sampling."""

import numpy as np
import pytest

from dungeon_core.collision import BoxCollider, CircleCollider
from dungeon_core.context import CoreContext
from dungeon_core.event_system import Event
from dungeon_core.geometry import Vec2
from dungeon_core.nav_grid import NavigationGrid


def make_grid(size=(20.0, 20.0), colliders=()):
    """Build a grid of 1-unit cells centered on the origin."""
    context = CoreContext.create(seed=0)
    for collider in colliders:
        context.collision.add(collider)
    grid = NavigationGrid(context)
    assert grid.build(Vec2(0.0, 0.0), Vec2(*size))
    return context, grid


class TestBuild:
    """Tests for NavigationGrid.build."""

    def test_dimensions_follow_size_and_cell_diameter(self):
        _, grid = make_grid(size=(20.0, 10.0))
        assert grid.is_built
        assert (grid.width, grid.height) == (20, 10)
        assert grid.cell_count == 200

    def test_cell_centers_start_half_a_cell_from_bottom_left(self):
        _, grid = make_grid(size=(20.0, 10.0))
        assert grid.world_point(0, 0) == Vec2(-9.5, -4.5)
        assert grid.world_point(19, 9) == Vec2(9.5, 4.5)

    def test_open_world_is_fully_walkable(self):
        _, grid = make_grid()
        assert grid.walkable_mask().all()

    def test_box_collider_blocks_cells_it_covers(self):
        _, grid = make_grid(colliders=[BoxCollider(center=Vec2(0.0, 0.0), size=Vec2(4.0, 4.0))])
        mask = grid.walkable_mask()

        # Cells 8..11 on each axis have centers inside the box
        assert not mask[8:12, 8:12].any()
        # Far corners stay open
        assert mask[0, 0] and mask[19, 19]

    def test_collider_on_other_layer_is_ignored(self):
        _, grid = make_grid(colliders=[BoxCollider(center=Vec2(0.0, 0.0), size=Vec2(4.0, 4.0), layer=2)])
        assert grid.walkable_mask().all()

    def test_size_below_one_cell_fails_and_leaves_grid_unbuilt(self, caplog):
        """A world narrower than one cell rounds to zero cells and is rejected."""
        context = CoreContext.create(seed=0)
        grid = NavigationGrid(context)

        assert grid.build(Vec2(0.0, 0.0), Vec2(0.4, 5.0)) is False
        assert not grid.is_built
        assert grid.cell_from_world(Vec2(0.0, 0.0)) is None
        assert any("Invalid grid size" in rec.getMessage() for rec in caplog.records)

    def test_failed_rebuild_keeps_previous_grid(self):
        _, grid = make_grid(size=(6.0, 4.0))
        assert grid.build(Vec2(0.0, 0.0), Vec2(-3.0, 4.0)) is False
        assert grid.is_built
        assert (grid.width, grid.height) == (6, 4)

    def test_build_emits_grid_built(self):
        context = CoreContext.create(seed=0)
        seen = []
        context.event_bus.subscribe(Event.GRID_BUILT, seen.append)

        NavigationGrid(context).build(Vec2(0.0, 0.0), Vec2(3.0, 2.0))

        assert len(seen) == 1
        assert seen[0].kwargs == {"width": 3, "height": 2}


class TestLookup:
    """Tests for world-to-cell conversion and neighbors."""

    def test_cell_from_world_finds_containing_cell(self):
        _, grid = make_grid()
        assert grid.cell_from_world(Vec2(0.2, 0.7)) == (10, 10)
        assert grid.cell_from_world(Vec2(-0.2, -0.7)) == (9, 9)

    @pytest.mark.parametrize("position,expected", [
        (Vec2(1000.0, -1000.0), (19, 0)),
        (Vec2(-50.0, 50.0), (0, 19)),
        (Vec2(10.0, 10.0), (19, 19)),
    ])
    def test_cell_from_world_clamps_outside_points(self, position, expected):
        _, grid = make_grid()
        assert grid.cell_from_world(position) == expected

    def test_corner_has_three_neighbors_and_interior_has_eight(self):
        _, grid = make_grid()
        assert len(grid.neighbors(0, 0)) == 3
        assert len(grid.neighbors(5, 5)) == 8

    def test_out_of_range_cells_are_not_walkable(self):
        _, grid = make_grid()
        assert not grid.is_walkable(-1, 0)
        assert not grid.is_walkable(0, 20)

    def test_cell_snapshot(self):
        _, grid = make_grid(colliders=[CircleCollider(center=Vec2(0.5, 0.5), radius=0.2)])

        blocked = grid.cell(10, 10)
        assert (blocked.grid_x, blocked.grid_y) == (10, 10)
        assert blocked.world_position == Vec2(0.5, 0.5)
        assert not blocked.walkable
        assert grid.cell(0, 0).walkable

    def test_flat_index_round_trips_through_coords(self):
        _, grid = make_grid(size=(7.0, 3.0))
        assert grid.coords(grid.index(5, 2)) == (5, 2)


class TestIncrementalUpdates:
    """Tests for re-sampling after obstacles change."""

    def test_update_single_picks_up_new_collider(self):
        context, grid = make_grid()
        context.collision.add(CircleCollider(center=grid.world_point(4, 4), radius=0.2))

        assert grid.is_walkable(4, 4)
        assert grid.update_single(grid.world_point(4, 4)) is True
        assert not grid.is_walkable(4, 4)
        # Neighbors were not re-sampled
        assert grid.is_walkable(5, 4)

    def test_update_region_with_zero_radius_touches_one_cell(self):
        _, grid = make_grid()
        assert grid.update_region(grid.world_point(10, 10), 0.0) == 1

    def test_update_region_stays_within_radius(self):
        context, grid = make_grid()
        # Collider large enough to block a wide area, but only a small region is re-sampled
        context.collision.add(CircleCollider(center=Vec2(0.0, 0.0), radius=5.0))
        grid.update_region(Vec2(0.0, 0.0), 0.5)

        assert not grid.is_walkable(10, 10)
        assert grid.is_walkable(13, 10)

    def test_obstacle_placed_then_removed_restores_flags(self):
        """Placing and removing an obstacle at the same spot restores the grid exactly."""
        context, grid = make_grid(colliders=[BoxCollider(center=Vec2(-5.0, 5.0), size=Vec2(2.0, 6.0))])
        before = grid.walkable_mask()

        box = context.collision.add(CircleCollider(center=Vec2(3.3, -2.1), radius=1.2))
        grid.notify_obstacle_placed(Vec2(3.3, -2.1), 1.2)
        assert not np.array_equal(grid.walkable_mask(), before)

        box.enabled = False
        grid.notify_obstacle_removed(Vec2(3.3, -2.1), 1.2)
        assert np.array_equal(grid.walkable_mask(), before)

    @pytest.mark.parametrize("center,radius", [
        (Vec2(4.97, 5.5), 1.0),  # edge cell lies just past radius + cell radius
        (Vec2(10.0, 10.0), 0.3),
        (Vec2(2.46, 17.52), 2.5),
    ])
    def test_placed_obstacle_matches_full_rebuild(self, center, radius):
        """Incremental re-sampling after a placement agrees with building from scratch."""
        context = CoreContext.create(seed=0)
        grid = NavigationGrid(context)
        assert grid.build(Vec2(10.0, 10.0), Vec2(20.0, 20.0))

        context.collision.add(CircleCollider(center=center, radius=radius))
        grid.notify_obstacle_placed(center, radius)

        rebuilt = NavigationGrid(context)
        assert rebuilt.build(Vec2(10.0, 10.0), Vec2(20.0, 20.0))
        differing = list(zip(*np.nonzero(grid.walkable_mask() != rebuilt.walkable_mask())))
        assert differing == []

    def test_collider_removed_from_world_reopens_cells(self):
        context, grid = make_grid()
        pillar = context.collision.add(CircleCollider(center=Vec2(0.0, 0.0), radius=1.0))
        grid.notify_obstacle_placed(Vec2(0.0, 0.0), 1.0)
        assert not grid.is_walkable(10, 10)

        assert context.collision.remove(pillar) is True
        grid.notify_obstacle_removed(Vec2(0.0, 0.0), 1.0)

        assert grid.walkable_mask().all()
        assert context.collision.remove(pillar) is False

    def test_removal_while_collider_still_enabled_keeps_cells_blocked(self):
        context, grid = make_grid()
        context.collision.add(CircleCollider(center=Vec2(0.0, 0.0), radius=1.0))
        grid.notify_obstacle_placed(Vec2(0.0, 0.0), 1.0)

        grid.notify_obstacle_removed(Vec2(0.0, 0.0), 1.0)
        assert not grid.is_walkable(10, 10)

    def test_notifications_before_build_are_ignored(self):
        context = CoreContext.create(seed=0)
        grid = NavigationGrid(context)
        assert grid.notify_obstacle_placed(Vec2(0.0, 0.0), 1.0) == 0
        assert grid.notify_obstacle_removed(Vec2(0.0, 0.0), 1.0) == 0
        assert not grid.is_built
