"""
Tests for collision-avoiding placement.
"""

import pytest

from babelframe.layout import (
    PlacementPolicy,
    boxes_overlap,
    find_placement,
    plan_placements,
)
from babelframe.structures import Box


class TestBoxesOverlap:
    """Tests for the two-axis overlap predicate."""

    def test_overlap_on_both_axes(self):
        assert boxes_overlap(Box(0, 0, 10, 10), Box(5, 5, 10, 10))

    def test_single_axis_is_not_overlap(self):
        """Sharing only a horizontal or a vertical extent is not a collision."""
        assert not boxes_overlap(Box(0, 0, 10, 10), Box(5, 20, 10, 10))
        assert not boxes_overlap(Box(0, 0, 10, 10), Box(20, 5, 10, 10))

    def test_touching_edges(self):
        """Half-open intervals mean shared edges do not overlap."""
        assert not boxes_overlap(Box(0, 0, 10, 10), Box(10, 0, 10, 10))
        assert not boxes_overlap(Box(0, 0, 10, 10), Box(0, 10, 10, 10))


class TestFindPlacement:
    """Tests for the iterative settle."""

    def test_pushed_below_colliding_sibling(self):
        """A sibling under the template pushes the copy below it."""
        template = Box(x=0, y=100, width=200, height=50)
        siblings = [Box(x=0, y=150, width=200, height=20)]
        assert find_placement(template, siblings, gap=10) == 180

    def test_no_siblings(self):
        """Without obstacles the copy sits one gap below the template."""
        assert find_placement(Box(0, 100, 200, 50), [], gap=10) == 160

    def test_touching_sibling_is_not_a_collision(self):
        """A sibling starting exactly at the candidate's bottom stays put."""
        siblings = [Box(x=0, y=210, width=200, height=40)]
        assert find_placement(Box(0, 100, 200, 50), siblings, gap=10) == 160

    def test_sibling_outside_horizontal_extent_is_ignored(self):
        siblings = [Box(x=300, y=150, width=100, height=100)]
        assert find_placement(Box(0, 100, 200, 50), siblings, gap=10) == 160

    def test_cascading_obstacles(self):
        """Each displacement rescans, so chains of obstacles are cleared."""
        siblings = [
            Box(x=150, y=400, width=100, height=30),
            Box(x=0, y=170, width=50, height=100),
            Box(x=50, y=280, width=50, height=100),
        ]
        y = find_placement(Box(0, 100, 200, 50), siblings, gap=10)
        assert y == 440

    def test_result_never_overlaps(self):
        """The settled box overlaps no sibling on both axes."""
        template = Box(0, 0, 120, 80)
        siblings = [
            Box(-50, 60, 100, 30),
            Box(100, 100, 300, 300),
            Box(0, 420, 10, 10),
            Box(500, 0, 50, 5000),
            Box(60, 435, 40, 60),
        ]
        for gap in (0, 5, 25, 100):
            y = find_placement(template, siblings, gap)
            placed = template.moved_to(y)
            assert not any(boxes_overlap(placed, sibling) for sibling in siblings)

    def test_idempotent(self):
        """Identical inputs give identical results."""
        template = Box(0, 100, 200, 50)
        siblings = [Box(0, 150, 200, 20), Box(0, 190, 200, 200)]
        assert find_placement(template, siblings, 10) == find_placement(
            template, siblings, 10
        )

    def test_negative_gap_rejected(self):
        with pytest.raises(ValueError):
            find_placement(Box(0, 0, 10, 10), [], gap=-1)


class TestPlanPlacements:
    """Tests for the two multi-copy policies."""

    def test_policies_disagree_around_obstacle(self):
        """Batch stacking ignores obstacles that incremental placement avoids."""
        template = Box(0, 0, 100, 50)
        obstacle = Box(0, 120, 100, 50)

        incremental = plan_placements(
            template, [obstacle], 2, 10, PlacementPolicy.INCREMENTAL
        )
        batch = plan_placements(template, [obstacle], 2, 10, PlacementPolicy.BATCH)

        assert incremental == [60, 180]
        assert batch == [60, 120]

    def test_incremental_copies_do_not_overlap_each_other(self):
        template = Box(0, 0, 100, 50)
        ys = plan_placements(template, [], 4, 0, PlacementPolicy.INCREMENTAL)
        placed = [template.moved_to(y) for y in ys]
        for index, box in enumerate(placed):
            for other in placed[index + 1 :]:
                assert not boxes_overlap(box, other)

    def test_zero_copies(self):
        assert plan_placements(Box(0, 0, 1, 1), [], 0, 10, PlacementPolicy.BATCH) == []
