import random

import pytest

from fontatlas.errors import PackingOverflowError
from fontatlas.glyphs import SizeRequest
from fontatlas.packer import MaxRectsBin, Placement, pack_rectangles, page_count


def _requests(*sizes):
    return [SizeRequest(tag=i + 1, width=w, height=h) for i, (w, h) in enumerate(sizes)]


def _random_requests(seed, count=120, largest=40):
    rng = random.Random(seed)
    return [
        SizeRequest(tag=i, width=rng.randint(1, largest), height=rng.randint(1, largest))
        for i in range(count)
    ]


def assert_no_overlap(placements):
    by_page = {}
    for p in placements:
        by_page.setdefault(p.page, []).append(p)
    for group in by_page.values():
        for i, a in enumerate(group):
            for b in group[i + 1:]:
                assert not a.intersects(b), f"{a} overlaps {b}"


def assert_in_bounds(placements, width, height):
    for p in placements:
        assert p.x >= 0 and p.y >= 0
        assert p.x + p.width <= width and p.y + p.height <= height, p


class TestMaxRectsBin:
    def test_first_rectangle_goes_top_left(self):
        bin_ = MaxRectsBin(64, 64)
        placement = bin_.insert(SizeRequest(tag=7, width=30, height=20))
        assert placement == Placement(tag=7, x=0, y=0, width=30, height=20, page=0)

    def test_reference_scenario(self):
        bin_ = MaxRectsBin(64, 64)
        placed = [bin_.insert(r) for r in _requests((30, 20), (20, 20), (10, 10))]
        assert [(p.x, p.y) for p in placed] == [(0, 0), (30, 0), (50, 0)]
        assert_no_overlap(placed)

        # The band below the first row is still a 64x44 free rectangle
        fourth = bin_.insert(SizeRequest(tag=4, width=40, height=40))
        assert (fourth.x, fourth.y) == (0, 20)
        assert_no_overlap(placed + [fourth])

    def test_no_candidate_returns_none(self):
        bin_ = MaxRectsBin(64, 64)
        for r in _requests((30, 20), (20, 20), (10, 10)):
            bin_.insert(r)
        assert bin_.insert(SizeRequest(tag=4, width=40, height=50)) is None

    def test_best_area_fit_prefers_tightest_space(self):
        bin_ = MaxRectsBin(100, 50)
        bin_.insert(SizeRequest(tag=1, width=80, height=30))
        # Free space is now a 20x50 column on the right and a 100x20 band below;
        # a 20x20 square leaves less area in the column.
        placement = bin_.insert(SizeRequest(tag=2, width=20, height=20))
        assert (placement.x, placement.y) == (80, 0)

    def test_exact_fill(self):
        bin_ = MaxRectsBin(20, 20)
        placed = [bin_.insert(SizeRequest(tag=i, width=10, height=10)) for i in range(4)]
        assert sorted((p.x, p.y) for p in placed) == [(0, 0), (0, 10), (10, 0), (10, 10)]
        assert bin_.insert(SizeRequest(tag=9, width=1, height=1)) is None

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            MaxRectsBin(64, 64).insert(SizeRequest(tag=1, width=0, height=5))
        with pytest.raises(ValueError):
            MaxRectsBin(0, 64)

    def test_free_list_is_pruned(self):
        bin_ = MaxRectsBin(64, 64)
        for r in _random_requests(3, count=30, largest=12):
            bin_.insert(r)
        free = bin_._free
        for i, a in enumerate(free):
            assert a.width > 0 and a.height > 0
            for j, b in enumerate(free):
                if i != j:
                    assert not b.contains(a), f"{a} is inside {b}"


class TestPackRectangles:
    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_no_overlap_and_in_bounds(self, seed):
        placements = pack_rectangles(_random_requests(seed), 128, 128)
        assert len(placements) == 120
        assert_no_overlap(placements)
        assert_in_bounds(placements, 128, 128)

    def test_placements_follow_request_order_and_echo_sizes(self):
        requests = _random_requests(5, count=40)
        placements = pack_rectangles(requests, 128, 128)
        for request, placement in zip(requests, placements):
            assert placement.tag == request.tag
            assert (placement.width, placement.height) == (request.width, request.height)

    def test_deterministic(self):
        requests = _random_requests(11)
        assert pack_rectangles(requests, 96, 96) == pack_rectangles(requests, 96, 96)

    def test_overflow_opens_new_page(self):
        placements = pack_rectangles(_requests((30, 20), (20, 20), (10, 10), (40, 50)), 64, 64)
        assert [p.page for p in placements] == [0, 0, 0, 1]
        assert (placements[3].x, placements[3].y) == (0, 0)
        assert page_count(placements) == 2

    def test_earlier_pages_are_reused(self):
        requests = _requests((60, 60), (60, 60), (4, 4))
        placements = pack_rectangles(requests, 64, 64)
        assert [p.page for p in placements] == [0, 1, 0]

    def test_page_limit(self):
        requests = _requests((30, 20), (20, 20), (10, 10), (40, 50))
        with pytest.raises(PackingOverflowError, match="glyph 4"):
            pack_rectangles(requests, 64, 64, max_pages=1)

    def test_rectangle_larger_than_page(self):
        with pytest.raises(PackingOverflowError, match="larger than the 64x64 page"):
            pack_rectangles(_requests((10, 10), (65, 10)), 64, 64)

    def test_many_pages_stay_valid(self):
        placements = pack_rectangles(_random_requests(8, count=200, largest=30), 64, 64)
        assert page_count(placements) > 1
        assert_no_overlap(placements)
        assert_in_bounds(placements, 64, 64)

    def test_empty_input(self):
        assert pack_rectangles([], 64, 64) == []
        assert page_count([]) == 0
