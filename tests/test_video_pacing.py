import pytest

from post_video.adapters.video import plan_image_pacing


def test_excess_images_are_dropped_to_keep_minimum_dwell():
    plan = plan_image_pacing(20, 40.0)

    assert len(plan) == 10
    assert [index for index, _ in plan] == list(range(10))
    assert all(seconds >= 4.0 for _, seconds in plan)
    assert sum(seconds for _, seconds in plan) == pytest.approx(40.0)


def test_even_split_inside_bounds_uses_every_image():
    plan = plan_image_pacing(7, 35.0)

    assert [index for index, _ in plan] == list(range(7))
    assert all(seconds == pytest.approx(5.0) for _, seconds in plan)


def test_few_images_repeat_to_respect_maximum_dwell():
    plan = plan_image_pacing(5, 60.0)

    assert len(plan) == 10
    assert [index for index, _ in plan] == [0, 1, 2, 3, 4, 0, 1, 2, 3, 4]
    assert all(seconds <= 6.0 for _, seconds in plan)


def test_minimum_dwell_wins_over_maximum():
    plan = plan_image_pacing(1, 7.0)

    assert plan == [(0, pytest.approx(7.0))]


def test_nothing_to_pace():
    assert plan_image_pacing(0, 30.0) == []
    assert plan_image_pacing(3, 0.0) == []
