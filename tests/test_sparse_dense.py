import random

import pytest

from vwcore.example import Feature
from vwcore.sparse_dense import (
    offset_quad_predict,
    one_of_quad_predict,
    one_pf_quad_predict,
    one_pf_quad_predict_trunc,
    quadratic,
    real_weight,
    sd_add,
    sd_offset_add,
    sd_offset_truncadd,
    sd_offset_update,
    sd_truncadd,
    sign,
    single_quad_weight,
)

MASK = 63


@pytest.fixture
def weights():
    rng = random.Random(7)
    return [rng.uniform(-1.0, 1.0) for _ in range(MASK + 1)]


@pytest.fixture
def page():
    return [Feature(0.5, 3), Feature(-2.0, 1000), Feature(1.25, 41)]


@pytest.fixture
def offers():
    return [Feature(1.5, 9), Feature(0.75, 123456), Feature(-1.0, 2)]


@pytest.mark.parametrize("w", [-3.5, -0.25, 0.0, 0.5, 7.0])
def test_sign_times_magnitude_restores_weight(w):
    assert sign(w) * abs(w) == w


@pytest.mark.parametrize("w", [-2.0, 1.5, 3.0])
def test_real_weight_without_gravity_is_identity(w):
    assert real_weight(w, 0.0) == w


def test_real_weight_is_zero_inside_gravity():
    assert real_weight(-0.3, 0.5) == 0.0


@pytest.mark.parametrize("w", [-2.0, 1.5])
def test_real_weight_shrinks_magnitude(w):
    gravity = 0.5
    result = real_weight(w, gravity)
    assert abs(result) == pytest.approx(abs(w) - gravity)
    assert sign(result) == sign(w)


def test_sd_add_masks_index():
    table = [0.0] * 8
    table[3] = 1.0
    assert sd_add(table, 7, [Feature(2.0, 11)]) == 2.0


def test_sd_add_empty_features(weights):
    assert sd_add(weights, MASK, []) == sd_offset_add(weights, MASK, [], 5)


def test_sd_truncadd_without_gravity_matches_sd_add(weights, page):
    assert sd_truncadd(weights, MASK, page, 0.0) == pytest.approx(sd_add(weights, MASK, page))


def test_sd_offset_add_zero_offset_matches_sd_add(weights, page):
    assert sd_offset_add(weights, MASK, page, 0) == pytest.approx(sd_add(weights, MASK, page))


def test_sd_offset_add_shifts_index():
    table = [0.0] * 8
    table[5] = 1.0
    assert sd_offset_add(table, 7, [Feature(4.0, 2)], 3) == 4.0


def test_sd_offset_truncadd_without_gravity(weights, offers):
    assert sd_offset_truncadd(weights, MASK, offers, 17, 0.0) == pytest.approx(
        sd_offset_add(weights, MASK, offers, 17)
    )


def test_sd_offset_update_adds_feature_value():
    table = [0.0] * 8
    sd_offset_update(table, 7, [Feature(2.5, 1)], 2, 1.0, 0.0)
    assert table[3] == 2.5
    assert sum(table) == 2.5


def test_sd_offset_update_full_regularization_clears():
    table = [1.0] * 8
    sd_offset_update(table, 7, [Feature(1.0, index) for index in range(8)], 0, 0.0, 1.0)
    assert table == [0.0] * 8
    assert sd_add(table, 7, [Feature(1.0, index) for index in range(8)]) == 0.0


def test_quadratic_with_zero_hash_keeps_second_indices():
    first = [Feature(2.0, 0)]
    second = [Feature(3.0, 5), Feature(0.5, 9)]
    crossed = quadratic(first, second, 7)
    assert [f.weight_index for f in crossed] == [s.weight_index & 7 for s in second]
    assert [f.x for f in crossed] == [first[0].x * s.x for s in second]


def test_quadratic_size_and_mask(page, offers):
    crossed = quadratic(page, offers, MASK)
    assert len(crossed) == len(page) * len(offers)
    assert all(f.weight_index & ~MASK == 0 for f in crossed)


def test_one_of_quad_predict_matches_crossed_dot(weights, page, offers):
    offer = offers[1]
    expected = sd_add(weights, MASK, quadratic(page, [offer], MASK))
    assert one_of_quad_predict(page, offer, weights, MASK) == pytest.approx(expected)


def test_one_pf_quad_predict_matches_crossed_dot(weights, page, offers):
    feature = page[1]
    expected = sd_add(weights, MASK, quadratic([feature], offers, MASK))
    assert one_pf_quad_predict(weights, feature, offers, MASK) == pytest.approx(expected)


def test_trunc_variant_without_gravity(weights, page, offers):
    assert one_pf_quad_predict_trunc(weights, page[0], offers, MASK, 0.0) == pytest.approx(
        one_pf_quad_predict(weights, page[0], offers, MASK)
    )


def test_offset_quad_predict_zero_offset(weights, page, offers):
    assert offset_quad_predict(weights, page[2], offers, MASK, 0) == pytest.approx(
        one_pf_quad_predict(weights, page[2], offers, MASK)
    )


def test_single_quad_weight_matches_one_of(weights, page, offers):
    assert single_quad_weight(weights, page[1], offers[0], MASK) == pytest.approx(
        one_of_quad_predict([page[1]], offers[0], weights, MASK)
    )