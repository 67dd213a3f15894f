"""Dot products and updates between sparse features and a dense weight table."""

from __future__ import annotations

from typing import Iterable, MutableSequence, Sequence

from vwcore.example import Feature

QUADRATIC_CONSTANT = 27942141
CONSTANT = 11650396

_U32 = 0xFFFFFFFF


def _halfhash(weight_index: int) -> int:
    """Left half of a quadratic feature's hash, kept to 32 bits."""
    return (QUADRATIC_CONSTANT * weight_index) & _U32


def sign(w: float) -> float:
    """-1 for negative weights, 1 otherwise (zero and NaN count as positive)."""
    if w < 0.0:
        return -1.0
    return 1.0


def real_weight(w: float, gravity: float) -> float:
    """Weight after truncation towards zero by ``gravity``."""
    if gravity < abs(w):
        return sign(w) * (abs(w) - gravity)
    return 0.0


def sd_add(weights: Sequence[float], mask: int, features: Iterable[Feature]) -> float:
    """Dot product of features with the weight table."""
    return sum((weights[f.weight_index & mask] * f.x for f in features), 0.0)


def sd_truncadd(
    weights: Sequence[float], mask: int, features: Iterable[Feature], gravity: float
) -> float:
    """Dot product using truncated weights."""
    return sum(
        (real_weight(weights[f.weight_index & mask], gravity) * f.x for f in features), 0.0
    )


def sd_offset_add(
    weights: Sequence[float], mask: int, features: Iterable[Feature], offset: int
) -> float:
    """Dot product with every weight index shifted by ``offset``."""
    return sum((weights[(f.weight_index + offset) & mask] * f.x for f in features), 0.0)


def sd_offset_truncadd(
    weights: Sequence[float],
    mask: int,
    features: Iterable[Feature],
    offset: int,
    gravity: float,
) -> float:
    """Shifted dot product using truncated weights."""
    return sum(
        (
            real_weight(weights[(f.weight_index + offset) & mask], gravity) * f.x
            for f in features
        ),
        0.0,
    )


def sd_offset_update(
    weights: MutableSequence[float],
    mask: int,
    features: Iterable[Feature],
    offset: int,
    update: float,
    regularization: float,
) -> None:
    """Add a scaled, regularized step to the weights the features touch."""
    for f in features:
        index = (f.weight_index + offset) & mask
        weights[index] += update * f.x - regularization * weights[index]


def quadratic(
    first_part: Iterable[Feature], second_part: Sequence[Feature], thread_mask: int
) -> list[Feature]:
    """All pairwise crossings of two feature lists."""
    crossed = []
    for left in first_part:
        half = _halfhash(left.weight_index)
        for right in second_part:
            index = ((half + right.weight_index) & thread_mask) & _U32
            crossed.append(Feature(left.x * right.x, index))
    return crossed


def one_of_quad_predict(
    page_features: Iterable[Feature],
    offer_feature: Feature,
    weights: Sequence[float],
    mask: int,
) -> float:
    """Prediction of the crossings of many page features with one offer feature."""
    prediction = sum(
        (
            weights[(_halfhash(page.weight_index) + offer_feature.weight_index) & mask] * page.x
            for page in page_features
        ),
        0.0,
    )
    return prediction * offer_feature.x


def one_pf_quad_predict(
    weights: Sequence[float], feature: Feature, cross_features: Iterable[Feature], mask: int
) -> float:
    """Prediction of the crossings of one feature with many others."""
    return feature.x * sd_offset_add(
        weights, mask, cross_features, _halfhash(feature.weight_index)
    )


def one_pf_quad_predict_trunc(
    weights: Sequence[float],
    feature: Feature,
    cross_features: Iterable[Feature],
    mask: int,
    gravity: float,
) -> float:
    """As :func:`one_pf_quad_predict`, with truncated weights."""
    return feature.x * sd_offset_truncadd(
        weights, mask, cross_features, _halfhash(feature.weight_index), gravity
    )


def offset_quad_predict(
    weights: Sequence[float],
    page_feature: Feature,
    offer_features: Iterable[Feature],
    mask: int,
    offset: int,
) -> float:
    """Crossed prediction with every weight index shifted by ``offset``."""
    half = _halfhash(page_feature.weight_index) + offset
    prediction = sum(
        (weights[(half + offer.weight_index) & mask] * offer.x for offer in offer_features),
        0.0,
    )
    return prediction * page_feature.x


def single_quad_weight(
    weights: Sequence[float], page_feature: Feature, offer_feature: Feature, mask: int
) -> float:
    """Contribution of a single crossed pair."""
    half = _halfhash(page_feature.weight_index)
    quad_weight = weights[(half + offer_feature.weight_index) & mask] * offer_feature.x
    return quad_weight * page_feature.x