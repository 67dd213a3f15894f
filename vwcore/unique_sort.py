"""Sorting features by weight index and dropping duplicates."""

from __future__ import annotations

from operator import attrgetter
from typing import Iterable, TypeVar

from vwcore.example import AuditData, Example, Feature

_Indexed = TypeVar("_Indexed", Feature, AuditData)
_by_index = attrgetter("weight_index")


def unique_features(features: Iterable[_Indexed]) -> list[_Indexed]:
    """Drop runs of entries sharing a weight index, keeping the first of each run."""
    result: list[_Indexed] = []
    for item in features:
        if not result or item.weight_index != result[-1].weight_index:
            result.append(item)
    return result


def unique_sort_features(example: Example, audit: bool = False) -> None:
    """Sort every used namespace of ``example`` by weight index and deduplicate it."""
    example.sorted = True
    for namespace in example.indices:
        example.atomics[namespace] = unique_features(
            sorted(example.atomics.get(namespace, []), key=_by_index)
        )
        if audit:
            example.audit_features[namespace] = unique_features(
                sorted(example.audit_features.get(namespace, []), key=_by_index)
            )