"""Core example records: labels, features and parsed examples."""

from __future__ import annotations

from dataclasses import dataclass, field, fields

FLT_MAX = 3.4028234663852886e38
NUM_NAMESPACES = 256


@dataclass
class LabelData:
    """Label, importance weight and initial prediction of an example."""

    label: float = FLT_MAX
    weight: float = 1.0
    initial: float = 0.0


@dataclass(eq=False)
class Feature:
    """A hashed feature: its value and its index into the weight table.

    Two features compare equal when they share a weight index.
    """

    x: float
    weight_index: int

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Feature):
            return NotImplemented
        return self.weight_index == other.weight_index

    def __hash__(self) -> int:
        return hash(self.weight_index)


@dataclass
class AuditData:
    """Human-readable record of a feature, kept when auditing."""

    space: str
    feature: str
    weight_index: int
    x: float


def _check_namespace(namespace: int) -> None:
    if not 0 <= namespace < NUM_NAMESPACES:
        raise ValueError(f"namespace index out of range: {namespace}")


@dataclass
class Example:
    """A parsed example: label, tag and features grouped by namespace."""

    ld: LabelData = field(default_factory=LabelData)
    tag: str = ""
    example_counter: int = 0
    indices: list[int] = field(default_factory=list)
    atomics: dict[int, list[Feature]] = field(default_factory=dict)
    audit_features: dict[int, list[AuditData]] = field(default_factory=dict)
    sum_feat_sq: dict[int, float] = field(default_factory=dict)
    pass_number: int = 0
    partial_prediction: float = 0.0
    topic_predictions: list[float] = field(default_factory=list)
    final_prediction: float = 0.0
    global_prediction: float = 0.0
    loss: float = 0.0
    eta_round: float = 0.0
    eta_global: float = 0.0
    global_weight: float = 0.0
    example_t: float = 0.0
    total_sum_feat_sq: float = 0.0
    revert_weight: float = 0.0
    sorted: bool = False
    in_use: bool = False
    done: bool = False

    def add_feature(self, namespace: int, feature: Feature) -> None:
        """Append a feature to a namespace, recording the namespace on first use."""
        _check_namespace(namespace)
        bucket = self.atomics.setdefault(namespace, [])
        if not bucket:
            self.indices.append(namespace)
        bucket.append(feature)
        self.sum_feat_sq[namespace] = self.sum_feat_sq.get(namespace, 0.0) + feature.x * feature.x

    def features(self, namespace: int) -> list[Feature]:
        """Features stored under a namespace (empty if none)."""
        _check_namespace(namespace)
        return self.atomics.get(namespace, [])

    def num_features(self) -> int:
        """Total number of features over all used namespaces."""
        return sum(len(self.atomics.get(index, [])) for index in self.indices)

    def reset(self) -> None:
        """Return the example to its freshly created state."""
        fresh = Example()
        for f in fields(self):
            setattr(self, f.name, getattr(fresh, f.name))


@dataclass
class PartialExample:
    """Features of one example gathered from several sources."""

    example_number: int = 0
    ld: LabelData = field(default_factory=LabelData)
    features: list[Feature] = field(default_factory=list)

    def reset(self) -> None:
        """Drop the gathered features."""
        self.features.clear()