"""Loss functions with their updates, derivatives and reverting weights."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class LabelBounds:
    """Range of predictions; ``adjustable`` allows a loss to widen it."""

    min_label: float = 0.0
    max_label: float = 1.0
    adjustable: bool = True


def _exp(x: float) -> float:
    try:
        return math.exp(x)
    except OverflowError:
        return math.inf


def _log(x: float) -> float:
    if x > 0:
        return math.log(x)
    if x == 0:
        return -math.inf
    return math.nan


class LossFunction(ABC):
    """Interface shared by all losses."""

    def __init__(self, bounds: LabelBounds | None = None) -> None:
        self.bounds = bounds if bounds is not None else LabelBounds()

    @abstractmethod
    def get_loss(self, prediction: float, label: float) -> float:
        """Loss of one prediction."""

    @abstractmethod
    def get_update(self, prediction: float, label: float, eta_t: float, norm: float) -> float:
        """Scalar update for a step of size ``eta_t``."""

    @abstractmethod
    def get_reverting_weight(self, prediction: float, eta_t: float) -> float:
        """Importance weight that would move the prediction across the midpoint."""

    @abstractmethod
    def get_square_grad(self, prediction: float, label: float) -> float:
        """Squared gradient of the loss."""

    @abstractmethod
    def first_derivative(self, prediction: float, label: float) -> float:
        """Derivative of the loss with respect to the prediction."""

    @abstractmethod
    def second_derivative(self, prediction: float, label: float) -> float:
        """Second derivative of the loss with respect to the prediction."""


class SquaredLoss(LossFunction):
    """Squared loss, linear outside the label bounds."""

    def get_loss(self, prediction, label):
        lo, hi = self.bounds.min_label, self.bounds.max_label
        if lo <= prediction <= hi:
            return (prediction - label) * (prediction - label)
        if prediction < lo:
            if label == lo:
                return 0.0
            return (label - lo) * (label - lo) + 2.0 * (label - lo) * (lo - prediction)
        if label == hi:
            return 0.0
        return (hi - label) * (hi - label) + 2.0 * (hi - label) * (prediction - hi)

    def get_update(self, prediction, label, eta_t, norm):
        if eta_t < 1e-6:
            # First-order expansion avoids cancellation in 1 - exp(-eta_t).
            return (label - prediction) * eta_t / norm
        return (label - prediction) * (1 - math.exp(-eta_t)) / norm

    def get_reverting_weight(self, prediction, eta_t):
        t = 0.5 * (self.bounds.min_label + self.bounds.max_label)
        alternative = self.bounds.min_label if prediction > t else self.bounds.max_label
        return _log((alternative - prediction) / (alternative - t)) / eta_t

    def get_square_grad(self, prediction, label):
        return (prediction - label) * (prediction - label)

    def first_derivative(self, prediction, label):
        prediction = min(max(prediction, self.bounds.min_label), self.bounds.max_label)
        return 2.0 * (prediction - label)

    def second_derivative(self, prediction, label):
        lo, hi = self.bounds.min_label, self.bounds.max_label
        if lo <= prediction <= hi:
            return 2.0
        if prediction < lo:
            return 2.0 * (label - lo)
        return 2.0 * (hi - label)


class ClassicSquaredLoss(LossFunction):
    """Plain squared loss with a linear update."""

    def get_loss(self, prediction, label):
        return (prediction - label) * (prediction - label)

    def get_update(self, prediction, label, eta_t, norm):
        return eta_t * (label - prediction) / norm

    def get_reverting_weight(self, prediction, eta_t):
        t = 0.5 * (self.bounds.min_label + self.bounds.max_label)
        alternative = self.bounds.min_label if prediction > t else self.bounds.max_label
        return (t - prediction) / ((alternative - prediction) * eta_t)

    def get_square_grad(self, prediction, label):
        return (prediction - label) * (prediction - label)

    def first_derivative(self, prediction, label):
        return 2.0 * (prediction - label)

    def second_derivative(self, prediction, label):
        return 2.0


class HingeLoss(LossFunction):
    """Hinge loss for labels in {-1, 1}."""

    def get_loss(self, prediction, label):
        e = 1 - label * prediction
        return e if e > 0 else 0.0

    def get_update(self, prediction, label, eta_t, norm):
        if label * prediction >= label * label:
            return 0.0
        err = (label * label - label * prediction) / (label * label)
        return label * min(eta_t, err) / norm

    def get_reverting_weight(self, prediction, eta_t):
        return abs(prediction) / eta_t

    def get_square_grad(self, prediction, label):
        return self.first_derivative(prediction, label)

    def first_derivative(self, prediction, label):
        return 0.0 if label * prediction >= label * label else -label

    def second_derivative(self, prediction, label):
        return 0.0


class LogisticLoss(LossFunction):
    """Logistic loss for labels in {-1, 1}."""

    def get_loss(self, prediction, label):
        return math.log(1 + _exp(-label * prediction))

    def get_update(self, prediction, label, eta_t, norm):
        d = _exp(label * prediction)
        if eta_t < 1e-6:
            return label * eta_t / ((1 + d) * norm)
        x = eta_t + label * prediction + d
        w = self.wexpmx(x)
        return -(label * w + prediction) / norm

    def wexpmx(self, x: float) -> float:
        """Approximate W(exp(x)) - x, W being the Lambert W function.

        The absolute error is below 9e-5.
        """
        w = 0.86 * x + 0.01 if x >= 1.0 else math.exp(0.8 * x - 0.65)
        r = x - math.log(w) - w if x >= 1.0 else 0.2 * x + 0.65 - w
        t = 1.0 + w
        u = 2.0 * t * (t + 2.0 * r / 3.0)
        return w * (1.0 + r / t * (u - r) / (u - 2.0 * r)) - x

    def get_reverting_weight(self, prediction, eta_t):
        z = -abs(prediction)
        return (1 - z - math.exp(z)) / eta_t

    def first_derivative(self, prediction, label):
        return -label / (1 + _exp(label * prediction))

    def get_square_grad(self, prediction, label):
        d = self.first_derivative(prediction, label)
        return d * d

    def second_derivative(self, prediction, label):
        p = 1 / (1 + _exp(label * prediction))
        return p * (1 - p)


class QuantileLoss(LossFunction):
    """Quantile (pinball) loss with parameter ``tau``."""

    def __init__(self, tau: float = 0.5, bounds: LabelBounds | None = None) -> None:
        super().__init__(bounds)
        self.tau = tau

    def get_loss(self, prediction, label):
        e = label - prediction
        if e > 0:
            return self.tau * e
        return -(1 - self.tau) * e

    def get_update(self, prediction, label, eta_t, norm):
        err = label - prediction
        if err == 0:
            return 0.0
        if err > 0:
            normal = self.tau * eta_t
            return self.tau * (normal if normal < err else err) / norm
        normal = -(1 - self.tau) * eta_t
        return (normal if normal < -err else err) / norm

    def get_reverting_weight(self, prediction, eta_t):
        t = 0.5 * (self.bounds.min_label + self.bounds.max_label)
        v = -(1 - self.tau) if prediction > t else self.tau
        return (t - prediction) / (eta_t * v)

    def first_derivative(self, prediction, label):
        e = label - prediction
        if e == 0:
            return 0.0
        return -self.tau if e > 0 else 1 - self.tau

    def get_square_grad(self, prediction, label):
        fd = self.first_derivative(prediction, label)
        return fd * fd

    def second_derivative(self, prediction, label):
        return 0.0


def get_loss_function(
    name: str, parameter: float = 0.0, bounds: LabelBounds | None = None
) -> LossFunction:
    """Build a loss by name; logistic widens adjustable bounds to [-100, 100]."""
    if bounds is None:
        bounds = LabelBounds()
    if name == "squared":
        return SquaredLoss(bounds)
    if name == "classic":
        return ClassicSquaredLoss(bounds)
    if name == "hinge":
        return HingeLoss(bounds)
    if name == "logistic":
        if bounds.adjustable:
            bounds.min_label = -100.0
            bounds.max_label = 100.0
        return LogisticLoss(bounds)
    if name in ("quantile", "pinball", "absolute"):
        return QuantileLoss(parameter, bounds)
    raise ValueError(f"Invalid loss function name: '{name}' Bailing!")