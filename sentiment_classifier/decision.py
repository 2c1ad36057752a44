"""
Interpretation of the model's output distribution as a sentiment label.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np

from .errors import ContractViolation


SENTIMENT_LABELS = {0: "negative", 1: "positive"}
NEGATIVE_INDEX = 0
POSITIVE_INDEX = 1
POSITIVE_THRESHOLD = 0.5
SUM_TOLERANCE = 1e-3
CONFIDENCE_THRESHOLDS = {"high": 0.8, "medium": 0.6, "low": 0.0}


def get_confidence_level(confidence: float) -> str:
    """
    Get confidence level string from confidence score.

    Args:
        confidence: Confidence score (0-1)

    Returns:
        Confidence level: 'high', 'medium', or 'low'
    """
    if confidence >= CONFIDENCE_THRESHOLDS["high"]:
        return "high"
    elif confidence >= CONFIDENCE_THRESHOLDS["medium"]:
        return "medium"
    else:
        return "low"


@dataclass(frozen=True)
class SentimentResult:
    """Sentiment label and the probability mass the model gave it."""

    label: str
    confidence: float
    probabilities: dict[str, float] = field(default_factory=dict, compare=False)

    @property
    def confidence_level(self) -> str:
        return get_confidence_level(self.confidence)

    @property
    def is_positive(self) -> bool:
        return self.label == SENTIMENT_LABELS[POSITIVE_INDEX]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "sentiment": self.label,
            "confidence": round(self.confidence, 4),
            "confidence_level": self.confidence_level,
            "probabilities": {
                k: round(v, 4) for k, v in self.probabilities.items()
            },
        }


def decide(probabilities: Sequence[float] | np.ndarray) -> SentimentResult:
    """
    Turn a two-class probability vector into a sentiment result.

    The label is positive only when the positive class gets strictly more
    than half of the mass; the confidence is the mass of the chosen label.

    Args:
        probabilities: [negative, positive] probabilities

    Returns:
        SentimentResult

    Raises:
        ContractViolation: If the vector is not a valid 2-class distribution
    """
    try:
        probs = np.asarray(probabilities, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ContractViolation(f"Probability vector is not numeric: {exc}") from exc

    if probs.ndim != 1 or probs.shape[0] != len(SENTIMENT_LABELS):
        raise ContractViolation(
            f"Expected {len(SENTIMENT_LABELS)} class probabilities, got shape {probs.shape}"
        )

    if not np.all(np.isfinite(probs)) or np.any(probs < 0) or np.any(probs > 1):
        raise ContractViolation(f"Invalid probabilities: {probs.tolist()}")

    total = float(probs.sum())
    if not math.isclose(total, 1.0, rel_tol=0.0, abs_tol=SUM_TOLERANCE):
        raise ContractViolation(f"Probabilities sum to {total}, expected 1.0")

    positive = float(probs[POSITIVE_INDEX])
    negative = float(probs[NEGATIVE_INDEX])

    if positive > POSITIVE_THRESHOLD:
        label, confidence = SENTIMENT_LABELS[POSITIVE_INDEX], positive
    else:
        label, confidence = SENTIMENT_LABELS[NEGATIVE_INDEX], negative

    return SentimentResult(
        label=label,
        confidence=confidence,
        probabilities={
            SENTIMENT_LABELS[NEGATIVE_INDEX]: negative,
            SENTIMENT_LABELS[POSITIVE_INDEX]: positive,
        },
    )
