"""
Shared numeric helpers for scoring, confidence and time-series operations.
"""

import math
from typing import Dict, List, Sequence, Tuple

import numpy as np


def calculate_confidence(
    sample_size: int, data_quality: float, model_accuracy: float = 80.0
) -> float:
    """Calculate a 0-100 confidence score from sample size and data quality."""
    confidence = model_accuracy

    # Diminishing returns on sample size
    sample_factor = min(1.0, math.log10(sample_size + 1) / 2)
    confidence *= 0.7 + sample_factor * 0.3

    confidence *= data_quality / 100
    return float(min(100.0, max(0.0, confidence)))


def normalize_score(value: float, min_value: float, max_value: float) -> float:
    """Normalize a value to the 0-100 range."""
    if max_value == min_value:
        return 50.0
    scaled = (value - min_value) / (max_value - min_value) * 100
    return float(max(0.0, min(100.0, scaled)))


def weighted_average(values: Sequence[Tuple[float, float]]) -> float:
    """Weighted average of ``(value, weight)`` pairs."""
    if not values:
        return 0.0
    data = np.asarray(values, dtype=float)
    total_weight = data[:, 1].sum()
    if total_weight == 0:
        return 0.0
    return float((data[:, 0] * data[:, 1]).sum() / total_weight)


def sigmoid(x: float) -> float:
    return 1 / (1 + math.exp(-x))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity between two equal-length vectors."""
    if len(a) != len(b):
        raise ValueError("Vectors must have same length")

    vec_a = np.asarray(a, dtype=float)
    vec_b = np.asarray(b, dtype=float)
    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(vec_a, vec_b) / (norm_a * norm_b))


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation."""
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float)))


def detect_outliers(values: Sequence[float]) -> Dict[str, object]:
    """Detect outliers with the IQR rule."""
    if len(values) < 4:
        return {"outliers": [], "threshold": {"lower": 0.0, "upper": 0.0}}

    ordered = sorted(values)
    q1 = ordered[int(len(ordered) * 0.25)]
    q3 = ordered[int(len(ordered) * 0.75)]
    iqr = q3 - q1

    lower = q1 - 1.5 * iqr
    upper = q3 + 1.5 * iqr

    return {
        "outliers": [v for v in values if v < lower or v > upper],
        "threshold": {"lower": lower, "upper": upper},
    }


def moving_average(values: Sequence[float], window_size: int) -> List[float]:
    """Trailing moving average; early points average what is available."""
    result = []
    for i in range(len(values)):
        start = max(0, i - window_size + 1)
        result.append(float(np.mean(values[start : i + 1])))
    return result


def exponential_smoothing(values: Sequence[float], alpha: float = 0.3) -> List[float]:
    if len(values) == 0:
        return []

    result = [float(values[0])]
    for value in values[1:]:
        result.append(alpha * value + (1 - alpha) * result[-1])
    return result


def calculate_trend(values: Sequence[float], threshold: float = 0.01) -> str:
    """Classify a series as increasing, decreasing or stable by its slope."""
    if len(values) < 2:
        return "stable"

    x = np.arange(len(values), dtype=float)
    slope = np.polyfit(x, np.asarray(values, dtype=float), 1)[0]

    if slope > threshold:
        return "increasing"
    if slope < -threshold:
        return "decreasing"
    return "stable"


def min_max_scale(values: Sequence[float]) -> List[float]:
    if len(values) == 0:
        return []

    data = np.asarray(values, dtype=float)
    low, high = data.min(), data.max()
    if low == high:
        return [0.5] * len(values)
    return ((data - low) / (high - low)).tolist()


def z_score_normalize(values: Sequence[float]) -> List[float]:
    if len(values) == 0:
        return []

    data = np.asarray(values, dtype=float)
    std = data.std()
    if std == 0:
        return [0.0] * len(values)
    return ((data - data.mean()) / std).tolist()


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation coefficient; 0 when either series is constant."""
    if len(x) != len(y) or len(x) == 0:
        raise ValueError("Arrays must have same non-zero length")

    dx = np.asarray(x, dtype=float) - np.mean(x)
    dy = np.asarray(y, dtype=float) - np.mean(y)
    denominator = math.sqrt(float((dx * dx).sum() * (dy * dy).sum()))
    if denominator == 0:
        return 0.0
    return float((dx * dy).sum() / denominator)


def k_means_clustering(
    values: Sequence[float], k: int, max_iterations: int = 100
) -> List[Dict[str, object]]:
    """One-dimensional k-means; centroids seeded from evenly spaced quantiles."""
    if len(values) == 0 or k <= 0:
        return []

    data = np.asarray(values, dtype=float)
    ordered = np.sort(data)
    step = len(ordered) // k
    centroids = np.array(
        [ordered[min(i * step, len(ordered) - 1)] for i in range(k)], dtype=float
    )

    assignments = np.zeros(len(data), dtype=int)
    for iteration in range(max_iterations):
        distances = np.abs(data[:, None] - centroids[None, :])
        new_assignments = distances.argmin(axis=1)
        changed = iteration == 0 or not np.array_equal(new_assignments, assignments)
        assignments = new_assignments

        for c in range(k):
            members = data[assignments == c]
            if members.size:
                centroids[c] = members.mean()

        if not changed:
            break

    return [
        {"cluster": c, "values": data[assignments == c].tolist()} for c in range(k)
    ]
