"""
Trend estimation over strength series.

Ordinary least squares over (x, y) points, a direction classifier built on
top of it, and a linear completion-date projection for strength goals.

Usage:
    >>> from backend.core.trend_estimator import estimate_trend
    >>> estimate_trend([100, 105, 110, 115]).direction
    'up'
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence, Tuple

# Minimum number of points before a direction is reported
MIN_TREND_POINTS = 4

# Relative slope (percent of mean) beyond which a series is rising/falling
TREND_THRESHOLD_PCT = 2.5


# =============================================================================
# Result DTOs
# =============================================================================


@dataclass(frozen=True)
class Regression:
    """Least-squares fit y = slope * x + intercept."""
    slope: float
    intercept: float
    r_squared: float


@dataclass(frozen=True)
class Trend:
    """Direction of a series with the fit it was derived from."""
    direction: str  # "up" | "down" | "flat" | "insufficient_data"
    slope: float = 0.0
    intercept: float = 0.0
    r_squared: float = 0.0
    percentage: float = 0.0
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {
            "direction": self.direction,
            "slope": self.slope,
            "intercept": self.intercept,
            "r_squared": self.r_squared,
            "percentage": self.percentage,
            "confidence": self.confidence,
        }


# =============================================================================
# Regression
# =============================================================================


def linear_regression(points: Sequence[Tuple[float, float]]) -> Regression:
    """
    Fit a least-squares line through the points.

    Args:
        points: (x, y) pairs

    Returns:
        Regression with slope, intercept and coefficient of determination.
        Fewer than 2 points, or points sharing a single x, give slope 0 with
        the intercept at the mean of y.
    """
    n = len(points)
    if n == 0:
        return Regression(slope=0.0, intercept=0.0, r_squared=0.0)

    mean_x = sum(p[0] for p in points) / n
    mean_y = sum(p[1] for p in points) / n

    if n < 2:
        return Regression(slope=0.0, intercept=mean_y, r_squared=0.0)

    sxx = sum((x - mean_x) ** 2 for x, _ in points)
    if sxx == 0:
        return Regression(slope=0.0, intercept=mean_y, r_squared=0.0)

    sxy = sum((x - mean_x) * (y - mean_y) for x, y in points)
    slope = sxy / sxx
    intercept = mean_y - slope * mean_x

    ss_total = sum((y - mean_y) ** 2 for _, y in points)
    if ss_total == 0:
        r_squared = 1.0
    else:
        ss_residual = sum((y - (slope * x + intercept)) ** 2 for x, y in points)
        r_squared = 1.0 - ss_residual / ss_total

    return Regression(slope=slope, intercept=intercept, r_squared=r_squared)


def estimate_trend(values: Sequence[float]) -> Trend:
    """
    Classify a chronological series as rising, falling or flat.

    The series is regressed against its index. The slope is expressed as a
    percentage of the series mean; beyond +/-2.5% the series is "up" or
    "down", otherwise "flat". Confidence is r-squared clamped to [0, 1].

    Args:
        values: Chronological values (e.g. per-session 1RM estimates)

    Returns:
        Trend, with direction "insufficient_data" below 4 points
    """
    if len(values) < MIN_TREND_POINTS:
        return Trend(direction="insufficient_data")

    fit = linear_regression([(float(i), float(v)) for i, v in enumerate(values)])
    mean = sum(values) / len(values)
    percentage = (fit.slope / mean) * 100 if mean > 0 else 0.0

    if percentage > TREND_THRESHOLD_PCT:
        direction = "up"
    elif percentage < -TREND_THRESHOLD_PCT:
        direction = "down"
    else:
        direction = "flat"

    return Trend(
        direction=direction,
        slope=fit.slope,
        intercept=fit.intercept,
        r_squared=fit.r_squared,
        percentage=percentage,
        confidence=min(max(fit.r_squared, 0.0), 1.0),
    )


def predict_completion(
    history: Sequence[Tuple[datetime, float]],
    target: float,
) -> Optional[datetime]:
    """
    Project when a series will reach the target.

    Steps are session indexes; each step is assumed to take the average
    spacing between consecutive points.

    Args:
        history: Chronological (timestamp, value) points
        target: Value to reach

    Returns:
        Projected datetime, the last point's datetime if the fitted line is
        already past the target, or None when there are fewer than 2 points
        or the series is not rising.
    """
    if len(history) < 2:
        return None

    fit = linear_regression([(float(i), value) for i, (_, value) in enumerate(history)])
    last_index = len(history) - 1
    last_date = history[-1][0]

    if fit.slope * last_index + fit.intercept >= target:
        return last_date
    if fit.slope <= 0:
        return None

    steps_to_target = (target - fit.intercept) / fit.slope - last_index
    if steps_to_target <= 0:
        return last_date

    gaps = [
        (history[i][0] - history[i - 1][0]).total_seconds()
        for i in range(1, len(history))
    ]
    avg_gap_seconds = sum(gaps) / len(gaps)

    return last_date + timedelta(seconds=steps_to_target * avg_gap_seconds)
