"""Alert threshold configuration, validation and evaluation.

Each metric has three levels (critical, warning, good) and a direction.
For higher-is-better metrics the levels must ascend (critical < warning <
good); for lower-is-better metrics they must descend. Comparisons are
strict: a value sitting exactly on a level does not trigger it.
"""

from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Dict, List, Mapping

from fleetwatch.models.enums import AlertSeverity

LEVELS = ("critical", "warning", "good")

# metric -> higher_is_better
METRIC_DIRECTIONS: Dict[str, bool] = {
    "availability": True,
    "mtbf": True,
    "downtime": False,
    "mttr": False,
    "frequency": False,
}

METRIC_UNITS: Dict[str, str] = {
    "availability": "%",
    "mtbf": "hours",
    "downtime": "minutes",
    "mttr": "minutes",
    "frequency": "stops/day",
}

ThresholdConfig = Dict[str, Dict[str, float]]

DEFAULT_ALERT_THRESHOLDS: ThresholdConfig = {
    "availability": {"critical": 70, "warning": 85, "good": 95},
    "downtime": {"critical": 60, "warning": 30, "good": 10},
    "frequency": {"critical": 15, "warning": 10, "good": 5},
    "mtbf": {"critical": 2, "warning": 4, "good": 8},
    "mttr": {"critical": 30, "warning": 15, "good": 5},
}


class UnknownMetricError(KeyError):
    """Raised when evaluating a metric with no known direction or thresholds."""

    pass


@dataclass
class ValidationResult:
    """Outcome of validating a threshold update."""

    valid: bool
    errors: List[str] = field(default_factory=list)


def default_thresholds() -> ThresholdConfig:
    """Fresh copy of the built-in thresholds."""
    return {metric: dict(levels) for metric, levels in DEFAULT_ALERT_THRESHOLDS.items()}


def is_higher_better(metric: str) -> bool:
    """Direction of ``metric``.

    Raises:
        UnknownMetricError: If the metric has no known direction
    """
    try:
        return METRIC_DIRECTIONS[metric]
    except KeyError:
        raise UnknownMetricError(metric) from None


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and value == value


def validate_thresholds(
    update: Mapping[str, Any],
    current: Mapping[str, Mapping[str, float]],
) -> ValidationResult:
    """Validate a (possibly partial) threshold update against the current config.

    Levels in the update are merged onto the current levels of each metric
    before the ordering check, so a partial update cannot leave a metric
    out of order.

    Args:
        update: metric -> {level: value} mapping from the caller
        current: The thresholds in force

    Returns:
        ValidationResult listing every problem found
    """
    errors: List[str] = []

    if not isinstance(update, Mapping):
        return ValidationResult(valid=False, errors=["Thresholds must be a mapping of metrics"])

    for metric, levels in update.items():
        if metric not in METRIC_DIRECTIONS:
            errors.append(f"Invalid metric: {metric}")
            continue

        if not isinstance(levels, Mapping):
            errors.append(f"Invalid levels for metric {metric}")
            continue

        values_ok = True
        for level, value in levels.items():
            if level not in LEVELS:
                errors.append(f"Invalid level {level} for metric {metric}")
                values_ok = False
                continue
            if not _is_number(value) or value < 0:
                errors.append(
                    f"Invalid value for {metric}.{level}: must be a non-negative number"
                )
                values_ok = False

        if not values_ok:
            continue

        merged = {**current.get(metric, {}), **levels}
        if not all(level in merged for level in LEVELS):
            errors.append(f"Incomplete levels for metric {metric}: critical, warning and good required")
            continue

        critical, warning, good = (merged[level] for level in LEVELS)
        if METRIC_DIRECTIONS[metric]:
            if not critical < warning < good:
                errors.append(f"Invalid threshold order for {metric}: critical < warning < good")
        elif not critical > warning > good:
            errors.append(f"Invalid threshold order for {metric}: critical > warning > good")

    return ValidationResult(valid=not errors, errors=errors)


def merge_thresholds(
    current: Mapping[str, Mapping[str, float]],
    update: Mapping[str, Mapping[str, Any]],
) -> ThresholdConfig:
    """Return a new config with ``update`` levels merged over ``current``."""
    merged = {metric: dict(levels) for metric, levels in current.items()}
    for metric, levels in update.items():
        merged.setdefault(metric, {}).update({k: float(v) for k, v in levels.items()})
    return merged


def evaluate(
    metric: str,
    value: float,
    config: Mapping[str, Mapping[str, float]],
) -> AlertSeverity:
    """Classify a metric value as good, warning or critical.

    Args:
        metric: Metric name (availability, downtime, frequency, mtbf, mttr)
        value: Observed value in the metric's unit
        config: Threshold configuration

    Returns:
        AlertSeverity

    Raises:
        UnknownMetricError: If the metric is unknown or missing from config
    """
    higher_is_better = is_higher_better(metric)
    try:
        levels = config[metric]
    except KeyError:
        raise UnknownMetricError(metric) from None

    if higher_is_better:
        if value < levels["critical"]:
            return AlertSeverity.CRITICAL
        if value < levels["warning"]:
            return AlertSeverity.WARNING
    else:
        if value > levels["critical"]:
            return AlertSeverity.CRITICAL
        if value > levels["warning"]:
            return AlertSeverity.WARNING
    return AlertSeverity.GOOD
