"""
fleetwatch - Predictive health scoring and threshold alerting for industrial assets.

This package turns asset state-change events into health scores, risk tiers,
failure-probability estimates, forecasts and maintenance recommendations, and
runs an alert lifecycle manager that watches live metrics against
direction-aware thresholds.

Features:
- Deterministic, rule-based analytics over windowed event aggregates
- Alert cooldown, active/history tracking and acknowledgement
- Configuration via YAML with environment variable overrides
- Structured logging (JSON for production, text for development)
- Scheduled monitoring sweeps with single-flight execution
"""

__version__ = "0.3.0"
__all__ = ["__version__"]
