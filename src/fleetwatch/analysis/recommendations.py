"""Maintenance recommendations and fleet risk roll-up."""

from typing import Dict, List, Sequence

from fleetwatch.models.enums import Level, Priority, RiskLevel
from fleetwatch.models.insight import HealthInsight, Recommendation, RiskAssessment

PRIORITY_RANK: Dict[Priority, int] = {
    Priority.URGENT: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}

BASE_COST: Dict[Priority, float] = {
    Priority.URGENT: 5000,
    Priority.HIGH: 3000,
    Priority.MEDIUM: 1500,
    Priority.LOW: 500,
}

IMPACT_MULTIPLIER: Dict[Level, float] = {
    Level.HIGH: 1.5,
    Level.MEDIUM: 1.0,
    Level.LOW: 0.7,
}

# Share of HIGH/CRITICAL assets above which a fleet-wide review is recommended
SYSTEM_WIDE_ATTENTION_RATIO = 0.3

_RISK_ORDER = (RiskLevel.CRITICAL, RiskLevel.HIGH, RiskLevel.MEDIUM, RiskLevel.LOW)


def estimate_cost(priority: Priority, cost_impact: Level) -> float:
    """Base cost for the priority scaled by the impact multiplier."""
    return BASE_COST[priority] * IMPACT_MULTIPLIER[cost_impact]


def calculate_risk_assessment(insights: Sequence[HealthInsight]) -> RiskAssessment:
    """Roll per-asset insights up into a fleet risk assessment.

    Args:
        insights: Per-asset HealthInsight objects

    Returns:
        RiskAssessment; an empty fleet is LOW risk with zero averages
    """
    distribution = {level: 0 for level in _RISK_ORDER}
    for insight in insights:
        distribution[insight.risk_level] += 1

    count = len(insights)
    avg_score = sum(i.health_score for i in insights) / count if count else 0.0
    avg_probability = sum(i.failure_probability for i in insights) / count if count else 0.0

    overall = next((level for level in _RISK_ORDER if distribution[level] > 0), RiskLevel.LOW)

    return RiskAssessment(
        overall_risk_level=overall,
        risk_distribution=distribution,
        average_health_score=round(avg_score, 1),
        average_failure_probability=round(avg_probability, 2),
        assets_requiring_attention=distribution[RiskLevel.CRITICAL] + distribution[RiskLevel.HIGH],
        total_assets_analyzed=count,
    )


class RecommendationGenerator:
    """Turns risk tiers into prioritized, costed maintenance actions."""

    def generate(self, insights: Sequence[HealthInsight]) -> List[Recommendation]:
        """Build recommendations for a set of insights.

        Args:
            insights: Per-asset HealthInsight objects

        Returns:
            Recommendations sorted URGENT > HIGH > MEDIUM > LOW, otherwise in
            input order
        """
        recommendations: List[Recommendation] = []

        for insight in insights:
            if insight.risk_level == RiskLevel.CRITICAL:
                recommendations.append(self._build(
                    priority=Priority.URGENT,
                    insight=insight,
                    recommendation="Immediate maintenance required",
                    description=(
                        f"Asset health score is {insight.health_score:.1f}% with "
                        f"{insight.failure_probability * 100:.1f}% failure probability"
                    ),
                    estimated_downtime="2-4 hours",
                    cost_impact=Level.HIGH,
                ))
            elif insight.risk_level == RiskLevel.HIGH:
                recommendations.append(self._build(
                    priority=Priority.HIGH,
                    insight=insight,
                    recommendation="Schedule maintenance within 7 days",
                    description="Declining performance indicators detected",
                    estimated_downtime="1-2 hours",
                    cost_impact=Level.MEDIUM,
                ))

        attention = sum(
            1 for i in insights if i.risk_level in (RiskLevel.CRITICAL, RiskLevel.HIGH)
        )
        if insights and attention > len(insights) * SYSTEM_WIDE_ATTENTION_RATIO:
            recommendations.append(Recommendation(
                priority=Priority.MEDIUM,
                asset_name="SYSTEM-WIDE",
                recommendation="Review maintenance procedures",
                description="Multiple assets showing degradation patterns",
                estimated_downtime="Varies",
                cost_impact=Level.MEDIUM,
                estimated_cost=estimate_cost(Priority.MEDIUM, Level.MEDIUM),
            ))

        return sorted(recommendations, key=lambda r: PRIORITY_RANK[r.priority])

    @staticmethod
    def _build(
        priority: Priority,
        insight: HealthInsight,
        recommendation: str,
        description: str,
        estimated_downtime: str,
        cost_impact: Level,
    ) -> Recommendation:
        return Recommendation(
            priority=priority,
            asset_id=insight.asset_id,
            asset_name=insight.asset_name,
            recommendation=recommendation,
            description=description,
            estimated_downtime=estimated_downtime,
            cost_impact=cost_impact,
            estimated_cost=estimate_cost(priority, cost_impact),
        )
