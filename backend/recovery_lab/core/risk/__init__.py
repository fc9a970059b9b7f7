"""Risk subsystem: multi-dimension assessment of recovery intents."""
from recovery_lab.core.risk.intent_risk import (
    IntentRiskAssessor,
    RiskAssessment,
    RiskCategory,
    RiskDimension,
    RiskRecommendation,
    RiskVector,
    evaluate_risk,
    evaluate_risk_vector,
)

__all__ = [
    "IntentRiskAssessor",
    "RiskAssessment",
    "RiskCategory",
    "RiskDimension",
    "RiskRecommendation",
    "RiskVector",
    "evaluate_risk",
    "evaluate_risk_vector",
]
