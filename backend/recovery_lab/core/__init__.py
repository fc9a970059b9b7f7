"""
Planning core: pure transforms from recovery plans and intents into
topology, policy, readiness, tempo, risk and simulation artifacts.
"""
from recovery_lab.core.assessment import PlanAssessment, PlanAssessor, get_plan_assessor
from recovery_lab.core.serialization import to_json_dict

__all__ = [
    "PlanAssessment",
    "PlanAssessor",
    "get_plan_assessor",
    "to_json_dict",
]
