#!/usr/bin/env python3
"""
Recovery Lab Demo Script.

CLI demo for assessing recovery plans and simulating recovery intents.

Usage:
    python scripts/demo/run_demo.py --list
    python scripts/demo/run_demo.py --plan regional-failover
    python scripts/demo/run_demo.py --plan-file scripts/demo/plans/regional_failover.yaml
    python scripts/demo/run_demo.py --intent intent-credential-revocation
"""
import argparse
import json
import sys
from pathlib import Path
from typing import Optional

# Add backend to path for imports
backend_path = Path(__file__).parent.parent.parent / "backend"
sys.path.insert(0, str(backend_path))

import yaml
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from recovery_lab.core.assessment import PlanAssessment, PlanAssessor
from recovery_lab.core.simulation.scenario_simulator import (
    SimulationReport,
    estimate_score,
    simulate_intent_recovery,
)
from recovery_lab.logging_config import configure_logging
from recovery_lab.samples import (
    get_sample_intent,
    get_sample_plan,
    list_sample_intents,
    list_sample_plans,
)
from recovery_lab.schemas.contract import (
    ContractClause,
    ContractClauseResult,
    PlanContractVerdict,
)
from recovery_lab.schemas.intent import RecoveryIntent
from recovery_lab.schemas.plan import RecoveryPlan

console = Console()

LEVEL_STYLES = {"green": "green", "yellow": "yellow", "amber": "dark_orange", "red": "red"}
STATE_STYLES = {
    "ready": "bold green",
    "queued": "bold yellow",
    "blocked": "bold red",
    "needs-review": "bold magenta",
    "running": "bold cyan",
}


# ============================================
# Demo contract evaluator
# ============================================

def demo_contract_evaluator(plan: RecoveryPlan) -> PlanContractVerdict:
    """
    Stand-in for the plan-contract service so the demo runs offline.

    Three clauses: SLA fits four hours, critical actions can retry, plan is
    flagged safe.
    """
    unretryable = [a.id for a in plan.actions if a.is_critical and a.retries_allowed == 0]
    clauses = [
        ContractClauseResult(
            clause=ContractClause(kind="sla-bound", title="SLA within four hours"),
            passed=plan.sla_minutes <= 240,
            reasons=() if plan.sla_minutes <= 240 else (f"SLA is {plan.sla_minutes:.0f} minutes",),
        ),
        ContractClauseResult(
            clause=ContractClause(kind="retry-coverage", title="Critical actions retryable"),
            passed=not unretryable,
            reasons=tuple(f"{action_id} has no retries" for action_id in unretryable),
        ),
        ContractClauseResult(
            clause=ContractClause(kind="safety-flag", title="Plan flagged safe"),
            passed=plan.is_safe,
        ),
    ]
    score = 100 * sum(1 for c in clauses if c.passed) / len(clauses)
    if score < 40:
        result = "violation"
    elif score < 75:
        result = "warning"
    else:
        result = "pass"
    return PlanContractVerdict(result=result, score=score, clauses=tuple(clauses))


# ============================================
# Loading
# ============================================

def load_document(path: str) -> dict:
    """Load a YAML or JSON document."""
    with open(path, "r") as f:
        if path.endswith(".json"):
            return json.load(f)
        return yaml.safe_load(f)


def resolve_plan(plan_id: Optional[str], plan_file: Optional[str]) -> Optional[RecoveryPlan]:
    if plan_file:
        return RecoveryPlan.model_validate(load_document(plan_file))
    if plan_id:
        return get_sample_plan(plan_id)
    return None


def resolve_intent(intent_id: Optional[str], intent_file: Optional[str]) -> Optional[RecoveryIntent]:
    if intent_file:
        return RecoveryIntent.model_validate(load_document(intent_file))
    if intent_id:
        return get_sample_intent(intent_id)
    return None


# ============================================
# Display
# ============================================

def display_samples():
    """Display all sample plans and intents."""
    console.print()
    table = Table(title="Sample Plans", box=box.ROUNDED, show_lines=False)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Mode", justify="center")
    table.add_column("Actions", justify="right")
    table.add_column("SLA", justify="right")
    table.add_column("Safe", justify="center")
    for plan in list_sample_plans():
        table.add_row(
            plan.plan_id,
            plan.mode,
            str(len(plan.actions)),
            f"{plan.sla_minutes:.0f}m",
            "✓" if plan.is_safe else "✗",
        )
    console.print(table)

    table = Table(title="Sample Intents", box=box.ROUNDED)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Priority", justify="center")
    table.add_column("Scope", justify="center")
    table.add_column("Steps", justify="right")
    for intent in list_sample_intents():
        table.add_row(intent.intent_id, intent.priority, intent.scope, str(len(intent.steps)))
    console.print(table)
    console.print()


def display_assessment(assessment: PlanAssessment):
    """Render a plan assessment."""
    state = assessment.run_state
    style = STATE_STYLES.get(state.state.value, "bold")
    console.print()
    console.print(
        Panel(
            f"[{style}]{state.state.value.upper()}[/{style}]  "
            f"readiness {state.readiness_score:.1f}  ·  risk score {state.risk_score:.1f}  ·  "
            f"tempo {'ok' if assessment.tempo_decision.allowed else 'over budget'}",
            title=f"Plan {assessment.plan_id}",
            border_style="cyan",
        )
    )

    nodes = Table(title="Topology", box=box.SIMPLE)
    nodes.add_column("Action", style="cyan")
    nodes.add_column("Region")
    nodes.add_column("Phase")
    nodes.add_column("Minutes", justify="right")
    nodes.add_column("Risk", justify="right")
    nodes.add_column("Bottleneck", justify="center")
    for node in assessment.topology.nodes:
        nodes.add_row(
            node.action_id,
            node.region,
            node.phase.value,
            f"{node.duration_minutes:.0f}",
            f"{node.risk_factor:.3f}",
            "⚠" if node.action_id in assessment.topology.bottlenecks else "",
        )
    console.print(nodes)

    constraints = Table(title="Policy Constraints", box=box.SIMPLE)
    constraints.add_column("Key", style="bold")
    constraints.add_column("Level", justify="center")
    constraints.add_column("Recommendation")
    constraints.add_column("Message", style="dim")
    for constraint in assessment.policy.profile.constraints:
        level_style = LEVEL_STYLES[constraint.level.value]
        constraints.add_row(
            constraint.key,
            f"[{level_style}]{constraint.level.value}[/{level_style}]",
            constraint.recommendation,
            constraint.message,
        )
    console.print(constraints)

    windows = Table(title="Execution Tempo", box=box.SIMPLE)
    windows.add_column("#", justify="right")
    windows.add_column("Actions")
    windows.add_column("Start")
    windows.add_column("Cumulative", justify="right")
    windows.add_column("Capacity", justify="right")
    windows.add_column("Risk", justify="center")
    for window in assessment.tempo.windows:
        windows.add_row(
            str(window.index),
            ", ".join(window.action_ids),
            f"{window.start_at:%H:%M}",
            f"{window.cumulative_minutes:.1f}m",
            f"{window.capacity_usage:.0f}%",
            window.risk.value,
        )
    console.print(windows)

    for recommendation in state.policy_recommendations:
        console.print(f"  • {recommendation}")
    console.print()


def display_simulation(report: SimulationReport):
    """Render a simulation report."""
    console.print()
    console.print(
        Panel(
            f"composite risk {report.risk.composite_score:.1f} "
            f"({report.risk.recommendation.value})",
            title=f"Intent {report.intent_id}",
            border_style="cyan",
        )
    )

    dims = Table(title="Risk Dimensions", box=box.SIMPLE)
    dims.add_column("Category", style="bold")
    dims.add_column("Level", justify="right")
    dims.add_column("Rationale", style="dim")
    for dimension in report.risk.vector.dimensions:
        dims.add_row(dimension.category.value, f"{dimension.level:.0f}", dimension.rationale)
    console.print(dims)

    table = Table(title="Scenarios", box=box.ROUNDED)
    table.add_column("Profile", style="cyan")
    table.add_column("Minutes", justify="right")
    table.add_column("Risk", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Recommendation", justify="center")
    for scenario in report.scenarios:
        marker = " ★" if scenario.scenario_id == report.recommended.scenario_id else ""
        table.add_row(
            f"{scenario.profile.value}{marker}",
            f"{scenario.projected_minutes:.1f}",
            f"{scenario.composite_risk:.1f}",
            f"{scenario.confidence:.0%}",
            f"{estimate_score(scenario):.1f}",
            scenario.recommendation.value,
        )
    console.print(table)
    console.print()


# ============================================
# Main
# ============================================

def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Recovery Lab Demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--list", "-l", action="store_true", help="List sample plans and intents")
    parser.add_argument("--plan", help="Sample plan ID to assess")
    parser.add_argument("--plan-file", help="YAML/JSON plan file to assess")
    parser.add_argument("--intent", help="Sample intent ID to simulate")
    parser.add_argument("--intent-file", help="YAML/JSON intent file to simulate")
    parser.add_argument("--budget", type=float, help="Tempo budget in minutes (default: plan SLA)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show component logs")

    args = parser.parse_args()

    if args.verbose:
        configure_logging()

    if args.list:
        display_samples()
        return

    plan = resolve_plan(args.plan, args.plan_file)
    intent = resolve_intent(args.intent, args.intent_file)

    if plan is None and intent is None:
        if args.plan or args.intent:
            console.print("[red]Unknown sample ID. Use --list to see available samples.[/red]")
            sys.exit(1)
        parser.print_help()
        return

    if plan is not None:
        assessor = PlanAssessor(contract_evaluator=demo_contract_evaluator)
        display_assessment(assessor.assess(plan, budget_minutes=args.budget))

    if intent is not None:
        display_simulation(simulate_intent_recovery(intent))


if __name__ == "__main__":
    main()
