"""
Unit tests for the policy gate.

Tests contract clause mapping, topology-derived constraints, the action
risk score and the allow/deny decision.
"""
import pytest

from recovery_lab.core.decision.policy import (
    GATE_BLOCKED_REASON,
    RECOMMEND_ADDRESS,
    RECOMMEND_MONITOR,
    RECOMMEND_PROCEED,
    ConstraintLevel,
    ContractEvaluatorNotConfiguredError,
    PolicyEvaluator,
    build_policy_profile,
    derive_action_risk_score,
    enforce_policy,
    register_contract_evaluator,
    score_to_level,
)
from recovery_lab.core.topology.builder import TopologyBuilder


class TestScoreToLevel:
    """Test contract score to traffic-light mapping."""

    @pytest.mark.parametrize(
        "score,level",
        [
            (100, ConstraintLevel.GREEN),
            (74.5, ConstraintLevel.GREEN),
            (74.4, ConstraintLevel.YELLOW),
            (60, ConstraintLevel.YELLOW),
            (59.5, ConstraintLevel.YELLOW),
            (40, ConstraintLevel.AMBER),
            (39.4, ConstraintLevel.RED),
            (0, ConstraintLevel.RED),
        ],
    )
    def test_thresholds_on_rounded_score(self, score, level):
        assert score_to_level(score) == level


class TestDeriveActionRiskScore:
    """Test the action risk score."""

    def test_empty_plan_scores_100(self, make_plan):
        """
        Test that a plan without actions is treated as risk free.
        """
        assert derive_action_risk_score(make_plan([])) == 100

    def test_penalty_components(self, make_action, make_plan):
        """
        Test critical boost + capped duration penalty + dependency penalty.
        """
        plan = make_plan(
            [
                make_action("crit", duration=50, tags=("critical",), dependencies=("x", "y")),
            ]
        )

        # 15 + min(25, 10) + 2 * 2 = 29
        assert derive_action_risk_score(plan) == 71.0

    def test_duration_penalty_capped(self, make_action, make_plan):
        """
        Test that very long actions never cost more than 25 points for duration.
        """
        plan = make_plan([make_action("long", duration=10_000)])

        assert derive_action_risk_score(plan) == 75.0

    def test_averages_across_actions(self, healthy_plan):
        """
        Test mean penalty across actions: (1.2 + 9 * 3.2) / 10 = 3.0.
        """
        assert derive_action_risk_score(healthy_plan) == 97.0

    def test_clamped_at_zero(self, make_action, make_plan):
        """
        Test that huge dependency counts cannot push the score negative.
        """
        deps = tuple(f"dep-{i}" for i in range(60))
        plan = make_plan([make_action("tangled", duration=200, tags=("critical",), dependencies=deps)])

        assert derive_action_risk_score(plan) == 0.0


class TestPolicyProfile:
    """Test policy profile construction."""

    def test_clause_constraints_precede_topology_constraints(
        self, healthy_plan, passing_contract_evaluator
    ):
        """
        Test constraint ordering and clause mapping.
        """
        profile = build_policy_profile(healthy_plan, passing_contract_evaluator)

        keys = [c.key for c in profile.constraints]
        assert keys == ["sla-bound", "retry-coverage", "topology-density", "timeline-window"]
        assert profile.constraints[0].level == ConstraintLevel.GREEN
        assert profile.constraints[0].recommendation == RECOMMEND_PROCEED

    def test_profile_fields(self, healthy_plan, passing_contract_evaluator):
        """
        Test score, risk score, lane count and risk profile.
        """
        profile = build_policy_profile(healthy_plan, passing_contract_evaluator)

        assert profile.plan_id == "plan-healthy"
        assert profile.score == 90.0
        assert profile.risk_score == 97.0
        assert profile.lane_count == 1
        assert len(profile.risk_profile) == len(healthy_plan.actions)
        assert profile.contract.result == "pass"

    def test_failed_clause_must_be_addressed(self, healthy_plan, failing_clause_contract_evaluator):
        """
        Test that failed clauses recommend addressing before run, with reasons in the message.
        """
        profile = build_policy_profile(healthy_plan, failing_clause_contract_evaluator)

        failed = next(c for c in profile.constraints if c.key == "retry-coverage")
        assert failed.level == ConstraintLevel.YELLOW
        assert failed.recommendation == RECOMMEND_ADDRESS
        assert "promote-db has no retries" in failed.message

    def test_topology_density_levels(self, make_action, make_plan, passing_contract_evaluator):
        """
        Test that dense bottlenecks turn the density constraint red.
        """
        plan = make_plan([make_action("a", duration=5), make_action("b", duration=10)])

        profile = build_policy_profile(plan, passing_contract_evaluator)

        density = next(c for c in profile.constraints if c.key == "topology-density")
        assert density.level == ConstraintLevel.RED
        assert density.recommendation == RECOMMEND_ADDRESS

    def test_density_amber(self, make_action, make_plan, passing_contract_evaluator):
        """
        Test amber density: 2 flagged of 5 nodes = 0.4.
        """
        plan = make_plan(
            [make_action(f"a{i}", duration=5) for i in range(5)]
        )

        profile = build_policy_profile(plan, passing_contract_evaluator)

        density = next(c for c in profile.constraints if c.key == "topology-density")
        assert density.level == ConstraintLevel.AMBER
        assert density.recommendation == RECOMMEND_MONITOR

    def test_long_timeline_is_amber(self, make_action, make_plan, passing_contract_evaluator):
        """
        Test that readiness windows over 240 minutes flag the timeline amber.
        """
        actions = [
            make_action(f"a{i}", duration=30, dependencies=(f"a{i - 1}",) if i else ())
            for i in range(10)
        ]

        profile = build_policy_profile(make_plan(actions), passing_contract_evaluator)

        timeline = next(c for c in profile.constraints if c.key == "timeline-window")
        assert timeline.level == ConstraintLevel.AMBER
        assert timeline.recommendation == RECOMMEND_MONITOR
        assert "300" in timeline.message

    def test_empty_plan_topology_constraints_green(self, make_plan, passing_contract_evaluator):
        """
        Test that an empty plan has zero density and zero timeline.
        """
        profile = build_policy_profile(make_plan([]), passing_contract_evaluator)

        topology_constraints = [c for c in profile.constraints if c.key.startswith(("topology", "timeline"))]
        assert all(c.level == ConstraintLevel.GREEN for c in topology_constraints)
        assert profile.risk_score == 100

    def test_missing_contract_evaluator_raises(self, healthy_plan):
        """
        Test that evaluating without any contract evaluator fails loudly.
        """
        with pytest.raises(ContractEvaluatorNotConfiguredError):
            build_policy_profile(healthy_plan)

    def test_registered_contract_evaluator_is_used(self, healthy_plan, passing_contract_evaluator):
        """
        Test the process-wide evaluator registration.
        """
        register_contract_evaluator(passing_contract_evaluator)

        profile = build_policy_profile(healthy_plan)

        assert profile.score == 90.0


class TestEnforcePolicy:
    """Test the allow/deny gate."""

    def test_healthy_plan_allowed(self, healthy_plan, passing_contract_evaluator):
        """
        Test that a clean plan passes with no reasons.
        """
        decision = enforce_policy(healthy_plan, passing_contract_evaluator)

        assert decision.allowed is True
        assert decision.reasons == ()

    def test_violation_blocks(self, healthy_plan, violating_contract_evaluator):
        """
        Test that a contract violation blocks even without blocking constraints.
        """
        decision = enforce_policy(healthy_plan, violating_contract_evaluator)

        assert decision.allowed is False
        assert decision.reasons == (GATE_BLOCKED_REASON,)

    def test_failed_clause_blocks(self, healthy_plan, failing_clause_contract_evaluator):
        """
        Test that address-before-run constraints block and are listed first.
        """
        decision = enforce_policy(healthy_plan, failing_clause_contract_evaluator)

        assert decision.allowed is False
        assert decision.reasons[0].startswith("Retry Coverage")
        assert decision.reasons[-1] == GATE_BLOCKED_REASON

    def test_low_risk_score_blocks(self, make_action, make_plan, passing_contract_evaluator):
        """
        Test that an action risk score under 30 blocks the plan.
        """
        deps = tuple(f"dep-{i}" for i in range(20))
        plan = make_plan([make_action("risky", duration=200, tags=("critical",), dependencies=deps)])

        decision = enforce_policy(plan, passing_contract_evaluator)

        assert decision.profile.risk_score == 20.0
        assert decision.allowed is False
        assert GATE_BLOCKED_REASON in decision.reasons

    def test_custom_min_risk_score(self, healthy_plan, passing_contract_evaluator):
        """
        Test that the risk floor is configurable.
        """
        evaluator = PolicyEvaluator(contract_evaluator=passing_contract_evaluator, min_risk_score=98)

        assert evaluator.enforce(healthy_plan).allowed is False

    def test_blocked_whenever_any_constraint_blocks(
        self, make_action, make_plan, passing_contract_evaluator
    ):
        """
        Test the invariant: a red or address-before-run constraint always blocks.
        """
        plans = [
            make_plan([]),
            make_plan([make_action("a", duration=5)]),
            make_plan([make_action(f"a{i}", duration=5 * i) for i in range(6)]),
        ]

        for plan in plans:
            decision = enforce_policy(plan, passing_contract_evaluator)
            if any(c.is_blocking for c in decision.profile.constraints):
                assert decision.allowed is False
                assert decision.reasons[-1] == GATE_BLOCKED_REASON

    def test_risk_smoothing_window_is_honored(self, healthy_plan, passing_contract_evaluator):
        """
        Test that a window of one keeps raw node risk factors in the profile.
        """
        evaluator = PolicyEvaluator(contract_evaluator=passing_contract_evaluator, risk_smoothing_window=1)

        decision = evaluator.enforce(healthy_plan)

        topology = TopologyBuilder().build(healthy_plan)
        by_id = {node.action_id: node for node in topology.nodes}
        expected = [by_id[action_id].risk_factor for action_id in topology.order]
        assert [r.risk for r in decision.profile.risk_profile] == pytest.approx(expected)

    def test_prebuilt_topology_is_used(self, monkeypatch, healthy_plan, passing_contract_evaluator):
        """
        Test that a topology passed in is not rebuilt.
        """
        evaluator = PolicyEvaluator(contract_evaluator=passing_contract_evaluator)
        topology = evaluator.topology_builder.build(healthy_plan)

        def fail_build(plan):
            raise AssertionError("topology rebuilt")

        monkeypatch.setattr(evaluator.topology_builder, "build", fail_build)

        decision = evaluator.enforce(healthy_plan, topology)

        assert decision.allowed is True
        assert decision.profile.lane_count == len(topology.regional_concurrency)
