"""
Workflow definition tests.

Every workflow must have:
1. An initial state that exists in states
2. All transition from/to states exist in states
3. No orphan states (unreachable states)
4. Terminal states with no outgoing transitions
"""

import pytest

from ops_kernel.domain.workflow import Transition, Workflow
from ops_modules.hr.workflows import LEAVE_WORKFLOW
from ops_modules.procurement.workflows import PURCHASE_ORDER_WORKFLOW
from ops_modules.supply_chain.workflows import SUPPLY_CHAIN_WORKFLOW
from ops_modules.tasks.workflows import TASK_WORKFLOW

ALL_WORKFLOWS = [
    ("Leave Request", LEAVE_WORKFLOW),
    ("Supply Chain Request", SUPPLY_CHAIN_WORKFLOW),
    ("Purchase Order", PURCHASE_ORDER_WORKFLOW),
    ("Task", TASK_WORKFLOW),
]


class TestWorkflowStates:
    @pytest.mark.parametrize("name,workflow", ALL_WORKFLOWS)
    def test_initial_state_exists(self, name, workflow):
        assert workflow.initial_state in workflow.states

    @pytest.mark.parametrize("name,workflow", ALL_WORKFLOWS)
    def test_transition_states_exist(self, name, workflow):
        for transition in workflow.transitions:
            assert transition.from_state in workflow.states, name
            assert transition.to_state in workflow.states, name

    @pytest.mark.parametrize("name,workflow", ALL_WORKFLOWS)
    def test_no_orphan_states(self, name, workflow):
        reachable = {workflow.initial_state}
        changed = True
        while changed:
            changed = False
            for transition in workflow.transitions:
                if transition.from_state in reachable and transition.to_state not in reachable:
                    reachable.add(transition.to_state)
                    changed = True

        assert not set(workflow.states) - reachable, (
            f"{name} workflow has unreachable states: {set(workflow.states) - reachable}"
        )

    @pytest.mark.parametrize("name,workflow", ALL_WORKFLOWS)
    def test_terminal_states_have_no_exits(self, name, workflow):
        assert workflow.terminal_states
        states_with_outgoing = {t.from_state for t in workflow.transitions}
        assert not states_with_outgoing & set(workflow.terminal_states)


class TestLedgerTransitions:
    """Exactly the documented transitions move balances or stock."""

    @pytest.mark.parametrize("workflow,expected", [
        (LEAVE_WORKFLOW, {("Pending HR", "Approved")}),
        (SUPPLY_CHAIN_WORKFLOW, {("Pending Store", "Issued")}),
        (PURCHASE_ORDER_WORKFLOW, {("Approved", "Received")}),
        (TASK_WORKFLOW, set()),
    ])
    def test_adjusting_transitions(self, workflow, expected):
        adjusting = {(t.from_state, t.to_state) for t in workflow.transitions if t.adjusts_ledger}
        assert adjusting == expected


class TestWorkflowValidation:
    def test_undeclared_state_rejected(self):
        with pytest.raises(ValueError):
            Workflow(
                name="broken",
                description="",
                initial_state="A",
                states=("A",),
                transitions=(Transition("A", "B", "go"),),
            )

    def test_initial_state_must_be_declared(self):
        with pytest.raises(ValueError):
            Workflow(name="broken", description="", initial_state="Z", states=("A",), transitions=())

    def test_terminal_state_with_exit_rejected(self):
        with pytest.raises(ValueError):
            Workflow(
                name="broken",
                description="",
                initial_state="A",
                states=("A", "B"),
                transitions=(Transition("A", "B", "go"), Transition("B", "A", "back")),
                terminal_states=("B",),
            )

    def test_candidates_in_declaration_order(self):
        approve = SUPPLY_CHAIN_WORKFLOW.candidates("Pending Account Manager", "Approve")
        assert [t.to_state for t in approve] == ["Forwarded to Purchase", "Pending Store"]
