"""
Leave approval workflow tests.

HOD then HR approval; only the final approval debits the balance, in the
same batch as the status change.
"""

import pytest

from ops_kernel.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    UnauthorizedActorError,
    ValidationError,
)
from ops_modules.hr.models import (
    EMPLOYEES,
    LEAVE_REQUESTS,
    LeaveAction,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
)


@pytest.fixture
def submit(leave_service, employee_id, employee_actor):
    def _submit(leave_type=LeaveType.SICK, from_date="2024-07-01", to_date="2024-07-03"):
        return leave_service.submit_leave(
            LeaveRequest(employee_id, leave_type, from_date, to_date, reason="Flu"),
            employee_actor,
        )

    return _submit


def _sick_used(store, employee_id):
    return store.get_by_id(EMPLOYEES, employee_id).get("leave_balance.sick.used")


class TestSubmitLeave:
    def test_request_starts_pending_hod(self, store, submit, employee_id):
        request_id = submit()

        doc = store.get_by_id(LEAVE_REQUESTS, request_id)
        assert doc.get("status") == LeaveStatus.PENDING_HOD.value
        assert doc.get("employee_name") == "Ayesha Khan"
        assert doc.get("leave_type") == "Sick Leave"
        assert doc.get("days") == 3
        assert doc.get("applied_date") == "2024-07-15"

    def test_balance_key_accepted_as_type(self, store, submit):
        request_id = submit(leave_type="casual")
        assert store.get_by_id(LEAVE_REQUESTS, request_id).get("leave_type") == "Casual Leave"

    def test_end_before_start_rejected(self, store, submit):
        with pytest.raises(ValidationError) as exc_info:
            submit(from_date="2024-07-05", to_date="2024-07-01")
        assert "'to_date' must not be before 'from_date'" in exc_info.value.errors
        assert store.get(LEAVE_REQUESTS) == []

    def test_unknown_type_rejected(self, submit):
        with pytest.raises(ValidationError):
            submit(leave_type="Sabbatical")

    def test_unknown_employee(self, leave_service, employee_actor):
        with pytest.raises(NotFoundError):
            leave_service.submit_leave(
                LeaveRequest("ghost", LeaveType.SICK, "2024-07-01", "2024-07-01"), employee_actor,
            )


class TestApproval:
    def test_full_approval_debits_balance(
        self, store, leave_service, submit, employee_id, department_head, hr_officer,
    ):
        request_id = submit()

        first = leave_service.act_on_leave(request_id, LeaveAction.APPROVE, department_head)
        assert first.to_state == LeaveStatus.PENDING_HR.value
        assert _sick_used(store, employee_id) == 0

        final = leave_service.act_on_leave(request_id, LeaveAction.APPROVE, hr_officer)

        assert final.to_state == LeaveStatus.APPROVED.value
        assert final.adjusts_ledger
        doc = store.get_by_id(LEAVE_REQUESTS, request_id)
        assert doc.get("status") == "Approved"
        assert doc.get("hod_approved_by") == department_head.actor_id
        assert doc.get("hr_approved_by") == hr_officer.actor_id
        assert doc.get("approval_date") == "2024-07-15T09:00:00+00:00"
        assert _sick_used(store, employee_id) == 3

    def test_hod_rejection_leaves_balance_alone(
        self, store, leave_service, submit, employee_id, department_head,
    ):
        request_id = submit()

        result = leave_service.act_on_leave(request_id, LeaveAction.REJECT, department_head)

        assert result.to_state == LeaveStatus.REJECTED.value
        assert store.get_by_id(LEAVE_REQUESTS, request_id).get("rejected_by") == department_head.actor_id
        assert _sick_used(store, employee_id) == 0

    def test_hr_rejection(self, store, leave_service, submit, department_head, hr_officer):
        request_id = submit()
        leave_service.act_on_leave(request_id, "Approve", department_head)
        result = leave_service.act_on_leave(request_id, "Reject", hr_officer)
        assert result.to_state == LeaveStatus.REJECTED.value

    def test_second_final_approval_never_debits_twice(
        self, store, leave_service, submit, employee_id, department_head, hr_officer,
    ):
        request_id = submit()
        leave_service.act_on_leave(request_id, LeaveAction.APPROVE, department_head)
        leave_service.act_on_leave(request_id, LeaveAction.APPROVE, hr_officer)

        with pytest.raises(InvalidTransitionError) as exc_info:
            leave_service.act_on_leave(request_id, LeaveAction.APPROVE, hr_officer)

        assert exc_info.value.current_state == "Approved"
        assert _sick_used(store, employee_id) == 3

    def test_overdrawn_balance_tolerated_and_logged(
        self, store, leave_service, submit, employee_id, department_head, hr_officer, captured_logs,
    ):
        # Sick quota is 7; ten days overdraw it.
        request_id = submit(from_date="2024-07-01", to_date="2024-07-10")
        leave_service.act_on_leave(request_id, LeaveAction.APPROVE, department_head)
        leave_service.act_on_leave(request_id, LeaveAction.APPROVE, hr_officer)

        assert _sick_used(store, employee_id) == 10
        assert any(r["message"] == "leave_balance_overdrawn" for r in captured_logs())

    def test_unknown_stored_type_skips_debit(
        self, store, leave_service, submit, employee_id, department_head, hr_officer, captured_logs,
    ):
        request_id = submit()
        leave_service.act_on_leave(request_id, LeaveAction.APPROVE, department_head)
        store.update(LEAVE_REQUESTS, request_id, {"leave_type": "Study Leave"})

        result = leave_service.act_on_leave(request_id, LeaveAction.APPROVE, hr_officer)

        assert result.to_state == LeaveStatus.APPROVED.value
        assert store.get_by_id(LEAVE_REQUESTS, request_id).get("status") == "Approved"
        assert _sick_used(store, employee_id) == 0
        assert any(r["message"] == "leave_balance_debit_skipped" for r in captured_logs())

    def test_timestamp_dates_debit_by_calendar_day(
        self, store, leave_service, submit, employee_id, department_head, hr_officer,
    ):
        request_id = submit()
        leave_service.act_on_leave(request_id, LeaveAction.APPROVE, department_head)
        store.update(LEAVE_REQUESTS, request_id, {
            "from_date": "2024-07-01T00:00:00+00:00",
            "to_date": "2024-07-03T18:30:00+00:00",
        })

        result = leave_service.act_on_leave(request_id, LeaveAction.APPROVE, hr_officer)

        assert result.to_state == LeaveStatus.APPROVED.value
        assert _sick_used(store, employee_id) == 3

    def test_missing_employee_aborts_final_approval(
        self, store, leave_service, submit, employee_id, department_head, hr_officer,
    ):
        request_id = submit()
        leave_service.act_on_leave(request_id, LeaveAction.APPROVE, department_head)
        store.delete(EMPLOYEES, employee_id)

        with pytest.raises(NotFoundError):
            leave_service.act_on_leave(request_id, LeaveAction.APPROVE, hr_officer)

        assert store.get_by_id(LEAVE_REQUESTS, request_id).get("status") == "Pending HR"

    def test_unknown_request(self, leave_service, hr_officer):
        with pytest.raises(NotFoundError):
            leave_service.act_on_leave("ghost", LeaveAction.APPROVE, hr_officer)


class TestRoles:
    def test_employee_cannot_approve(self, store, leave_service, submit, employee_actor):
        request_id = submit()

        with pytest.raises(UnauthorizedActorError) as exc_info:
            leave_service.act_on_leave(request_id, LeaveAction.APPROVE, employee_actor)

        assert exc_info.value.required_roles == ("hod", "hr")
        assert store.get_by_id(LEAVE_REQUESTS, request_id).get("status") == "Pending HOD"

    def test_hod_cannot_give_final_approval(self, leave_service, submit, department_head):
        request_id = submit()
        leave_service.act_on_leave(request_id, LeaveAction.APPROVE, department_head)

        with pytest.raises(UnauthorizedActorError):
            leave_service.act_on_leave(request_id, LeaveAction.APPROVE, department_head)

    def test_admin_may_act_at_every_step(self, store, leave_service, submit, employee_id, admin):
        request_id = submit()
        leave_service.act_on_leave(request_id, LeaveAction.APPROVE, admin)
        leave_service.act_on_leave(request_id, LeaveAction.APPROVE, admin)
        assert _sick_used(store, employee_id) == 3


class TestPendingQueue:
    def test_pending_for_status(self, leave_service, submit, department_head):
        first = submit()
        second = submit(from_date="2024-08-01", to_date="2024-08-01")
        leave_service.act_on_leave(first, LeaveAction.APPROVE, department_head)

        assert [d.id for d in leave_service.pending_for(LeaveStatus.PENDING_HOD)] == [second]
        assert [d.id for d in leave_service.pending_for(LeaveStatus.PENDING_HR)] == [first]


class TestTransitionTrace:
    def test_every_resolution_is_traced(
        self, leave_service, submit, department_head, employee_actor, captured_logs,
    ):
        request_id = submit()
        with pytest.raises(UnauthorizedActorError):
            leave_service.act_on_leave(request_id, LeaveAction.APPROVE, employee_actor)
        leave_service.act_on_leave(request_id, LeaveAction.APPROVE, department_head)

        traces = [r for r in captured_logs() if r["message"] == "workflow_transition"]
        assert [t["outcome"] for t in traces] == ["unauthorized", "success"]
        assert traces[1]["workflow"] == "leave_request"
        assert traces[1]["entity_id"] == request_id
        assert traces[1]["from_state"] == "Pending HOD"
        assert traces[1]["to_state"] == "Pending HR"
        assert traces[1]["actor_id"] == department_head.actor_id
