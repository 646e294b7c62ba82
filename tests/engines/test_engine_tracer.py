"""ENGINE_TRACE records emitted around pure engine calls."""

from datetime import date
from decimal import Decimal

from ops_engines.leave import compute_pro_rata_leave
from ops_engines.payroll import compute_net_pay
from ops_engines.tracer import compute_input_fingerprint


def _engine_traces(records, name):
    return [r for r in records if r["message"] == "ENGINE_TRACE" and r["engine_name"] == name]


def test_trace_emitted_per_call(captured_logs):
    compute_net_pay(Decimal("30000"), 15, True)

    (trace,) = _engine_traces(captured_logs(), "net_pay")
    assert trace["trace_type"] == "ENGINE_TRACE"
    assert trace["engine_version"] == "1.0"
    assert trace["function"] == "compute_net_pay"
    assert len(trace["input_fingerprint"]) == 16


def test_positional_and_keyword_calls_fingerprint_alike(captured_logs):
    compute_pro_rata_leave(date(2024, 7, 1), 2024)
    compute_pro_rata_leave(join_date=date(2024, 7, 1), current_year=2024)
    compute_pro_rata_leave(date(2024, 8, 1), 2024)

    first, second, third = _engine_traces(captured_logs(), "leave_entitlement")
    assert first["input_fingerprint"] == second["input_fingerprint"]
    assert first["input_fingerprint"] != third["input_fingerprint"]


def test_fingerprint_ignores_dict_order():
    left = compute_input_fingerprint(("q",), {"q": {"a": 1, "b": 2}})
    right = compute_input_fingerprint(("q",), {"q": {"b": 2, "a": 1}})
    assert left == right


def test_missing_field_fingerprints_as_null():
    assert compute_input_fingerprint(("x",), {}) == compute_input_fingerprint(("x",), {"x": None})
