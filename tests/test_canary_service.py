"""Tests for canary loading and evaluation."""
from unittest.mock import MagicMock

import pytest

from vp_authorizer.errors import CanaryExecutionError, CanaryFailure, CanaryMismatch, InvalidArgument, SchemaParseError
from vp_authorizer.services.canary_service import (
    CanaryCase,
    build_request,
    load_canary_cases,
    load_canary_file,
    run_canaries,
    run_combined_canaries,
    to_attribute_value,
)

ALLOW_CASE = """
cases:
  - principal: { entityType: "${NAMESPACE}::User", entityId: "alice" }
    action: GetTenant
    resource: { entityType: "${NAMESPACE}::Tenant", entityId: "t1" }
    expect: ALLOW
"""


def _case(expect="ALLOW", **context):
    return CanaryCase("acme::User", "alice", "GetTenant", "acme::Tenant", "t1", expect, context)


@pytest.fixture
def canary_file(tmp_path):
    path = tmp_path / "canaries.yaml"
    path.write_text(ALLOW_CASE, encoding="utf-8")
    return str(path)


class TestLoading:
    def test_namespace_substituted(self, canary_file):
        cases = load_canary_file(canary_file, "acme")
        assert cases == [_case()]

    def test_consumer_cases_run_first(self, canary_file):
        cases = load_canary_cases(canary_file, "error", "acme")
        assert len(cases) == 5
        assert cases[0].principal_id == "alice"
        assert all(c.expect == "DENY" for c in cases[1:])

    def test_absent_consumer_file_is_not_an_error(self, tmp_path):
        cases = load_canary_cases(str(tmp_path / "missing.yaml"), "warn", "acme")
        assert len(cases) == 4

    def test_action_enforcement_cases_skipped_when_off(self):
        cases = load_canary_cases(None, "off", "acme")
        assert len(cases) == 3
        assert all(not c.context for c in cases)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "canaries.yaml"
        path.write_text("cases: [unclosed\n", encoding="utf-8")
        with pytest.raises(SchemaParseError):
            load_canary_file(str(path))

    def test_case_missing_expect(self, tmp_path):
        path = tmp_path / "canaries.yaml"
        path.write_text(ALLOW_CASE.replace("    expect: ALLOW\n", ""), encoding="utf-8")
        with pytest.raises(InvalidArgument) as exc:
            load_canary_file(str(path))
        assert "#1" in str(exc.value) and "expect" in str(exc.value)

    def test_invalid_expectation(self, tmp_path):
        path = tmp_path / "canaries.yaml"
        path.write_text(ALLOW_CASE.replace("ALLOW", "MAYBE"), encoding="utf-8")
        with pytest.raises(InvalidArgument):
            load_canary_file(str(path))


class TestRequests:
    def test_namespaced_action(self):
        request = build_request(_case(), "ps-1", "acme")
        assert request == {
            "policyStoreId": "ps-1",
            "principal": {"entityType": "acme::User", "entityId": "alice"},
            "action": {"actionType": "acme::Action", "actionId": "GetTenant"},
            "resource": {"entityType": "acme::Tenant", "entityId": "t1"},
        }

    def test_bare_action_without_namespace(self):
        assert build_request(_case(), "ps-1")["action"]["actionType"] == "Action"

    def test_context_map(self):
        request = build_request(_case(unmappedAction=True, level=3), "ps-1", "acme")
        assert request["context"] == {"contextMap": {
            "unmappedAction": {"boolean": True},
            "level": {"long": 3},
        }}

    def test_attribute_values(self):
        assert to_attribute_value("x") == {"string": "x"}
        assert to_attribute_value(["a"]) == {"set": [{"string": "a"}]}
        assert to_attribute_value({"k": False}) == {"record": {"k": {"boolean": False}}}
        assert to_attribute_value(1.5) == {"string": "1.5"}


class TestRunCanaries:
    def test_allow_case_passes(self):
        client = MagicMock()
        client.is_authorized.return_value = {"decision": "ALLOW"}
        report = run_canaries([_case()], "ps-1", client, "acme")
        assert report.ok
        assert report.total == report.passed == 1
        assert report.results[0].actual == "ALLOW"

    def test_decision_comparison_ignores_case(self):
        client = MagicMock()
        client.is_authorized.return_value = {"decision": "ALLOW"}
        assert run_canaries([_case("allow")], "ps-1", client).ok

    def test_deny_only_store_fails_allow_case(self):
        client = MagicMock()
        client.is_authorized.return_value = {"decision": "DENY"}
        report = run_canaries([_case()], "ps-1", client, "acme")

        failure = report.failures[0]
        assert isinstance(failure, CanaryMismatch)
        assert str(failure) == (
            "#1: expected ALLOW, got DENY "
            "(principal=acme::User:alice, action=GetTenant, resource=acme::Tenant:t1)"
        )

    def test_missing_decision_is_an_execution_error(self):
        client = MagicMock()
        client.is_authorized.return_value = {"determiningPolicies": []}
        report = run_canaries([_case("DENY")], "ps-1", client)

        assert not report.ok
        assert isinstance(report.failures[0], CanaryExecutionError)
        assert str(report.failures[0]) == "#1: API error: response carried no decision"

    def test_every_case_runs_and_failures_accumulate(self):
        client = MagicMock()
        client.is_authorized.side_effect = [
            {"decision": "DENY"},
            RuntimeError("throttled"),
            {"decision": "ALLOW"},
        ]
        report = run_canaries([_case(), _case(), _case()], "ps-1", client)

        assert client.is_authorized.call_count == 3
        assert report.passed == 1
        assert [f.index for f in report.failures] == [1, 2]
        assert isinstance(report.failures[1], CanaryExecutionError)
        assert str(report.failures[1]) == "#2: API error: throttled"
        assert [r.passed for r in report.results] == [False, False, True]


class TestCombined:
    def test_builtin_cases_pass_against_deny_store(self, vp_client):
        report = run_combined_canaries("us-east-1", "ps-1", None, "error", "acme", client=vp_client)
        assert report.total == 4 and report.ok
        contexts = [c.kwargs.get("context") for c in vp_client.is_authorized.call_args_list]
        assert contexts[-1] == {"contextMap": {"unmappedAction": {"boolean": True}}}

    def test_failures_raised_together(self, vp_client, canary_file):
        with pytest.raises(CanaryFailure) as exc:
            run_combined_canaries("us-east-1", "ps-1", canary_file, "error", "acme", client=vp_client)
        assert exc.value.total == 5
        assert str(exc.value).startswith("canaries failed (1/5): #1: expected ALLOW, got DENY")
