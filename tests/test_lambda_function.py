"""Tests for the Lambda entry point and action routing."""
import json
from unittest.mock import patch

import pytest
from botocore.exceptions import EndpointConnectionError

from conftest import client_error
from vp_authorizer.errors import CanaryFailure, ConflictError, CanaryMismatch
from vp_authorizer.lambda_function import lambda_handler

HANDLER = "vp_authorizer.handlers.deploy_handler"
DEPLOYMENT = "vp_authorizer.services.deployment_service"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("POLICY_STORE_ID", "CANARY_FILE", "ACTION_GROUP_ENFORCEMENT", "DISABLE_GUARDRAILS"):
        monkeypatch.delenv(name, raising=False)


def _body(response):
    return json.loads(response["body"])


def test_deploy_is_the_default_action():
    with patch(f"{HANDLER}.apply_schema_and_policies", return_value={"schemaChanged": False}) as apply:
        response = lambda_handler({"policyStoreId": "ps-1", "region": "eu-west-1"}, None)

    assert response["statusCode"] == 200
    assert response["headers"]["Content-Type"] == "application/json"
    assert _body(response) == {"schemaChanged": False}
    config = apply.call_args.args[0]
    assert config.policy_store_id == "ps-1"
    assert config.region == "eu-west-1"


def test_validate_action(schema_file, policy_dir):
    response = lambda_handler(
        {"action": "validate", "schemaFile": schema_file, "policyDir": policy_dir}, None
    )
    assert response["statusCode"] == 200
    assert _body(response)["namespace"] == "acme"


def test_validate_missing_schema_is_a_client_error(tmp_path, policy_dir):
    response = lambda_handler(
        {"action": "validate", "schemaFile": str(tmp_path / "missing.yaml"), "policyDir": policy_dir}, None
    )
    assert response["statusCode"] == 400
    assert _body(response)["error"] == "SchemaIOError"


def test_canary_action(vp_client, schema_file):
    with patch("vp_authorizer.services.canary_service.get_verified_permissions_client", return_value=vp_client):
        response = lambda_handler({"action": "canary", "policyStoreId": "ps-1", "schemaFile": schema_file}, None)
    assert response["statusCode"] == 200
    assert _body(response)["canaries"]["total"] == 4


def test_unknown_action():
    response = lambda_handler({"action": "destroy"}, None)
    assert response["statusCode"] == 400
    assert "destroy" in _body(response)["error"]


def test_conflict_maps_to_409():
    error = ConflictError(client_error("TransactionCanceledException"), "TransactionCanceledException")
    with patch(f"{HANDLER}.apply_schema_and_policies", side_effect=error):
        response = lambda_handler({"policyStoreId": "ps-1"}, None)
    assert response["statusCode"] == 409


def test_canary_failure_maps_to_422():
    error = CanaryFailure([CanaryMismatch(1, "ALLOW", "DENY", _Case())], 1)
    with patch(f"{HANDLER}.apply_schema_and_policies", side_effect=error):
        response = lambda_handler({"policyStoreId": "ps-1"}, None)
    assert response["statusCode"] == 422
    assert "#1: expected ALLOW, got DENY" in _body(response)["details"]


def test_unexpected_errors_are_500():
    with patch(f"{HANDLER}.apply_schema_and_policies", side_effect=RuntimeError("boom")):
        response = lambda_handler({"policyStoreId": "ps-1"}, None)
    assert response["statusCode"] == 500
    assert _body(response) == {"error": "Internal server error"}


class _Context:
    aws_request_id = "req-1"

    def __init__(self, remaining_ms):
        self.remaining_ms = remaining_ms

    def get_remaining_time_in_millis(self):
        return self.remaining_ms


def test_refuses_to_start_without_time_left():
    with patch(f"{HANDLER}.apply_schema_and_policies") as apply:
        response = lambda_handler({"policyStoreId": "ps-1"}, _Context(500))
    assert response["statusCode"] == 503
    assert _body(response)["error"] == "Insufficient time remaining"
    apply.assert_not_called()


def test_runs_with_time_left():
    with patch(f"{HANDLER}.apply_schema_and_policies", return_value={}) as apply:
        response = lambda_handler({"policyStoreId": "ps-1"}, _Context(600_000))
    assert response["statusCode"] == 200
    apply.assert_called_once()


class TestAwsErrors:
    @pytest.fixture
    def deploy_event(self, schema_file, policy_dir):
        return {"policyStoreId": "ps-1", "schemaFile": schema_file, "policyDir": policy_dir}

    def test_throttled_get_schema_is_503(self, vp_client, deploy_event):
        vp_client.get_schema.side_effect = client_error("ThrottlingException", "GetSchema")
        with patch(f"{DEPLOYMENT}.get_verified_permissions_client", return_value=vp_client):
            response = lambda_handler(deploy_event, None)

        assert response["statusCode"] == 503
        body = _body(response)
        assert body["error"] == "RetryableError"
        assert "ThrottlingException" in body["details"]

    def test_rejected_policy_is_500_with_details(self, vp_client, deploy_event):
        vp_client.create_policy.side_effect = client_error("ValidationException", "CreatePolicy")
        with patch(f"{DEPLOYMENT}.get_verified_permissions_client", return_value=vp_client):
            response = lambda_handler(deploy_event, None)

        assert response["statusCode"] == 500
        assert _body(response)["error"] == "OpError"
        assert "ValidationException" in _body(response)["details"]

    def test_conflicting_update_is_409(self, vp_client, deploy_event):
        vp_client.put_schema.side_effect = client_error("ConditionalCheckFailedException", "PutSchema")
        with patch(f"{DEPLOYMENT}.get_verified_permissions_client", return_value=vp_client):
            response = lambda_handler(deploy_event, None)
        assert response["statusCode"] == 409

    def test_connection_failure_is_op_error(self):
        error = EndpointConnectionError(endpoint_url="https://verifiedpermissions.us-east-1.amazonaws.com")
        with patch(f"{HANDLER}.apply_schema_and_policies", side_effect=error):
            response = lambda_handler({"policyStoreId": "ps-1"}, None)
        assert response["statusCode"] == 500
        assert _body(response)["error"] == "OpError"


class _Case:
    def describe(self):
        return "principal=User:a, action=GetTenant, resource=Tenant:t"
