"""Tests for region helpers and response building."""
import json
from unittest.mock import patch

import pytest

from conftest import client_error
from vp_authorizer.config import AWS_CONNECT_TIMEOUT, AWS_MAX_ATTEMPTS, AWS_READ_TIMEOUT
from vp_authorizer.errors import CanaryFailure, InvalidArgument, OpError, RetryableError, SchemaParseError
from vp_authorizer.utils import build_response, error_code, partition_for_region, region_from_arn, status_for_error
from vp_authorizer.utils.aws_utils import get_client


@pytest.mark.parametrize("region,partition", [
    ("us-east-1", "aws"),
    ("eu-central-1", "aws"),
    ("cn-north-1", "aws-cn"),
    ("us-gov-west-1", "aws-us-gov"),
    ("", "aws"),
])
def test_partition_for_region(region, partition):
    assert partition_for_region(region) == partition


def test_region_from_arn():
    arn = "arn:aws:verifiedpermissions:eu-west-1:123456789012:policy-store/ps-1"
    assert region_from_arn(arn) == "eu-west-1"


def test_region_from_bad_arn():
    with pytest.raises(InvalidArgument):
        region_from_arn("ps-1")


def test_error_code():
    assert error_code(client_error("ThrottlingException")) == "ThrottlingException"
    assert error_code(ValueError("x")) is None


@pytest.mark.parametrize("exc,status", [
    (InvalidArgument("x"), 400),
    (SchemaParseError("x"), 400),
    (RetryableError(ValueError("x")), 503),
    (OpError(ValueError("x")), 500),
    (CanaryFailure([], 0), 422),
    (RuntimeError("x"), 500),
])
def test_status_for_error(exc, status):
    assert status_for_error(exc) == status


def test_error_response_body():
    response = build_response(error="SchemaParseError", details="bad yaml")
    assert response["statusCode"] == 400
    assert json.loads(response["body"]) == {"error": "SchemaParseError", "details": "bad yaml"}


def test_clients_carry_timeouts_and_retry_settings():
    get_client.cache_clear()
    try:
        with patch("vp_authorizer.utils.aws_utils.boto3.Session") as session:
            get_client("verifiedpermissions", "eu-west-1")

        session.assert_called_once_with(region_name="eu-west-1")
        config = session.return_value.client.call_args.kwargs["config"]
        assert config.connect_timeout == AWS_CONNECT_TIMEOUT
        assert config.read_timeout == AWS_READ_TIMEOUT
        assert config.retries == {"max_attempts": AWS_MAX_ATTEMPTS, "mode": "standard"}
    finally:
        get_client.cache_clear()
