"""
AWS client factory, region helpers and the narrow client capabilities used here.
"""
from functools import lru_cache
from typing import Any, Dict, Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from vp_authorizer.config import AWS_CONNECT_TIMEOUT, AWS_MAX_ATTEMPTS, AWS_READ_TIMEOUT
from vp_authorizer.errors import InvalidArgument


# ========= Capabilities =========

class TransactWriter(Protocol):
    def transact_write_items(self, **kwargs: Any) -> Dict[str, Any]: ...


class SchemaAPI(Protocol):
    def get_schema(self, **kwargs: Any) -> Dict[str, Any]: ...

    def put_schema(self, **kwargs: Any) -> Dict[str, Any]: ...


class PolicyAPI(Protocol):
    def list_policies(self, **kwargs: Any) -> Dict[str, Any]: ...

    def create_policy(self, **kwargs: Any) -> Dict[str, Any]: ...

    def update_policy(self, **kwargs: Any) -> Dict[str, Any]: ...

    def delete_policy(self, **kwargs: Any) -> Dict[str, Any]: ...


class AuthorizationAPI(Protocol):
    def is_authorized(self, **kwargs: Any) -> Dict[str, Any]: ...


# ========= Clients =========

def client_config() -> Config:
    """Bounded connect/read timeouts so a call cannot outlive the invocation."""
    return Config(
        connect_timeout=AWS_CONNECT_TIMEOUT,
        read_timeout=AWS_READ_TIMEOUT,
        retries={"max_attempts": AWS_MAX_ATTEMPTS, "mode": "standard"},
    )


@lru_cache(maxsize=None)
def get_client(service: str, region: Optional[str] = None):
    """One boto3 client per (service, region); empty region uses the default chain."""
    session = boto3.Session(region_name=region) if region else boto3.Session()
    return session.client(service, config=client_config())


def get_dynamodb_client(region: Optional[str] = None):
    return get_client("dynamodb", region or None)


def get_verified_permissions_client(region: Optional[str] = None):
    return get_client("verifiedpermissions", region or None)


# ========= Regions =========

def partition_for_region(region: str) -> str:
    """Derive the AWS partition from a region name."""
    region = region or ""
    if region.startswith("cn-"):
        return "aws-cn"
    if region.startswith("us-gov-"):
        return "aws-us-gov"
    return "aws"


def region_from_arn(arn: str) -> str:
    parts = (arn or "").split(":")
    if len(parts) < 4:
        raise InvalidArgument(f"unexpected policy store ARN: {arn}")
    return parts[3]


def error_code(exc: BaseException) -> Optional[str]:
    if isinstance(exc, ClientError):
        return (exc.response.get("Error", {}) or {}).get("Code")
    return None
