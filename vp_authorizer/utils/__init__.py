"""
Utilities package for common helper functions.
"""
from .json_utils import json_clean, canonical_json, normalize_json
from .time_utils import now_iso
from .response_utils import build_response, status_for_error
from .aws_utils import (
    get_client,
    get_dynamodb_client,
    get_verified_permissions_client,
    partition_for_region,
    region_from_arn,
    error_code
)

__all__ = [
    'json_clean',
    'canonical_json',
    'normalize_json',
    'now_iso',
    'build_response',
    'status_for_error',
    'get_client',
    'get_dynamodb_client',
    'get_verified_permissions_client',
    'partition_for_region',
    'region_from_arn',
    'error_code'
]
