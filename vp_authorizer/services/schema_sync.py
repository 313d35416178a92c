"""
Idempotent schema convergence for a policy store.
"""
from typing import Optional

from vp_authorizer.logging_config import create_logger
from vp_authorizer.utils import error_code, get_verified_permissions_client, normalize_json
from vp_authorizer.utils.aws_utils import SchemaAPI

logger = create_logger("services.schema_sync")


def fetch_current_schema(client: SchemaAPI, policy_store_id: str) -> str:
    """Deployed schema text; a store without a schema yields ''."""
    try:
        resp = client.get_schema(policyStoreId=policy_store_id)
    except Exception as e:
        if error_code(e) == "ResourceNotFoundException":
            return ""
        raise
    return resp.get("schema") or ""


def put_schema_if_changed(policy_store_id: str, cedar_json: str, region: str = "",
                          client: Optional[SchemaAPI] = None) -> bool:
    """
    Replace the store's schema only when it differs canonically from cedar_json.

    Returns True when a PutSchema was issued, False for a no-op. Errors from
    either call propagate unchanged.
    """
    client = client or get_verified_permissions_client(region)

    current = fetch_current_schema(client, policy_store_id)
    if normalize_json(current) == normalize_json(cedar_json):
        logger.info(f"schema.unchanged policyStoreId={policy_store_id}")
        return False

    client.put_schema(
        policyStoreId=policy_store_id,
        definition={"cedarJson": cedar_json},
    )
    logger.info(f"schema.applied policyStoreId={policy_store_id}")
    return True
