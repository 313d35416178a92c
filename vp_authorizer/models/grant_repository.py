"""
Tenant grant repository: user <-> tenant membership rows.
"""
import uuid
from typing import Any, Dict, List, Optional, Sequence

from vp_authorizer.logging_config import create_logger
from .database import GSI1_INDEX, GSI2_INDEX, IdentityTable, build_entity_item, get_identity_table, strip_keys
from .keys import (
    tenant_grant_gsi1_keys,
    tenant_grant_gsi1_pk,
    tenant_grant_id_gsi,
    tenant_grant_id_gsi_keys,
    tenant_grant_pk,
    tenant_grant_primary_key,
    tenant_primary_key,
    user_primary_key,
    user_sk,
)
from .transaction import TxCheck, TxDelete, TxPut, write_transaction

logger = create_logger("models.grant_repository")

TENANT_GRANT_KIND = "TENANT_GRANT"


def create_tenant_grant(tenant_id: str, user_id: str, role_ids: Sequence[str] = (),
                        grant_id: Optional[str] = None,
                        attributes: Optional[Dict[str, Any]] = None,
                        table: Optional[IdentityTable] = None) -> Dict[str, Any]:
    """
    Insert a membership row.

    The tenant and user rows are asserted to exist in the same transaction,
    so a grant never points at a missing entity.
    """
    tbl = get_identity_table(table)
    grant_id = grant_id or str(uuid.uuid4())
    item = build_entity_item(
        TENANT_GRANT_KIND,
        {
            **tenant_grant_primary_key(tenant_id, user_id),
            **tenant_grant_gsi1_keys(user_id, tenant_id),
            **tenant_grant_id_gsi_keys(grant_id),
        },
        {**(attributes or {}), "grantId": grant_id, "tenantId": tenant_id, "userId": user_id,
         "roleIds": list(role_ids)},
    )
    write_transaction(
        tbl.client,
        tbl.table_name,
        puts=[TxPut(item)],
        checks=[TxCheck(tenant_primary_key(tenant_id)), TxCheck(user_primary_key(user_id))],
    )
    logger.info(f"tenant_grant.created grantId={grant_id} tenantId={tenant_id} userId={user_id}")
    return strip_keys(item)


def get_tenant_grant(grant_id: str, table: Optional[IdentityTable] = None) -> Optional[Dict[str, Any]]:
    gpk, _ = tenant_grant_id_gsi(grant_id)
    items = get_identity_table(table).query("GSI2PK", gpk, index_name=GSI2_INDEX)
    return strip_keys(items[0]) if items else None


def list_user_tenants(user_id: str, table: Optional[IdentityTable] = None) -> List[Dict[str, Any]]:
    """Every grant held by a user (reverse lookup through GSI1)."""
    items = get_identity_table(table).query(
        "GSI1PK", tenant_grant_gsi1_pk(user_id), index_name=GSI1_INDEX,
        sk_attr="GSI1SK", sk_prefix="TENANT#",
    )
    return [strip_keys(i) for i in items]


def list_tenant_users(tenant_id: str, table: Optional[IdentityTable] = None) -> List[Dict[str, Any]]:
    """Every grant in a tenant partition; the tenant row itself is excluded by the USER# prefix."""
    items = get_identity_table(table).query(
        "PK", tenant_grant_pk(tenant_id), sk_attr="SK", sk_prefix=user_sk(""),
    )
    return [strip_keys(i) for i in items]


def delete_tenant_grant(tenant_id: str, user_id: str, table: Optional[IdentityTable] = None) -> None:
    tbl = get_identity_table(table)
    write_transaction(tbl.client, tbl.table_name, deletes=[TxDelete(tenant_grant_primary_key(tenant_id, user_id))])
    logger.info(f"tenant_grant.deleted tenantId={tenant_id} userId={user_id}")
