"""
Tenant repository: tenant rows plus their name uniqueness guard.
"""
import uuid
from typing import Any, Dict, Optional

from vp_authorizer.logging_config import create_logger
from .database import IdentityTable, build_entity_item, get_identity_table, strip_keys
from .keys import GuardRow, tenant_name_gsi_keys, tenant_primary_key
from .transaction import TxDelete, TxPut, write_transaction

logger = create_logger("models.tenant_repository")

TENANT_KIND = "TENANT"


def create_tenant(name: str, tenant_id: Optional[str] = None,
                  attributes: Optional[Dict[str, Any]] = None,
                  table: Optional[IdentityTable] = None) -> Dict[str, Any]:
    """Insert the tenant row and its name guard atomically; ConflictError if either exists."""
    tbl = get_identity_table(table)
    tenant_id = tenant_id or str(uuid.uuid4())

    item = build_entity_item(
        TENANT_KIND,
        {**tenant_primary_key(tenant_id), **tenant_name_gsi_keys(name)},
        {**(attributes or {}), "tenantId": tenant_id, "name": name},
    )
    guard = GuardRow("tenantName", name, tenant_id)

    write_transaction(tbl.client, tbl.table_name, puts=[TxPut(item), TxPut(guard.to_item())])
    logger.info(f"tenant.created tenantId={tenant_id}")
    return strip_keys(item)


def get_tenant(tenant_id: str, table: Optional[IdentityTable] = None) -> Optional[Dict[str, Any]]:
    return strip_keys(get_identity_table(table).get(tenant_primary_key(tenant_id)))


def delete_tenant(tenant_id: str, name: str, table: Optional[IdentityTable] = None) -> None:
    """Remove the tenant row and its name guard as one unit."""
    tbl = get_identity_table(table)
    guard = GuardRow("tenantName", name, tenant_id)
    write_transaction(tbl.client, tbl.table_name, deletes=[
        TxDelete(tenant_primary_key(tenant_id)),
        TxDelete(guard.key()),
    ])
    logger.info(f"tenant.deleted tenantId={tenant_id}")
