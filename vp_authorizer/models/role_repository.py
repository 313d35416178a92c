"""
Role repository: roles keyed by scope + name, looked up by id through GSI1.
"""
import uuid
from typing import Any, Dict, Optional

from vp_authorizer.logging_config import create_logger
from .database import GSI1_INDEX, IdentityTable, build_entity_item, get_identity_table, strip_keys
from .keys import role_id_gsi, role_id_gsi_keys, role_primary_key
from .transaction import TxDelete, TxPut, write_transaction

logger = create_logger("models.role_repository")

ROLE_KIND = "ROLE"


def create_role(scope: str, name: str, role_id: Optional[str] = None,
                attributes: Optional[Dict[str, Any]] = None,
                table: Optional[IdentityTable] = None) -> Dict[str, Any]:
    """Insert a role; the (scope, name) primary key is its uniqueness guarantee."""
    tbl = get_identity_table(table)
    role_id = role_id or str(uuid.uuid4())
    item = build_entity_item(
        ROLE_KIND,
        {**role_primary_key(scope, name), **role_id_gsi_keys(role_id)},
        {**(attributes or {}), "roleId": role_id, "scope": scope, "name": name},
    )
    write_transaction(tbl.client, tbl.table_name, puts=[TxPut(item)])
    logger.info(f"role.created roleId={role_id} scope={scope}")
    return strip_keys(item)


def get_role_by_name(scope: str, name: str, table: Optional[IdentityTable] = None) -> Optional[Dict[str, Any]]:
    return strip_keys(get_identity_table(table).get(role_primary_key(scope, name)))


def get_role_by_id(role_id: str, table: Optional[IdentityTable] = None) -> Optional[Dict[str, Any]]:
    gpk, _ = role_id_gsi(role_id)
    items = get_identity_table(table).query("GSI1PK", gpk, index_name=GSI1_INDEX)
    return strip_keys(items[0]) if items else None


def delete_role(scope: str, name: str, table: Optional[IdentityTable] = None) -> None:
    tbl = get_identity_table(table)
    write_transaction(tbl.client, tbl.table_name, deletes=[TxDelete(role_primary_key(scope, name))])
    logger.info(f"role.deleted scope={scope} name={name}")
