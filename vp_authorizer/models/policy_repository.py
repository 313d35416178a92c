"""
Policy metadata repository (static Cedar policies installed in the store).
"""
from typing import Any, Dict, Optional

from vp_authorizer.logging_config import create_logger
from .database import GSI1_INDEX, IdentityTable, build_entity_item, get_identity_table, strip_keys
from .keys import policy_id_gsi, policy_id_gsi_keys, policy_primary_key
from .transaction import TxPut, write_transaction

logger = create_logger("models.policy_repository")

POLICY_KIND = "POLICY"


def create_policy_record(name: str, policy_id: str, attributes: Optional[Dict[str, Any]] = None,
                         table: Optional[IdentityTable] = None) -> Dict[str, Any]:
    tbl = get_identity_table(table)
    item = build_entity_item(
        POLICY_KIND,
        {**policy_primary_key(name), **policy_id_gsi_keys(policy_id)},
        {**(attributes or {}), "policyId": policy_id, "name": name},
    )
    write_transaction(tbl.client, tbl.table_name, puts=[TxPut(item)])
    logger.info(f"policy_record.created policyId={policy_id}")
    return strip_keys(item)


def get_policy_record(name: str, table: Optional[IdentityTable] = None) -> Optional[Dict[str, Any]]:
    return strip_keys(get_identity_table(table).get(policy_primary_key(name)))


def get_policy_record_by_id(policy_id: str, table: Optional[IdentityTable] = None) -> Optional[Dict[str, Any]]:
    gpk, _ = policy_id_gsi(policy_id)
    items = get_identity_table(table).query("GSI1PK", gpk, index_name=GSI1_INDEX)
    return strip_keys(items[0]) if items else None
