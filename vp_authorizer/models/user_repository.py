"""
User repository: user rows plus email / phone / preferred-username guards.
"""
import uuid
from typing import Any, Dict, List, Optional

from vp_authorizer.errors import InvalidArgument
from vp_authorizer.logging_config import create_logger
from .database import IdentityTable, build_entity_item, get_identity_table, strip_keys
from .keys import GuardRow, user_primary_key
from .transaction import TxDelete, TxPut, write_transaction

logger = create_logger("models.user_repository")

USER_KIND = "USER"


def user_guards(user_id: str, email: Optional[str], phone: Optional[str] = None,
                preferred_username: Optional[str] = None) -> List[GuardRow]:
    guards = []
    for attr, value in (("email", email), ("phone", phone), ("preferredUsername", preferred_username)):
        if value:
            guards.append(GuardRow(attr, value, user_id))
    return guards


def create_user(email: str, phone: Optional[str] = None, preferred_username: Optional[str] = None,
                user_id: Optional[str] = None, attributes: Optional[Dict[str, Any]] = None,
                table: Optional[IdentityTable] = None) -> Dict[str, Any]:
    """Insert the user row and one guard per unique attribute in a single transaction."""
    if not email:
        raise InvalidArgument("email is required")
    tbl = get_identity_table(table)
    user_id = user_id or str(uuid.uuid4())

    fields: Dict[str, Any] = {**(attributes or {}), "userId": user_id, "email": email}
    if phone:
        fields["phone"] = phone
    if preferred_username:
        fields["preferredUsername"] = preferred_username
    item = build_entity_item(USER_KIND, user_primary_key(user_id), fields)

    puts = [TxPut(item)] + [TxPut(g.to_item()) for g in user_guards(user_id, email, phone, preferred_username)]
    write_transaction(tbl.client, tbl.table_name, puts=puts)
    logger.info(f"user.created userId={user_id} guards={len(puts) - 1}")
    return strip_keys(item)


def get_user(user_id: str, table: Optional[IdentityTable] = None) -> Optional[Dict[str, Any]]:
    return strip_keys(get_identity_table(table).get(user_primary_key(user_id)))


def delete_user(user_id: str, email: str, phone: Optional[str] = None,
                preferred_username: Optional[str] = None,
                table: Optional[IdentityTable] = None) -> None:
    tbl = get_identity_table(table)
    deletes = [TxDelete(user_primary_key(user_id))]
    deletes += [TxDelete(g.key()) for g in user_guards(user_id, email, phone, preferred_username)]
    write_transaction(tbl.client, tbl.table_name, deletes=deletes)
    logger.info(f"user.deleted userId={user_id}")
