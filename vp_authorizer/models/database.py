"""
Identity table access: client, table name and read helpers.
"""
from typing import Any, Dict, List, Optional

from boto3.dynamodb.types import TypeDeserializer

from vp_authorizer.config import TABLE_CONFIG
from vp_authorizer.errors import InvalidArgument
from vp_authorizer.logging_config import create_logger
from vp_authorizer.utils import get_dynamodb_client, json_clean, now_iso
from .keys import KEY_ATTRIBUTES, Item
from .transaction import classify_error, serialize_item

logger = create_logger("models.database")

IDENTITY_TABLE = TABLE_CONFIG["identity"]
GSI1_INDEX = TABLE_CONFIG["gsi1_index"]
GSI2_INDEX = TABLE_CONFIG["gsi2_index"]

_deserializer = TypeDeserializer()


class IdentityTable:
    """Low-level client bound to the identity table name."""

    def __init__(self, client=None, table_name: str = IDENTITY_TABLE):
        self.client = client or get_dynamodb_client()
        self.table_name = table_name

    def get(self, key: Item) -> Optional[Item]:
        try:
            resp = self.client.get_item(TableName=self.table_name, Key=serialize_item(key))
        except Exception as e:
            raise classify_error(e) from e
        raw = resp.get("Item")
        return deserialize_item(raw) if raw else None

    def query(self, pk_attr: str, pk_value: str, index_name: Optional[str] = None,
              sk_attr: Optional[str] = None, sk_prefix: Optional[str] = None) -> List[Item]:
        """Query one partition (optionally by sort-key prefix), following pagination."""
        condition = "#pk = :pk"
        names = {"#pk": pk_attr}
        values: Dict[str, Any] = {":pk": pk_value}
        if sk_attr and sk_prefix:
            condition += " AND begins_with(#sk, :sk)"
            names["#sk"] = sk_attr
            values[":sk"] = sk_prefix

        kwargs: Dict[str, Any] = {
            "TableName": self.table_name,
            "KeyConditionExpression": condition,
            "ExpressionAttributeNames": names,
            "ExpressionAttributeValues": serialize_item(values),
        }
        if index_name:
            kwargs["IndexName"] = index_name

        items: List[Item] = []
        while True:
            try:
                resp = self.client.query(**kwargs)
            except Exception as e:
                raise classify_error(e) from e
            items.extend(deserialize_item(i) for i in resp.get("Items", []) or [])
            lek = resp.get("LastEvaluatedKey")
            if not lek:
                break
            kwargs["ExclusiveStartKey"] = lek
        return items


def deserialize_item(raw: Dict[str, Any]) -> Item:
    return json_clean({k: _deserializer.deserialize(v) for k, v in raw.items()})


def strip_keys(item: Optional[Item]) -> Optional[Item]:
    """Drop physical key attributes from a row before handing it to callers."""
    if item is None:
        return None
    return {k: v for k, v in item.items() if k not in KEY_ATTRIBUTES}


_default_table: Optional[IdentityTable] = None


def get_identity_table(table: Optional[IdentityTable] = None) -> IdentityTable:
    """Explicit table if given, else a lazily created default bound to IDENTITY_TABLE."""
    global _default_table
    if table is not None:
        return table
    if _default_table is None:
        _default_table = IdentityTable()
    return _default_table


def build_entity_item(kind: str, keys: Item, attributes: Optional[Dict[str, Any]] = None) -> Item:
    """Merge key attributes with free-form attributes; key names are reserved."""
    attributes = dict(attributes or {})
    reserved = sorted(set(attributes) & (set(KEY_ATTRIBUTES) | {"kind", "createdAt"}))
    if reserved:
        raise InvalidArgument(f"attributes may not override reserved fields: {', '.join(reserved)}")
    return {**attributes, **keys, "kind": kind, "createdAt": now_iso()}
