"""
All-or-nothing multi-item writes against the identity table.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from boto3.dynamodb.types import TypeSerializer

from vp_authorizer.errors import ConflictError, InvalidArgument, OpError, RetryableError, StoreError
from vp_authorizer.logging_config import create_logger
from vp_authorizer.utils.aws_utils import TransactWriter, error_code
from .keys import Item, key_preview

logger = create_logger("models.transaction")

NOT_EXISTS_CONDITION = "attribute_not_exists(PK) AND attribute_not_exists(SK)"
EXISTS_CONDITION = "attribute_exists(PK) AND attribute_exists(SK)"

CONFLICT_CODES = {"ConditionalCheckFailedException", "TransactionCanceledException"}
RETRYABLE_CODES = {
    "ProvisionedThroughputExceededException",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TransactionInProgressException",
}

_serializer = TypeSerializer()


@dataclass
class TxPut:
    """Full row to insert; guarded by a not-exists condition on (PK, SK)."""
    item: Item


@dataclass
class TxCheck:
    """Standalone condition on an existing key, bundled into the transaction."""
    key: Item
    condition_expression: str = EXISTS_CONDITION
    expression_attribute_values: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TxDelete:
    """Row removal; guarded by an exists condition so a missing row aborts the batch."""
    key: Item
    condition_expression: Optional[str] = EXISTS_CONDITION


def _to_dynamo(value: Any) -> Any:
    # TypeSerializer rejects float
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: _to_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_dynamo(v) for v in value]
    return value


def serialize_item(item: Item) -> Dict[str, Any]:
    return {k: _serializer.serialize(_to_dynamo(v)) for k, v in item.items()}


def classify_error(exc: BaseException) -> StoreError:
    """Map an AWS failure onto conflict / retryable / op error."""
    code = error_code(exc)
    if code in CONFLICT_CODES:
        return ConflictError(exc, code)
    if code in RETRYABLE_CODES:
        return RetryableError(exc, code)
    return OpError(exc, code)


def build_transact_items(table_name: str, puts: Sequence[TxPut], checks: Sequence[TxCheck],
                         deletes: Sequence[TxDelete] = ()) -> List[Dict[str, Any]]:
    actions: List[Dict[str, Any]] = []

    for i, p in enumerate(puts):
        actions.append({"Put": {
            "TableName": table_name,
            "Item": serialize_item(p.item),
            "ConditionExpression": NOT_EXISTS_CONDITION,
        }})
        logger.debug(f"dynamo.tx.put index={i} key={key_preview(p.item)}")

    for i, c in enumerate(checks):
        check: Dict[str, Any] = {
            "TableName": table_name,
            "Key": serialize_item(c.key),
            "ConditionExpression": c.condition_expression,
        }
        if c.expression_attribute_values:
            check["ExpressionAttributeValues"] = serialize_item(c.expression_attribute_values)
        actions.append({"ConditionCheck": check})
        logger.debug(f"dynamo.tx.check index={i} key={key_preview(c.key)}")

    for i, d in enumerate(deletes):
        delete: Dict[str, Any] = {"TableName": table_name, "Key": serialize_item(d.key)}
        if d.condition_expression:
            delete["ConditionExpression"] = d.condition_expression
        actions.append({"Delete": delete})
        logger.debug(f"dynamo.tx.delete index={i} key={key_preview(d.key)}")

    return actions


def write_transaction(client: TransactWriter, table_name: str, puts: Sequence[TxPut] = (),
                      checks: Sequence[TxCheck] = (), deletes: Sequence[TxDelete] = ()) -> None:
    """
    Execute puts, checks and deletes as one TransactWriteItems call.

    Any failed condition cancels the whole batch. Failures are raised as
    ConflictError, RetryableError or OpError; nothing is retried here.
    """
    if not puts and not checks and not deletes:
        raise InvalidArgument("write_transaction requires at least one put, check or delete")
    if not table_name:
        raise InvalidArgument("write_transaction requires a table name")

    actions = build_transact_items(table_name, puts, checks, deletes)
    try:
        client.transact_write_items(TransactItems=actions)
    except Exception as e:
        classified = classify_error(e)
        logger.warning(f"dynamo.tx.failed kind={classified.label} code={classified.code}")
        raise classified from e

    logger.info(f"dynamo.tx.ok puts={len(puts)} checks={len(checks)} deletes={len(deletes)}")
