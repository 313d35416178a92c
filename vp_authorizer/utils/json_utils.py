"""
JSON utilities for DynamoDB types and canonical schema comparison.
"""
import json
from decimal import Decimal
from datetime import date, datetime
from typing import Any


def json_clean(obj: Any) -> Any:
    """
    Recursively convert boto3/DynamoDB types to JSON-safe types.
    """
    if isinstance(obj, dict):
        return {k: json_clean(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [json_clean(v) for v in obj]
    if isinstance(obj, set):
        return sorted(json_clean(v) for v in obj)
    if isinstance(obj, Decimal):
        return int(obj) if obj % 1 == 0 else float(obj)
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    return obj


def canonical_json(obj: Any) -> str:
    """Sorted keys, no insignificant whitespace."""
    return json.dumps(json_clean(obj), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def normalize_json(text: str) -> str:
    """
    Canonicalize JSON text for equality checks.

    Empty input stays empty; text that is not valid JSON is returned unchanged
    so that two unparseable documents still compare by content.
    """
    if not text:
        return ""
    try:
        return canonical_json(json.loads(text))
    except ValueError:
        return text
