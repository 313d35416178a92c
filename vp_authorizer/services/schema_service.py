"""
Schema loading and validation.

A schema document is a single mapping of namespace -> {entityTypes, actions}.
It is parsed from YAML or JSON, checked for the required principal entity
types and re-serialized to canonical JSON, which is what gets uploaded and
what drift detection compares.
"""
import json
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import yaml

from vp_authorizer.config import REQUIRED_PRINCIPALS, SCHEMA_SIZE_LIMIT, SCHEMA_SIZE_WARN_THRESHOLD
from vp_authorizer.errors import (
    MissingPrincipalType,
    SchemaIOError,
    SchemaParseError,
    SchemaStructureError,
    SizeLimitExceeded,
    UnsupportedFormat,
)
from vp_authorizer.logging_config import create_logger
from vp_authorizer.utils import canonical_json

logger = create_logger("services.schema")

NAMESPACE_RE = re.compile(r"^[a-z0-9][a-z0-9-]+$")

YAML_EXTENSIONS = (".yaml", ".yml")
JSON_EXTENSIONS = (".json",)


@dataclass
class LoadedSchema:
    cedar_json: str
    namespace: str
    actions: List[str]
    warnings: List[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.cedar_json.encode("utf-8"))


def read_document(path: str) -> Any:
    """Read a file, then parse it as YAML or JSON chosen by extension."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except OSError as e:
        raise SchemaIOError(f"failed to read schema file {path}: {e}") from e

    ext = os.path.splitext(path)[1].lower()
    if ext not in YAML_EXTENSIONS + JSON_EXTENSIONS:
        raise UnsupportedFormat(f"unsupported schema extension {ext!r}; expected .yaml, .yml, or .json")

    if ext in JSON_EXTENSIONS:
        try:
            return json.loads(raw)
        except ValueError as e:
            raise SchemaParseError(f"invalid JSON in {path}: {e}") from e
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise SchemaParseError(f"invalid YAML in {path}: {e}") from e


def extract_single_namespace(doc: Any) -> Tuple[str, Dict[str, Any]]:
    if not isinstance(doc, dict):
        raise SchemaStructureError("schema must be a mapping of namespace -> {entityTypes, actions}")
    if len(doc) != 1:
        raise SchemaStructureError(f"a single namespace per schema is supported; found {len(doc)} namespaces")
    ns, body = next(iter(doc.items()))
    ns = str(ns)
    if not isinstance(body, dict):
        raise SchemaStructureError(f"schema namespace {ns!r} must map to an object")
    return ns, body


def namespace_warnings(ns: str) -> List[str]:
    if NAMESPACE_RE.match(ns):
        return []
    return [f"namespace {ns!r} is non-standard; consider simple kebab-case"]


def validate_required_principals(ns: str, body: Dict[str, Any],
                                 required: Tuple[str, ...] = REQUIRED_PRINCIPALS) -> None:
    if "entityTypes" not in body:
        raise SchemaStructureError(f"schema namespace {ns!r} must define entityTypes")
    entity_types = body["entityTypes"]
    if not isinstance(entity_types, dict):
        raise SchemaStructureError("entityTypes must be an object of entity type definitions")
    missing = [p for p in required if p not in entity_types]
    if missing:
        raise MissingPrincipalType(ns, missing)


def collect_action_names(body: Dict[str, Any]) -> List[str]:
    actions = body.get("actions")
    if not isinstance(actions, dict):
        return []
    return [str(name) for name in actions]


def canonicalize_schema(doc: Dict[str, Any], limit: int = SCHEMA_SIZE_LIMIT) -> str:
    """Canonical JSON; the size ceiling applies to this form, not the source file."""
    cedar_json = canonical_json(doc)
    size = len(cedar_json.encode("utf-8"))
    if size > limit:
        raise SizeLimitExceeded(size, limit)
    return cedar_json


def load_and_validate_schema(path: str) -> LoadedSchema:
    """
    Parse a schema file and return canonical JSON, namespace, action names and warnings.

    Raises SchemaIOError, UnsupportedFormat, SchemaParseError,
    SchemaStructureError, MissingPrincipalType or SizeLimitExceeded.
    """
    doc = read_document(path)
    ns, body = extract_single_namespace(doc)
    warnings = namespace_warnings(ns)
    validate_required_principals(ns, body)
    actions = collect_action_names(body)
    cedar_json = canonicalize_schema(doc)

    schema = LoadedSchema(cedar_json=cedar_json, namespace=ns, actions=actions, warnings=warnings)
    if schema.size >= SCHEMA_SIZE_WARN_THRESHOLD:
        schema.warnings.append(
            f"schema JSON is {schema.size} bytes (>=95% of {SCHEMA_SIZE_LIMIT:,} byte limit); "
            "consider simplifying entity shapes"
        )
    for w in schema.warnings:
        logger.warning(f"schema.warning {w}")
    logger.info(f"schema.loaded namespace={ns} actions={len(actions)} bytes={schema.size}")
    return schema
