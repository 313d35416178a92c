"""
Authorization canaries: live IsAuthorized checks run after every deployment.

The case list is the caller's file (when present), then the built-in
base-deny cases, then the built-in action-enforcement cases (unless the
enforcement mode is off). Every case runs; failures are collected and
raised together so one run shows everything that is wrong.
"""
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from vp_authorizer.config import normalize_mode
from vp_authorizer.errors import (
    CanaryError,
    CanaryExecutionError,
    CanaryFailure,
    CanaryMismatch,
    InvalidArgument,
    SchemaIOError,
    SchemaParseError,
)
from vp_authorizer.logging_config import create_logger
from vp_authorizer.utils import get_verified_permissions_client
from vp_authorizer.utils.aws_utils import AuthorizationAPI
from .policy_installer import ASSETS_DIR, NAMESPACE_PLACEHOLDER

logger = create_logger("services.canary")

CANARY_DIR = os.path.join(ASSETS_DIR, "canaries")
BASE_DENY_CANARIES = os.path.join(CANARY_DIR, "base-deny.yaml")
ACTION_ENFORCEMENT_CANARIES = os.path.join(CANARY_DIR, "action-enforcement.yaml")

REQUIRED_CASE_KEYS = ("principal", "action", "resource", "expect")
DECISIONS = ("ALLOW", "DENY")


@dataclass(frozen=True)
class CanaryCase:
    principal_type: str
    principal_id: str
    action: str
    resource_type: str
    resource_id: str
    expect: str
    context: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], index: int, source: str) -> "CanaryCase":
        if not isinstance(raw, dict):
            raise InvalidArgument(f"canary #{index} in {source} must be a mapping")
        missing = [k for k in REQUIRED_CASE_KEYS if k not in raw]
        if missing:
            raise InvalidArgument(f"canary #{index} in {source} missing {', '.join(missing)}")
        principal = raw.get("principal") or {}
        resource = raw.get("resource") or {}
        if not isinstance(principal, dict) or not isinstance(resource, dict):
            raise InvalidArgument(f"canary #{index} in {source}: principal and resource must be mappings")
        if str(raw["expect"]).upper() not in DECISIONS:
            raise InvalidArgument(f"canary #{index} in {source}: expect must be ALLOW or DENY")
        context = raw.get("context") or {}
        if not isinstance(context, dict):
            raise InvalidArgument(f"canary #{index} in {source}: context must be a mapping")
        return cls(
            principal_type=str(principal.get("entityType", "")),
            principal_id=str(principal.get("entityId", "")),
            action=str(raw["action"]),
            resource_type=str(resource.get("entityType", "")),
            resource_id=str(resource.get("entityId", "")),
            expect=str(raw["expect"]),
            context=context,
        )

    def describe(self) -> str:
        return (f"principal={self.principal_type}:{self.principal_id}, action={self.action}, "
                f"resource={self.resource_type}:{self.resource_id}")


@dataclass
class CanaryResult:
    index: int
    case: CanaryCase
    expected: str
    actual: str = ""
    error: Optional[CanaryError] = None

    @property
    def passed(self) -> bool:
        return self.error is None


@dataclass
class CanaryReport:
    total: int
    passed: int
    failures: List[CanaryError] = field(default_factory=list)
    results: List[CanaryResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "passed": self.passed, "failures": [str(f) for f in self.failures]}


# ========= Loading =========

def read_canary_document(text: str, source: str) -> List[Dict[str, Any]]:
    try:
        doc = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise SchemaParseError(f"invalid canary YAML {source}: {e}") from e
    if not isinstance(doc, dict):
        raise SchemaParseError(f"invalid canary YAML {source}: expected a mapping with 'cases'")
    cases = doc.get("cases") or []
    if not isinstance(cases, list):
        raise SchemaParseError(f"invalid canary file {source}: cases must be a list")
    return cases


def load_canary_file(path: str, namespace: str = "") -> List[CanaryCase]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise SchemaIOError(f"failed to read canary file {path}: {e}") from e
    if namespace:
        text = text.replace(NAMESPACE_PLACEHOLDER, namespace)
    return [CanaryCase.from_dict(raw, i, path) for i, raw in enumerate(read_canary_document(text, path), start=1)]


def load_canary_cases(consumer_path: Optional[str], mode: str, namespace: str = "") -> List[CanaryCase]:
    """Caller cases (a missing file is not an error), then built-in cases."""
    mode = normalize_mode(mode)
    cases: List[CanaryCase] = []
    if consumer_path and os.path.exists(consumer_path):
        cases.extend(load_canary_file(consumer_path, namespace))
    elif consumer_path:
        logger.info(f"canary.file_absent path={consumer_path}")

    cases.extend(load_canary_file(BASE_DENY_CANARIES, namespace))
    if mode != "off":
        cases.extend(load_canary_file(ACTION_ENFORCEMENT_CANARIES, namespace))
    return cases


# ========= Execution =========

def to_attribute_value(value: Any) -> Dict[str, Any]:
    """Python value -> Verified Permissions AttributeValue."""
    if isinstance(value, bool):
        return {"boolean": value}
    if isinstance(value, int):
        return {"long": value}
    if isinstance(value, str):
        return {"string": value}
    if isinstance(value, (list, tuple, set)):
        return {"set": [to_attribute_value(v) for v in value]}
    if isinstance(value, dict):
        return {"record": {str(k): to_attribute_value(v) for k, v in value.items()}}
    return {"string": str(value)}


def build_request(case: CanaryCase, policy_store_id: str, namespace: str = "") -> Dict[str, Any]:
    action_type = f"{namespace}::Action" if namespace else "Action"
    request: Dict[str, Any] = {
        "policyStoreId": policy_store_id,
        "principal": {"entityType": case.principal_type, "entityId": case.principal_id},
        "action": {"actionType": action_type, "actionId": case.action},
        "resource": {"entityType": case.resource_type, "entityId": case.resource_id},
    }
    if case.context:
        request["context"] = {
            "contextMap": {str(k): to_attribute_value(v) for k, v in case.context.items()}
        }
    return request


def run_canaries(cases: List[CanaryCase], policy_store_id: str, client: AuthorizationAPI,
                 namespace: str = "") -> CanaryReport:
    """Evaluate every case; failures are reported with their 1-based case index."""
    results: List[CanaryResult] = []
    for index, case in enumerate(cases, start=1):
        expected = case.expect.upper()
        try:
            resp = client.is_authorized(**build_request(case, policy_store_id, namespace))
        except Exception as e:
            logger.warning(f"canary.error index={index} {case.describe()}")
            results.append(CanaryResult(index, case, expected, error=CanaryExecutionError(index, e)))
            continue
        decision = (resp or {}).get("decision")
        if not decision:
            logger.warning(f"canary.no_decision index={index} {case.describe()}")
            error = CanaryExecutionError(index, ValueError("response carried no decision"))
            results.append(CanaryResult(index, case, expected, error=error))
            continue
        actual = str(decision).upper()
        result = CanaryResult(index, case, expected, actual)
        if actual != expected:
            logger.warning(f"canary.mismatch index={index} expected={expected} actual={actual}")
            result.error = CanaryMismatch(index, expected, actual, case)
        results.append(result)

    failures = [r.error for r in results if r.error is not None]
    report = CanaryReport(total=len(cases), passed=len(cases) - len(failures),
                          failures=failures, results=results)
    logger.info(f"canary.completed total={report.total} passed={report.passed}")
    return report


def run_combined_canaries(region: str, policy_store_id: str, consumer_path: Optional[str],
                          mode: str, namespace: str = "",
                          client: Optional[AuthorizationAPI] = None) -> CanaryReport:
    """
    Build the merged case list and run it against the store.

    An empty list is a successful no-op. Raises CanaryFailure listing every
    mismatch and API error when anything fails.
    """
    cases = load_canary_cases(consumer_path, mode, namespace)
    if not cases:
        return CanaryReport(total=0, passed=0)

    client = client or get_verified_permissions_client(region)
    report = run_canaries(cases, policy_store_id, client, namespace)
    if not report.ok:
        raise CanaryFailure(report.failures, report.total)
    return report
