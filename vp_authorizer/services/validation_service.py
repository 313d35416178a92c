"""
Offline asset validation: the same checks as a deployment, without AWS calls.
"""
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from vp_authorizer.config import normalize_mode
from vp_authorizer.errors import InvalidArgument
from vp_authorizer.logging_config import create_logger
from .action_groups import ActionGroupGovernor, default_governor
from .canary_service import load_canary_file
from .policy_installer import collect_policy_files, load_policy_sources
from .schema_service import load_and_validate_schema

logger = create_logger("services.validation")

POLICY_STATEMENT_RE = re.compile(r"\b(permit|forbid)\s*\(\s*principal", re.IGNORECASE)


@dataclass
class ValidationReport:
    namespace: str
    entity_types: int = 0
    actions: int = 0
    policies: int = 0
    canaries: int = 0
    violations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "namespace": self.namespace,
            "entityTypes": self.entity_types,
            "actions": self.actions,
            "policies": self.policies,
            "canaries": self.canaries,
            "violations": self.violations,
            "warnings": self.warnings,
        }


def policy_syntax_issues(policy_dir: str, files: Optional[List[str]] = None) -> List[str]:
    """Best-effort check that each file holds a permit/forbid statement."""
    issues = []
    for src in load_policy_sources(policy_dir, files):
        if not POLICY_STATEMENT_RE.search(src.statement):
            issues.append(f"{src.name}: does not appear to contain a Cedar policy statement")
    return issues


def validate_assets(schema_path: str, policy_dir: str, canary_path: Optional[str] = None,
                    mode: str = "error", governor: ActionGroupGovernor = default_governor) -> ValidationReport:
    """
    Validate schema, policies and canaries locally.

    Raises the same errors a deployment would; policy syntax issues raise
    InvalidArgument in error mode and become warnings otherwise.
    """
    mode = normalize_mode(mode)
    schema = load_and_validate_schema(schema_path)
    report = ValidationReport(namespace=schema.namespace, actions=len(schema.actions))
    report.warnings.extend(schema.warnings)

    body = json.loads(schema.cedar_json)[schema.namespace]
    report.entity_types = len(body.get("entityTypes") or {})

    report.violations = governor.enforce(schema.actions, mode)
    if report.violations:
        report.warnings.append(f"non-conforming actions: {', '.join(report.violations)}")

    files = collect_policy_files(policy_dir)
    report.policies = len(files)
    issues = policy_syntax_issues(policy_dir, files)
    if issues:
        if mode == "error":
            raise InvalidArgument("policy syntax issues:\n" + "\n".join(f"- {i}" for i in issues))
        report.warnings.extend(issues)

    if canary_path:
        report.canaries = len(load_canary_file(canary_path, schema.namespace))

    logger.info(
        f"validate.ok namespace={report.namespace} entityTypes={report.entity_types} "
        f"actions={report.actions} policies={report.policies}"
    )
    return report
