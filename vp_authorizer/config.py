import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from vp_authorizer.errors import InvalidArgument

# ========= CONFIGURATION =========
TABLE_CONFIG = {
    "identity":   os.environ.get("IDENTITY_TABLE", "dev.Identity.ddb-table"),
    "gsi1_index": os.environ.get("GSI1_INDEX",     "GSI1"),   # reverse / id lookups
    "gsi2_index": os.environ.get("GSI2_INDEX",     "GSI2"),   # tenant grant id lookups
}

DEFAULT_SCHEMA_FILE = "./authorizer/schema.yaml"
DEFAULT_POLICY_DIR = "./authorizer/policies"
DEFAULT_CANARY_FILE = "./authorizer/canaries.yaml"
LEGACY_CANARY_FILE = "./authorize/canaries.yaml"

# ========= CONSTANTS =========
SCHEMA_SIZE_LIMIT = 100_000
SCHEMA_SIZE_WARN_THRESHOLD = 95_000

REQUIRED_PRINCIPALS = ("Tenant", "User", "Role", "GlobalRole", "TenantGrant")

DEFAULT_ACTION_GROUPS = (
    "BatchCreate", "Create", "BatchDelete", "Delete", "Find", "Get", "BatchUpdate", "Update",
    "GlobalBatchCreate", "GlobalCreate", "GlobalBatchDelete", "GlobalDelete",
    "GlobalFind", "GlobalGet", "GlobalBatchUpdate", "GlobalUpdate",
)

ENFORCEMENT_MODES = ("off", "warn", "error")
DEFAULT_ENFORCEMENT_MODE = os.environ.get("ACTION_GROUP_ENFORCEMENT", "error")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# ========= AWS CLIENTS =========
AWS_CONNECT_TIMEOUT = float(os.environ.get("AWS_CONNECT_TIMEOUT", "5"))
AWS_READ_TIMEOUT = float(os.environ.get("AWS_READ_TIMEOUT", "30"))
# 1 = no SDK retries; retryable errors surface to the caller
AWS_MAX_ATTEMPTS = int(os.environ.get("AWS_MAX_ATTEMPTS", "1"))
MIN_REMAINING_TIME_MS = int(os.environ.get("MIN_REMAINING_TIME_MS", "10000"))


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}


def _absolute(path: str) -> str:
    path = (path or "").strip()
    if not path or os.path.isabs(path):
        return path
    return os.path.join(os.getcwd(), path)


def normalize_mode(mode: Optional[str]) -> str:
    """Lower-case and validate an action-group enforcement mode."""
    value = (mode or DEFAULT_ENFORCEMENT_MODE).strip().lower()
    if value not in ENFORCEMENT_MODES:
        raise InvalidArgument(f"actionGroupEnforcement must be one of {', '.join(ENFORCEMENT_MODES)}; got {mode!r}")
    return value


def resolve_canary_file(explicit: Optional[str]) -> Optional[str]:
    """Return the configured canary file, else the first default that exists."""
    if explicit and explicit.strip():
        return _absolute(explicit)
    for candidate in (DEFAULT_CANARY_FILE, LEGACY_CANARY_FILE):
        if os.path.exists(candidate):
            return _absolute(candidate)
    return None


@dataclass(frozen=True)
class DeployConfig:
    """Inputs for one convergence cycle against a policy store."""
    policy_store_id: str
    region: str = ""
    schema_file: str = DEFAULT_SCHEMA_FILE
    policy_dir: str = DEFAULT_POLICY_DIR
    canary_file: Optional[str] = None
    action_group_enforcement: str = "error"
    disable_guardrails: bool = False

    @classmethod
    def from_env(cls) -> "DeployConfig":
        return cls(
            policy_store_id=os.environ.get("POLICY_STORE_ID", "").strip(),
            region=os.environ.get("AWS_REGION", "").strip(),
            schema_file=_absolute(os.environ.get("SCHEMA_FILE", DEFAULT_SCHEMA_FILE)),
            policy_dir=_absolute(os.environ.get("POLICY_DIR", DEFAULT_POLICY_DIR)),
            canary_file=resolve_canary_file(os.environ.get("CANARY_FILE")),
            action_group_enforcement=normalize_mode(os.environ.get("ACTION_GROUP_ENFORCEMENT")),
            disable_guardrails=_as_bool(os.environ.get("DISABLE_GUARDRAILS")),
        )

    @classmethod
    def from_event(cls, event: Dict[str, Any]) -> "DeployConfig":
        """Environment defaults overridden by camelCase fields of a Lambda event."""
        base = cls.from_env()
        overrides: Dict[str, Any] = {}
        if event.get("policyStoreId"):
            overrides["policy_store_id"] = str(event["policyStoreId"]).strip()
        if event.get("region"):
            overrides["region"] = str(event["region"]).strip()
        if event.get("schemaFile"):
            overrides["schema_file"] = _absolute(str(event["schemaFile"]))
        if event.get("policyDir"):
            overrides["policy_dir"] = _absolute(str(event["policyDir"]))
        if event.get("canaryFile"):
            overrides["canary_file"] = _absolute(str(event["canaryFile"]))
        if event.get("actionGroupEnforcement"):
            overrides["action_group_enforcement"] = normalize_mode(str(event["actionGroupEnforcement"]))
        if "disableGuardrails" in event:
            overrides["disable_guardrails"] = _as_bool(event["disableGuardrails"])
        return replace(base, **overrides)

    def validate(self) -> None:
        if not self.policy_store_id:
            raise InvalidArgument("policyStoreId is required")
        normalize_mode(self.action_group_enforcement)
