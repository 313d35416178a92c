"""
Guardrail and static policy installation.

Order is fixed: base guardrails, then the action-enforcement guardrail (only
when enforcement is not off), then the caller's .cedar files sorted by path.
Each policy carries a description "<name> sha256:<digest>" so a repeated
run can tell unchanged, changed, new and removed policies apart.
"""
import glob
import hashlib
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from vp_authorizer.errors import InvalidArgument, SchemaIOError
from vp_authorizer.logging_config import create_logger
from vp_authorizer.utils import get_verified_permissions_client
from vp_authorizer.utils.aws_utils import PolicyAPI

logger = create_logger("services.policy_installer")

ASSETS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "assets")
GUARDRAIL_DIR = os.path.join(ASSETS_DIR, "guardrails")
BASE_GUARDRAIL_PREFIX = "base-"
ACTION_ENFORCEMENT_GUARDRAIL = "action-enforcement.cedar"
NAMESPACE_PLACEHOLDER = "${NAMESPACE}"
GUARDRAIL_NAME_PREFIX = "guardrail/"


@dataclass(frozen=True)
class PolicySource:
    name: str
    statement: str

    @property
    def digest(self) -> str:
        return hashlib.sha256(self.statement.encode("utf-8")).hexdigest()[:16]

    @property
    def description(self) -> str:
        return f"{self.name} sha256:{self.digest}"


@dataclass
class InstallReport:
    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "created": self.created,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "deleted": self.deleted,
        }


def parse_description(description: str) -> Tuple[str, str]:
    """Split '<name> sha256:<digest>' into (name, digest); foreign descriptions give ('', '')."""
    name, sep, digest = (description or "").rpartition(" sha256:")
    if not sep:
        return "", ""
    return name, digest


# ========= Discovery =========

def collect_policy_files(policy_dir: str) -> List[str]:
    """Every .cedar file under policy_dir, recursively, sorted lexicographically by path."""
    if not os.path.isdir(policy_dir):
        raise InvalidArgument(f"policyDir {policy_dir!r} not found or not a directory")
    files = glob.glob(os.path.join(policy_dir, "**", "*.cedar"), recursive=True)
    return sorted(f for f in files if os.path.isfile(f))


def _read(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise SchemaIOError(f"failed to read policy {path}: {e}") from e


def load_policy_sources(policy_dir: str, files: Optional[Sequence[str]] = None) -> List[PolicySource]:
    files = collect_policy_files(policy_dir) if files is None else files
    return [
        PolicySource(os.path.relpath(f, policy_dir).replace(os.sep, "/"), _read(f))
        for f in files
    ]


def guardrail_sources(namespace: str, mode: str) -> List[PolicySource]:
    """Base guardrails always; the action-enforcement guardrail unless mode is off."""
    names = sorted(n for n in os.listdir(GUARDRAIL_DIR) if n.startswith(BASE_GUARDRAIL_PREFIX))
    if mode != "off":
        names.append(ACTION_ENFORCEMENT_GUARDRAIL)
    sources = []
    for n in names:
        text = _read(os.path.join(GUARDRAIL_DIR, n)).replace(NAMESPACE_PLACEHOLDER, namespace)
        sources.append(PolicySource(GUARDRAIL_NAME_PREFIX + os.path.splitext(n)[0], text))
    return sources


# ========= Installation =========

def list_static_policies(client: PolicyAPI, policy_store_id: str) -> Dict[str, Tuple[str, str]]:
    """name -> (policyId, digest) for policies previously installed by this tool."""
    existing: Dict[str, Tuple[str, str]] = {}
    kwargs = {"policyStoreId": policy_store_id, "filter": {"policyType": "STATIC"}}
    while True:
        resp = client.list_policies(**kwargs)
        for p in resp.get("policies", []) or []:
            description = ((p.get("definition") or {}).get("static") or {}).get("description", "")
            name, digest = parse_description(description)
            if name:
                existing[name] = (p["policyId"], digest)
        token = resp.get("nextToken")
        if not token:
            break
        kwargs["nextToken"] = token
    return existing


def install_policies(policy_store_id: str, sources: Sequence[PolicySource], region: str = "",
                     client: Optional[PolicyAPI] = None,
                     report: Optional[InstallReport] = None) -> InstallReport:
    """
    Create, update or skip each source in the given order, then delete
    previously installed policies that are no longer among the sources.

    Policies whose description this tool did not write are never touched.
    """
    client = client or get_verified_permissions_client(region)
    report = report or InstallReport()
    existing = list_static_policies(client, policy_store_id)
    stale = {name: policy_id for name, (policy_id, _) in existing.items()}

    for src in sources:
        definition = {"static": {"description": src.description, "statement": src.statement}}
        current = existing.get(src.name)
        stale.pop(src.name, None)
        if current and current[1] == src.digest:
            report.unchanged.append(src.name)
            continue
        if current:
            client.update_policy(
                policyStoreId=policy_store_id,
                policyId=current[0],
                definition=definition,
            )
            report.updated.append(src.name)
            logger.info(f"policy.updated name={src.name} policyId={current[0]}")
            continue
        resp = client.create_policy(policyStoreId=policy_store_id, definition=definition)
        existing[src.name] = (resp.get("policyId", ""), src.digest)
        report.created.append(src.name)
        logger.info(f"policy.created name={src.name} policyId={resp.get('policyId')}")

    for name in sorted(stale):
        client.delete_policy(policyStoreId=policy_store_id, policyId=stale[name])
        report.deleted.append(name)
        logger.info(f"policy.deleted name={name} policyId={stale[name]}")

    return report


def install_guardrails_and_policies(policy_store_id: str, namespace: str, policy_dir: str, mode: str,
                                    disable_guardrails: bool = False, region: str = "",
                                    client: Optional[PolicyAPI] = None) -> Tuple[InstallReport, List[str]]:
    """
    Install guardrails (unless disabled) and then the caller's policies.

    Must run after the schema is converged: policies reference schema types.
    Returns the report and any warnings raised along the way.
    """
    warnings: List[str] = []
    files = collect_policy_files(policy_dir)
    if not files:
        msg = f"no .cedar policy files found under {policy_dir}"
        logger.warning(msg)
        warnings.append(msg)

    sources: List[PolicySource] = []
    if disable_guardrails:
        msg = "guardrails disabled: deny guardrail policies will not be installed"
        logger.warning(msg)
        warnings.append(msg)
    else:
        sources.extend(guardrail_sources(namespace, mode))
    sources.extend(load_policy_sources(policy_dir, files))

    report = install_policies(policy_store_id, sources, region=region, client=client)
    logger.info(
        f"policies.installed created={len(report.created)} updated={len(report.updated)} "
        f"unchanged={len(report.unchanged)} deleted={len(report.deleted)}"
    )
    return report, warnings
