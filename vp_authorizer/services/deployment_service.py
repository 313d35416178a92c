"""
One convergence cycle: schema -> governance -> schema sync -> policies -> canaries.
"""
from typing import Any, Dict, List, Optional

from vp_authorizer.config import DeployConfig, normalize_mode
from vp_authorizer.logging_config import create_logger
from vp_authorizer.utils import get_verified_permissions_client, partition_for_region
from .action_groups import ActionGroupGovernor, default_governor
from .canary_service import run_combined_canaries
from .policy_installer import install_guardrails_and_policies
from .schema_service import load_and_validate_schema
from .schema_sync import put_schema_if_changed

logger = create_logger("services.deployment")


def apply_schema_and_policies(config: DeployConfig, vp_client: Optional[Any] = None,
                              governor: ActionGroupGovernor = default_governor) -> Dict[str, Any]:
    """
    Converge the policy store onto the schema and policies on disk, then verify it.

    Every step either completes or raises; a later step never runs after an
    earlier failure. The client must provide get_schema, put_schema,
    list_policies, create_policy, update_policy, delete_policy and is_authorized.
    """
    config.validate()
    mode = normalize_mode(config.action_group_enforcement)
    client = vp_client or get_verified_permissions_client(config.region)
    warnings: List[str] = []

    schema = load_and_validate_schema(config.schema_file)
    warnings.extend(schema.warnings)

    violations = governor.enforce(schema.actions, mode)
    if violations:
        warnings.append(f"actions not aligned to canonical action groups: {', '.join(violations)}")

    schema_changed = put_schema_if_changed(config.policy_store_id, schema.cedar_json, client=client)
    logger.info(f"deploy.schema namespace={schema.namespace} changed={schema_changed}")

    report, install_warnings = install_guardrails_and_policies(
        config.policy_store_id,
        schema.namespace,
        config.policy_dir,
        mode,
        disable_guardrails=config.disable_guardrails,
        client=client,
    )
    warnings.extend(install_warnings)

    canaries = run_combined_canaries(
        config.region,
        config.policy_store_id,
        config.canary_file,
        mode,
        namespace=schema.namespace,
        client=client,
    )

    logger.info(f"deploy.ok policyStoreId={config.policy_store_id} canaries={canaries.passed}/{canaries.total}")
    return {
        "policyStoreId": config.policy_store_id,
        "namespace": schema.namespace,
        "partition": partition_for_region(config.region),
        "schemaChanged": schema_changed,
        "policies": report.to_dict(),
        "canaries": canaries.to_dict(),
        "warnings": warnings,
    }
