"""
Deploy handler for routing and request orchestration.
"""
from typing import Any, Callable, Dict

from botocore.exceptions import BotoCoreError, ClientError

from vp_authorizer.config import DeployConfig, normalize_mode
from vp_authorizer.errors import AuthorizerError
from vp_authorizer.logging_config import create_logger
from vp_authorizer.models.transaction import classify_error
from vp_authorizer.services import (
    apply_schema_and_policies,
    load_and_validate_schema,
    run_combined_canaries,
    validate_assets
)
from vp_authorizer.utils import build_response, status_for_error

logger = create_logger("handlers.deploy_handler")

DEFAULT_ACTION = "deploy"


def handle_deploy_request(event: Dict[str, Any]) -> Dict[str, Any]:
    """Run a full convergence cycle."""
    config = DeployConfig.from_event(event)
    summary = apply_schema_and_policies(config)
    return build_response(data=summary)


def handle_validate_request(event: Dict[str, Any]) -> Dict[str, Any]:
    """Check schema, policies and canaries on disk without calling AWS."""
    config = DeployConfig.from_event(event)
    report = validate_assets(
        config.schema_file,
        config.policy_dir,
        canary_path=config.canary_file,
        mode=config.action_group_enforcement,
    )
    return build_response(data=report.to_dict())


def handle_canary_request(event: Dict[str, Any]) -> Dict[str, Any]:
    """Run only the canary suite against an already deployed store."""
    config = DeployConfig.from_event(event)
    config.validate()
    # namespace is needed to qualify entity and action types
    namespace = load_and_validate_schema(config.schema_file).namespace
    report = run_combined_canaries(
        config.region,
        config.policy_store_id,
        config.canary_file,
        normalize_mode(config.action_group_enforcement),
        namespace=namespace,
    )
    return build_response(data={"policyStoreId": config.policy_store_id, "canaries": report.to_dict()})


ACTION_HANDLERS: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    "deploy": handle_deploy_request,
    "validate": handle_validate_request,
    "canary": handle_canary_request,
}


def _error_response(action: str, error: AuthorizerError) -> Dict[str, Any]:
    status = status_for_error(error)
    logger.warning(f"Action {action} failed ({status}): {error}")
    return build_response(error=type(error).__name__, details=str(error), status=status)


def route_request(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Dispatch on event["action"] and turn domain and AWS errors into responses.

    AWS errors are classified as conflict, retryable or op error so callers
    can tell a throttled call from a fatal one. Anything else propagates to
    the entry point.
    """
    action = str(event.get("action") or DEFAULT_ACTION).strip().lower()
    handler = ACTION_HANDLERS.get(action)
    if handler is None:
        return build_response(
            error=f"Unsupported action {action!r}. Use {', '.join(ACTION_HANDLERS)}.",
            status=400
        )

    try:
        return handler(event)
    except AuthorizerError as e:
        return _error_response(action, e)
    except (ClientError, BotoCoreError) as e:
        return _error_response(action, classify_error(e))
