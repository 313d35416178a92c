"""
Main Lambda function handler - Entry point for the authorizer deployer.

Architecture:
- Entry Point: lambda_handler logs and routes invocations
- Handlers: Build configuration from the event, map errors to responses
- Services: Schema, governance, policy, and canary orchestration
- Models: Identity-store keys and transactional writes
- Utils: Shared utilities and helpers
"""
from typing import Any, Dict, Optional

from vp_authorizer.config import MIN_REMAINING_TIME_MS
from vp_authorizer.handlers import route_request
from vp_authorizer.logging_config import create_logger
from vp_authorizer.utils import build_response

logger = create_logger("lambda_handler")


def remaining_time_ms(context: Any) -> Optional[int]:
    """Milliseconds left in the invocation, or None outside Lambda."""
    getter = getattr(context, "get_remaining_time_in_millis", None)
    if not callable(getter):
        return None
    return int(getter())


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler for authorizer deployments.

    Routes on event["action"]:
    - deploy (default): converge schema and policies, then run canaries
    - validate: check local assets only
    - canary: run canaries against the deployed store

    Optional event fields override environment configuration:
    policyStoreId, region, schemaFile, policyDir, canaryFile,
    actionGroupEnforcement, disableGuardrails.

    Args:
        event: Lambda invocation payload
        context: Lambda context object

    Returns:
        Response with status code, headers, and JSON body
    """
    event = event or {}
    request_id = getattr(context, "aws_request_id", "local")
    logger.info(f"Authorizer invocation - Action: {event.get('action') or 'deploy'}, RequestId: {request_id}")

    # A cycle cut short by the Lambda timeout can leave policies half installed
    remaining_ms = remaining_time_ms(context)
    if remaining_ms is not None and remaining_ms < MIN_REMAINING_TIME_MS:
        logger.warning(f"Refusing invocation with {remaining_ms}ms remaining (< {MIN_REMAINING_TIME_MS}ms)")
        return build_response(
            error="Insufficient time remaining",
            details=f"{remaining_ms}ms remaining; at least {MIN_REMAINING_TIME_MS}ms required",
            status=503
        )

    try:
        return route_request(event)
    except Exception:
        logger.exception("Unhandled error in lambda_handler")
        return build_response(error="Internal server error", status=500)
