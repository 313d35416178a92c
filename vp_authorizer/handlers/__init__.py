"""
Handlers package for request routing and validation.
"""
from .deploy_handler import (
    handle_deploy_request,
    handle_validate_request,
    handle_canary_request,
    route_request
)

__all__ = [
    'handle_deploy_request',
    'handle_validate_request',
    'handle_canary_request',
    'route_request'
]
