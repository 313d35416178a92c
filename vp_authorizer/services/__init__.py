"""
Services package for business logic.
"""
from .schema_service import LoadedSchema, load_and_validate_schema
from .action_groups import ActionGroupGovernor, enforce_action_groups
from .schema_sync import put_schema_if_changed
from .policy_installer import (
    InstallReport,
    collect_policy_files,
    install_guardrails_and_policies
)
from .canary_service import CanaryCase, CanaryReport, CanaryResult, load_canary_cases, run_combined_canaries
from .validation_service import ValidationReport, validate_assets
from .deployment_service import apply_schema_and_policies

__all__ = [
    'LoadedSchema',
    'load_and_validate_schema',
    'ActionGroupGovernor',
    'enforce_action_groups',
    'put_schema_if_changed',
    'InstallReport',
    'collect_policy_files',
    'install_guardrails_and_policies',
    'CanaryCase',
    'CanaryReport',
    'CanaryResult',
    'load_canary_cases',
    'run_combined_canaries',
    'ValidationReport',
    'validate_assets',
    'apply_schema_and_policies'
]
