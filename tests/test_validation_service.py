"""Tests for offline asset validation."""
import pytest

from vp_authorizer.errors import ActionGroupViolation, InvalidArgument, MissingPrincipalType
from vp_authorizer.services.validation_service import validate_assets


def test_valid_assets(schema_file, policy_dir, tmp_path):
    canaries = tmp_path / "canaries.yaml"
    canaries.write_text(
        "cases:\n"
        "  - principal: { entityType: User, entityId: a }\n"
        "    action: GetTenant\n"
        "    resource: { entityType: Tenant, entityId: t }\n"
        "    expect: DENY\n",
        encoding="utf-8",
    )
    report = validate_assets(schema_file, policy_dir, canary_path=str(canaries))
    assert report.to_dict() == {
        "namespace": "acme",
        "entityTypes": 5,
        "actions": 3,
        "policies": 2,
        "canaries": 1,
        "violations": [],
        "warnings": [],
    }


def test_schema_errors_surface(write_schema, schema_doc, policy_dir):
    del schema_doc["acme"]["entityTypes"]["TenantGrant"]
    with pytest.raises(MissingPrincipalType):
        validate_assets(write_schema(schema_doc), policy_dir)


def test_action_violations_by_mode(write_schema, schema_doc, policy_dir):
    schema_doc["acme"]["actions"]["ApproveTimesheet"] = {}
    path = write_schema(schema_doc)

    with pytest.raises(ActionGroupViolation):
        validate_assets(path, policy_dir, mode="error")
    report = validate_assets(path, policy_dir, mode="warn")
    assert report.violations == ["ApproveTimesheet"]
    assert report.warnings


def test_policy_without_statement(schema_file, tmp_path):
    (tmp_path / "empty.cedar").write_text("// nothing here\n", encoding="utf-8")
    with pytest.raises(InvalidArgument):
        validate_assets(schema_file, str(tmp_path), mode="error")
    report = validate_assets(schema_file, str(tmp_path), mode="off")
    assert report.warnings == ["empty.cedar: does not appear to contain a Cedar policy statement"]
