"""Shared fixtures: schema documents, asset directories and fake AWS clients."""
import json
from unittest.mock import MagicMock

import pytest
import yaml
from botocore.exceptions import ClientError


def client_error(code, operation="Operation", message="boom"):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


@pytest.fixture
def schema_doc():
    return {
        "acme": {
            "entityTypes": {
                "Tenant": {},
                "User": {"memberOfTypes": ["Tenant"]},
                "Role": {},
                "GlobalRole": {},
                "TenantGrant": {},
            },
            "actions": {
                "GetTenant": {},
                "UpdateRole": {},
                "GlobalDeleteTenant": {},
            },
        }
    }


@pytest.fixture
def write_schema(tmp_path):
    def _write(doc, name="schema.yaml"):
        path = tmp_path / name
        if name.endswith(".json"):
            path.write_text(json.dumps(doc), encoding="utf-8")
        else:
            path.write_text(yaml.safe_dump(doc, sort_keys=False), encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def schema_file(write_schema, schema_doc):
    return write_schema(schema_doc)


@pytest.fixture
def policy_dir(tmp_path):
    d = tmp_path / "policies"
    (d / "tenant").mkdir(parents=True)
    (d / "admin.cedar").write_text(
        'permit(principal in acme::GlobalRole::"admin", action, resource);\n', encoding="utf-8"
    )
    (d / "tenant" / "read.cedar").write_text(
        'permit(principal, action == acme::Action::"GetTenant", resource);\n', encoding="utf-8"
    )
    return str(d)


@pytest.fixture
def vp_client():
    """Verified Permissions client for an empty store that denies everything."""
    client = MagicMock()
    client.get_schema.side_effect = client_error("ResourceNotFoundException", "GetSchema")
    client.list_policies.return_value = {"policies": []}
    client.create_policy.side_effect = lambda **kw: {"policyId": f"p-{client.create_policy.call_count}"}
    client.is_authorized.return_value = {"decision": "DENY"}
    return client


@pytest.fixture
def dynamo_client():
    client = MagicMock()
    client.transact_write_items.return_value = {}
    return client
