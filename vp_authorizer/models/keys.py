"""
Key scheme for the single-table identity store.

Every function here is pure: the same logical identifier always yields the
same key strings. Rows are plain dicts of python values; serialization to
DynamoDB attribute values happens in the transaction layer.

    Tenant        PK=TENANT#<id>            SK=TENANT#<id>
    Tenant name   PK=SK=TENANT_NAME#<name>  (guard)
    User          PK=USER#<id>              SK=USER#<id>
    User guards   PK=SK=USER_EMAIL#<e> | USER_PHONE#<p> | USER_PREFERREDUSERNAME#<u>
    Role          PK=ROLE_SCOPE#<scope>     SK=ROLE_NAME#<name>   GSI1=ROLE#<id>
    TenantGrant   PK=TENANT#<tid>           SK=USER#<uid>
                  GSI1PK=USER#<uid> GSI1SK=TENANT#<tid>           GSI2=TENANT_GRANT#<id>
    Policy        PK=GLOBAL                 SK=POLICY_NAME#<name> GSI1=POLICY#<id>
"""
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from vp_authorizer.errors import InvalidArgument

Item = Dict[str, Any]

KEY_ATTRIBUTES = ("PK", "SK", "GSI1PK", "GSI1SK", "GSI2PK", "GSI2SK")

GUARD_KIND = "GUARD"


def _pair(value: str) -> Tuple[str, str]:
    return value, value


# ========= Tenant =========

def tenant_pk(tenant_id: str) -> str:
    return f"TENANT#{tenant_id}"


def tenant_sk(tenant_id: str) -> str:
    return f"TENANT#{tenant_id}"


def tenant_name_gsi(name: str) -> Tuple[str, str]:
    return _pair(f"TENANT_NAME#{name}")


def tenant_primary_key(tenant_id: str) -> Item:
    return {"PK": tenant_pk(tenant_id), "SK": tenant_sk(tenant_id)}


def tenant_name_gsi_keys(name: str) -> Item:
    gpk, gsk = tenant_name_gsi(name)
    return {"GSI1PK": gpk, "GSI1SK": gsk}


# ========= User =========

def user_pk(user_id: str) -> str:
    return f"USER#{user_id}"


def user_sk(user_id: str) -> str:
    return f"USER#{user_id}"


def user_primary_key(user_id: str) -> Item:
    return {"PK": user_pk(user_id), "SK": user_sk(user_id)}


def user_email_pk(email: str) -> str:
    return f"USER_EMAIL#{email}"


def user_phone_pk(phone: str) -> str:
    return f"USER_PHONE#{phone}"


def user_preferred_username_pk(username: str) -> str:
    return f"USER_PREFERREDUSERNAME#{username}"


# ========= Role =========

def role_scope_pk(scope: str) -> str:
    return f"ROLE_SCOPE#{scope}"


def role_name_sk(name: str) -> str:
    return f"ROLE_NAME#{name}"


def role_id_gsi(role_id: str) -> Tuple[str, str]:
    return _pair(f"ROLE#{role_id}")


def role_primary_key(scope: str, name: str) -> Item:
    return {"PK": role_scope_pk(scope), "SK": role_name_sk(name)}


def role_id_gsi_keys(role_id: str) -> Item:
    gpk, gsk = role_id_gsi(role_id)
    return {"GSI1PK": gpk, "GSI1SK": gsk}


# ========= TenantGrant (membership) =========

def tenant_grant_pk(tenant_id: str) -> str:
    return tenant_pk(tenant_id)


def tenant_grant_sk(user_id: str) -> str:
    return user_sk(user_id)


def tenant_grant_gsi1_pk(user_id: str) -> str:
    return user_pk(user_id)


def tenant_grant_gsi1_sk(tenant_id: str) -> str:
    return tenant_pk(tenant_id)


def tenant_grant_id_gsi(grant_id: str) -> Tuple[str, str]:
    return _pair(f"TENANT_GRANT#{grant_id}")


def tenant_grant_primary_key(tenant_id: str, user_id: str) -> Item:
    return {"PK": tenant_grant_pk(tenant_id), "SK": tenant_grant_sk(user_id)}


def tenant_grant_gsi1_keys(user_id: str, tenant_id: str) -> Item:
    """Reverse lookup: user -> tenants."""
    return {"GSI1PK": tenant_grant_gsi1_pk(user_id), "GSI1SK": tenant_grant_gsi1_sk(tenant_id)}


def tenant_grant_id_gsi_keys(grant_id: str) -> Item:
    gpk, gsk = tenant_grant_id_gsi(grant_id)
    return {"GSI2PK": gpk, "GSI2SK": gsk}


# ========= Policy metadata =========

def policy_pk() -> str:
    return "GLOBAL"


def policy_name_sk(name: str) -> str:
    return f"POLICY_NAME#{name}"


def policy_id_gsi(policy_id: str) -> Tuple[str, str]:
    return _pair(f"POLICY#{policy_id}")


def policy_primary_key(name: str) -> Item:
    return {"PK": policy_pk(), "SK": policy_name_sk(name)}


def policy_id_gsi_keys(policy_id: str) -> Item:
    gpk, gsk = policy_id_gsi(policy_id)
    return {"GSI1PK": gpk, "GSI1SK": gsk}


# ========= Uniqueness guards =========

GUARD_KEY_BUILDERS = {
    "tenantName": lambda v: tenant_name_gsi(v)[0],
    "email": user_email_pk,
    "phone": user_phone_pk,
    "preferredUsername": user_preferred_username_pk,
}


@dataclass(frozen=True)
class GuardRow:
    """
    Row that exists only to make a uniqueness check atomic with its owner.

    It carries no payload: just the guarded attribute, its value and the id
    of the entity that claimed it.
    """
    guarded_attribute: str
    value: str
    owner_entity_id: str

    @property
    def key_value(self) -> str:
        builder = GUARD_KEY_BUILDERS.get(self.guarded_attribute)
        if builder is None:
            raise InvalidArgument(f"unknown guarded attribute {self.guarded_attribute!r}")
        return builder(self.value)

    def key(self) -> Item:
        return {"PK": self.key_value, "SK": self.key_value}

    def to_item(self) -> Item:
        return {
            **self.key(),
            "kind": GUARD_KIND,
            "guards": self.guarded_attribute,
            "ownerId": self.owner_entity_id,
        }


def key_preview(item: Item) -> str:
    """Key attributes only, for logs."""
    return ",".join(f"{k}={item[k]}" for k in ("PK", "SK") if k in item)
