"""
Models package for data access layer.
"""
from .database import IdentityTable, get_identity_table
from .transaction import TxPut, TxCheck, TxDelete, write_transaction, classify_error
from .keys import GuardRow
from .tenant_repository import create_tenant, get_tenant, delete_tenant
from .user_repository import create_user, get_user, delete_user
from .role_repository import create_role, get_role_by_name, get_role_by_id, delete_role
from .grant_repository import (
    create_tenant_grant,
    get_tenant_grant,
    list_user_tenants,
    list_tenant_users,
    delete_tenant_grant
)
from .policy_repository import create_policy_record, get_policy_record, get_policy_record_by_id

__all__ = [
    'IdentityTable',
    'get_identity_table',
    'TxPut',
    'TxCheck',
    'TxDelete',
    'write_transaction',
    'classify_error',
    'GuardRow',
    'create_tenant',
    'get_tenant',
    'delete_tenant',
    'create_user',
    'get_user',
    'delete_user',
    'create_role',
    'get_role_by_name',
    'get_role_by_id',
    'delete_role',
    'create_tenant_grant',
    'get_tenant_grant',
    'list_user_tenants',
    'list_tenant_users',
    'delete_tenant_grant',
    'create_policy_record',
    'get_policy_record',
    'get_policy_record_by_id'
]
