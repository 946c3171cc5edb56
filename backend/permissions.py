"""Permission sets granted to each role type."""
from shared.enums import RoleType

PERMISSIONS = {
    RoleType.ADMIN.value: {
        'users': ['users:create', 'users:read', 'users:update', 'users:delete', 'users:invite'],
        'roles': ['roles:create', 'roles:read', 'roles:update', 'roles:delete'],
        'dashboard': ['dashboard:read'],
        'collections': [
            'collections:read',
            'collections:create',
            'collections:update',
            'collections:delete',
        ],
        'reports': ['reports:read', 'reports:create', 'reports:update', 'reports:delete'],
        'logs': ['logs:read', 'logs:create', 'logs:update', 'logs:delete'],
        'settings': ['settings:read', 'settings:update'],
        'profile': ['profile:read', 'profile:update'],
    },
    RoleType.COLLECTOR.value: {
        'collections': ['collections:read', 'collections:create', 'collections:update'],
        'logs': ['logs:read', 'logs:create', 'logs:update'],
        'profile': ['profile:read', 'profile:update'],
    },
}


def get_all_role_permissions(role_type):
    """Flat list of every permission of a role type."""
    role_type = getattr(role_type, 'value', role_type)
    return [permission for group in PERMISSIONS[role_type].values() for permission in group]
