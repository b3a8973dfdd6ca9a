# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "CREATE_PRODUCT",
        "Create Product",
        "Add new products to the catalog",
        PermissionCategory.INVENTORY,
    ),
    (
        "EDIT_PRODUCT",
        "Edit Product",
        "Edit product details (name, category, minimum stock, price, location)",
        PermissionCategory.INVENTORY,
    ),
    (
        "DELETE_PRODUCT",
        "Delete Product",
        "Remove products from the catalog (history is kept)",
        PermissionCategory.INVENTORY,
    ),
]


# -- MOVEMENTS --

MOVEMENT_PERMISSIONS = [
    (
        "CREATE_MOVEMENT",
        "Create Movement",
        "Register stock entries (entrada) and exits (salida)",
        PermissionCategory.MOVEMENTS,
    ),
    (
        "APPROVE_MOVEMENT",
        "Approve Movement",
        "Approve or reject pending movements (pendiente -> aprobado|rechazado)",
        PermissionCategory.MOVEMENTS,
    ),
]


# -- INCIDENTS --

INCIDENT_PERMISSIONS = [
    (
        "CREATE_INCIDENT",
        "Create Incident",
        "Report damaged, lost, stolen or expired stock",
        PermissionCategory.INCIDENTS,
    ),
    (
        "RESOLVE_INCIDENT",
        "Resolve Incident",
        "Resolve or reject pending incidents (pendiente -> resuelto|rechazado)",
        PermissionCategory.INCIDENTS,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "MANAGE_USERS",
        "Manage Users",
        "Create, edit and delete application users",
        PermissionCategory.USERS,
    ),
]


# -- SYSTEM --

SYSTEM_PERMISSIONS = [
    (
        "VIEW_REPORTS",
        "View Reports",
        "View inventory and movement reports and export them as CSV",
        PermissionCategory.SYSTEM,
    ),
    (
        "EDIT_CONFIG",
        "Edit Configuration",
        "Change system configuration (auto-approval, thresholds, company data)",
        PermissionCategory.SYSTEM,
    ),
]


# Combined list of all permissions (preserves original ordering)
PERMISSION_DEFINITIONS = (
    INVENTORY_PERMISSIONS
    + MOVEMENT_PERMISSIONS
    + INCIDENT_PERMISSIONS
    + USER_PERMISSIONS
    + SYSTEM_PERMISSIONS
)
