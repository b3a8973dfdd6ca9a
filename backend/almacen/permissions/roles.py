# Overview: Fixed role -> permission table (least privilege; admin has everything).

from .definitions import PERMISSION_DEFINITIONS


DEFAULT_ROLE_PERMISSIONS = {
    # Admin gets ALL permissions
    "admin": [perm[0] for perm in PERMISSION_DEFINITIONS],

    "manager": [
        "CREATE_PRODUCT",
        "EDIT_PRODUCT",
        "DELETE_PRODUCT",
        "APPROVE_MOVEMENT",
        "RESOLVE_INCIDENT",
        "VIEW_REPORTS",
    ],

    # Operators propose; they never dispose
    "operator": [
        "CREATE_MOVEMENT",
        "CREATE_INCIDENT",
    ],

    # Read-only everywhere
    "auditor": [
        "VIEW_REPORTS",
    ],
}


# Navigation entries shown per role by the presentation layer: (id, label, permission or None)
NAVIGATION = [
    ("dashboard", "Dashboard", None),
    ("inventory", "Inventario", None),
    ("movements", "Movimientos", None),
    ("approve", "Aprobar Movimientos", "APPROVE_MOVEMENT"),
    ("incidents", "Incidencias", None),
    ("users", "Gestionar Usuarios", "MANAGE_USERS"),
    ("settings", "Configuración Sistema", "EDIT_CONFIG"),
    ("reports", "Reportes", "VIEW_REPORTS"),
]
