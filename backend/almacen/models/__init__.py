from .records import (
    Product,
    Movement,
    Incident,
    AppUser,
    SystemConfig,
    Identity,
    SessionRecord,
    MOVEMENT_TYPES,
    MOVEMENT_STATUSES,
    INCIDENT_TYPES,
    INCIDENT_STATUSES,
    INCIDENT_OUTCOMES,
    ROLES,
    USER_STATUSES,
)
from .storage import StoredCollection

__all__ = [
    'Product', 'Movement', 'Incident', 'AppUser', 'SystemConfig', 'Identity', 'SessionRecord',
    'MOVEMENT_TYPES', 'MOVEMENT_STATUSES',
    'INCIDENT_TYPES', 'INCIDENT_STATUSES', 'INCIDENT_OUTCOMES',
    'ROLES', 'USER_STATUSES',
    'StoredCollection',
]
