from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Optional

from ..time_utils import to_utc_z, parse_iso_datetime


MOVEMENT_TYPES = ("entrada", "salida")
MOVEMENT_STATUSES = ("pendiente", "aprobado", "rechazado")

INCIDENT_TYPES = ("daño", "pérdida", "robo", "vencimiento", "otro")
INCIDENT_STATUSES = ("pendiente", "resuelto", "rechazado")
INCIDENT_OUTCOMES = ("resuelto", "rechazado")

ROLES = ("admin", "manager", "operator", "auditor")
USER_STATUSES = ("active", "inactive")


def _dt(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return parse_iso_datetime(value)


def _require_mapping(data: Any, name: str) -> None:
    if not isinstance(data, dict):
        raise ValueError(f"{name} record must be an object, got {type(data).__name__}")


@dataclass
class Product:
    """
    Product master data plus the authoritative on-hand quantity.

    quantity is only changed through ledger_service.apply (committed
    movements and resolved incidents); product edits never touch it.
    """
    id: str
    name: str
    category: str
    quantity: int = 0
    min_stock: int = 0
    price: float = 0.0
    location: str = ""

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_stock

    @property
    def stock_value(self) -> float:
        return round(self.quantity * self.price, 2)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "quantity": self.quantity,
            "min_stock": self.min_stock,
            "price": self.price,
            "location": self.location,
            "is_low_stock": self.is_low_stock,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        _require_mapping(data, "Product")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            category=data.get("category", ""),
            quantity=int(data.get("quantity", 0)),
            min_stock=int(data.get("min_stock", 0)),
            price=float(data.get("price", 0.0)),
            location=data.get("location", ""),
        )


@dataclass
class Movement:
    """A stock entry (entrada) or exit (salida) request and its review outcome."""
    id: str
    product_id: str
    product_name: str
    type: str
    quantity: int
    date: datetime
    reason: str
    requested_by: str
    status: str = "pendiente"
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None

    @property
    def signed_delta(self) -> int:
        return self.quantity if self.type == "entrada" else -self.quantity

    @property
    def is_terminal(self) -> bool:
        return self.status != "pendiente"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "type": self.type,
            "quantity": self.quantity,
            "date": to_utc_z(self.date),
            "reason": self.reason,
            "requested_by": self.requested_by,
            "status": self.status,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": to_utc_z(self.reviewed_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Movement":
        _require_mapping(data, "Movement")
        return cls(
            id=str(data["id"]),
            product_id=str(data["product_id"]),
            product_name=data.get("product_name", ""),
            type=data["type"],
            quantity=int(data["quantity"]),
            date=_dt(data["date"]),
            reason=data.get("reason", ""),
            requested_by=data.get("requested_by", ""),
            status=data.get("status", "pendiente"),
            reviewed_by=data.get("reviewed_by"),
            reviewed_at=_dt(data.get("reviewed_at")),
        )


@dataclass
class Incident:
    """A loss/damage report. Stock is debited only when it is resolved."""
    id: str
    product_id: str
    product_name: str
    type: str
    quantity: int
    description: str
    reported_by: str
    reported_at: datetime
    status: str = "pendiente"
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != "pendiente"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "type": self.type,
            "quantity": self.quantity,
            "description": self.description,
            "status": self.status,
            "reported_by": self.reported_by,
            "reported_at": to_utc_z(self.reported_at),
            "resolved_by": self.resolved_by,
            "resolved_at": to_utc_z(self.resolved_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Incident":
        _require_mapping(data, "Incident")
        return cls(
            id=str(data["id"]),
            product_id=str(data["product_id"]),
            product_name=data.get("product_name", ""),
            type=data["type"],
            quantity=int(data["quantity"]),
            description=data.get("description", ""),
            reported_by=data.get("reported_by", ""),
            reported_at=_dt(data["reported_at"]),
            status=data.get("status", "pendiente"),
            resolved_by=data.get("resolved_by"),
            resolved_at=_dt(data.get("resolved_at")),
        )


@dataclass
class AppUser:
    """
    Directory entry managed by admins.

    Independent of the login credential table in auth_service: creating an
    AppUser does not grant a login.
    """
    id: str
    name: str
    email: str
    role: str
    status: str
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppUser":
        _require_mapping(data, "AppUser")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            email=data["email"],
            role=data["role"],
            status=data.get("status", "active"),
            created_at=_dt(data["created_at"]),
        )


@dataclass
class SystemConfig:
    company_name: str = "Almacén Central"
    low_stock_threshold: int = 20
    currency: str = "USD"
    auto_approve_movements: bool = False
    require_incident_approval: bool = True
    enable_notifications: bool = True
    default_location: str = "Almacén Principal"
    max_stock_per_product: int = 1000

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SystemConfig":
        _require_mapping(data, "SystemConfig")
        defaults = cls()
        values = {k: data.get(k, getattr(defaults, k)) for k in defaults.to_dict()}
        return cls(**values)


@dataclass(frozen=True)
class Identity:
    """The acting user threaded into every workflow call for attribution."""
    email: str
    role: str
    name: str

    def to_dict(self) -> dict:
        return {"email": self.email, "role": self.role, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> "Identity":
        _require_mapping(data, "Identity")
        return cls(email=data["email"], role=data["role"], name=data["name"])


@dataclass
class SessionRecord:
    """Persisted login session; the plaintext token is never stored."""
    identity: Identity
    token_hash: str
    created_at: datetime
    last_used_at: datetime

    def to_dict(self) -> dict:
        return {
            **self.identity.to_dict(),
            "token_hash": self.token_hash,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionRecord":
        _require_mapping(data, "SessionRecord")
        return cls(
            identity=Identity.from_dict(data),
            token_hash=data["token_hash"],
            created_at=_dt(data["created_at"]),
            last_used_at=_dt(data.get("last_used_at") or data["created_at"]),
        )
