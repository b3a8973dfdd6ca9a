from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class StoredCollection(db.Model):
    """
    Key-value blob store backing SqlStorage.

    One row per collection kind ("products", "movements", ...). The payload
    is the whole collection serialized as JSON; it is always rewritten
    wholesale, never patched.
    """
    __tablename__ = "stored_collections"

    kind = db.Column(db.String(64), primary_key=True)
    payload = db.Column(db.Text, nullable=False)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<StoredCollection kind={self.kind!r} bytes={len(self.payload or '')}>"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "size": len(self.payload or ""),
            "updated_at": to_utc_z(self.updated_at),
        }
