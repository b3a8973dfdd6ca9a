# Overview: Service-layer operations for the product ledger (catalog + on-hand quantity).

"""
Almacen Product Ledger Invariants (authoritative)

- The ledger owns product records and their on-hand quantity.
- apply() is the ONLY quantity mutation path. Product edits cannot change
  quantity; initial quantity is set once at creation.
- Quantity never goes negative: apply() clamps at zero silently. A debit
  larger than the stock on hand empties the shelf, it does not raise.
- apply() does not persist by itself. The workflow transition that calls it
  persists the products collection exactly once after it succeeds.
- Deleting a product never touches movements or incidents; they keep their
  product_name snapshot.
"""

from __future__ import annotations

import logging

from ..errors import ProductNotFound
from ..models import Identity, Product
from ..state import InventoryState, new_id
from ..storage import PRODUCTS
from ..validation import ValidationError, ConflictError
from .permission_service import require_permission


logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {"name", "category", "min_stock", "price", "location"}


def get(state: InventoryState, product_id: str) -> Product | None:
    return state.find_product(product_id)


def require_product(state: InventoryState, product_id: str) -> Product:
    product = state.find_product(product_id)
    if product is None:
        raise ProductNotFound(product_id)
    return product


def apply(state: InventoryState, product_id: str, delta: int) -> Product:
    """
    Apply a signed quantity delta: quantity = max(0, quantity + delta).

    Raises ProductNotFound if the product does not exist.
    """
    with state.transaction():
        product = require_product(state, product_id)
        before = product.quantity
        delta = int(delta)
        product.quantity = max(0, before + delta)
        if before + delta < 0:
            logger.info(
                "Clamped product %s quantity at 0 (had %s, delta %s)",
                product.id, before, delta,
            )
        return product


def list_products(
    state: InventoryState,
    *,
    category: str | None = None,
    search: str | None = None,
    low_stock: bool | None = None,
) -> list[Product]:
    items = list(state.products)
    if category:
        items = [p for p in items if p.category == category]
    if search:
        needle = search.strip().lower()
        items = [
            p for p in items
            if needle in p.name.lower() or needle in p.category.lower() or needle in p.location.lower()
        ]
    if low_stock is not None:
        items = [p for p in items if p.is_low_stock == low_stock]
    return sorted(items, key=lambda p: (p.name.lower(), p.id))


def list_categories(state: InventoryState) -> list[str]:
    return sorted({p.category for p in state.products if p.category})


def create_product(state: InventoryState, *, patch: dict, actor: Identity) -> Product:
    """
    Create a product from a validated patch dict.

    The optional "id" must be unique; otherwise a fresh id is generated.
    Initial quantity may not exceed config.max_stock_per_product.
    """
    require_permission(actor, "CREATE_PRODUCT")

    with state.transaction():
        product_id = str(patch.get("id") or new_id())
        if state.find_product(product_id) is not None:
            raise ConflictError(f"Product id {product_id} already exists.")

        quantity = patch.get("quantity") or 0
        limit = state.config.max_stock_per_product
        if quantity > limit:
            raise ValidationError(f"quantity cannot exceed max_stock_per_product ({limit})")

        product = Product(
            id=product_id,
            name=patch["name"],
            category=patch.get("category") or "",
            quantity=quantity,
            min_stock=patch.get("min_stock") or 0,
            price=patch.get("price") or 0.0,
            location=patch.get("location") or state.config.default_location,
        )
        state.products.append(product)
        state.persist(PRODUCTS)

    logger.info("Product %s created by %s", product.id, actor.email)
    return product


def update_product(state: InventoryState, *, product_id: str, patch: dict, actor: Identity) -> Product:
    require_permission(actor, "EDIT_PRODUCT")

    if "quantity" in patch:
        raise ValidationError("quantity can only change through movements and incidents")

    with state.transaction():
        product = require_product(state, product_id)
        for k, v in patch.items():
            if k not in PRODUCT_MUTABLE_FIELDS:
                continue
            setattr(product, k, v)
        state.persist(PRODUCTS)

    logger.info("Product %s updated by %s", product.id, actor.email)
    return product


def delete_product(state: InventoryState, *, product_id: str, actor: Identity) -> Product:
    """Remove a product. Movement/incident history is kept as-is."""
    require_permission(actor, "DELETE_PRODUCT")

    with state.transaction():
        product = require_product(state, product_id)
        state.products.remove(product)
        state.persist(PRODUCTS)

    logger.info("Product %s deleted by %s", product.id, actor.email)
    return product
