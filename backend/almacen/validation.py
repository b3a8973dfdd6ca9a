from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any


# Upper bound for product prices; prevents nonsensical values from the UI
MAX_PRICE = 9_999_999.99


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - field_types: python type of every known field (str, int, float, bool)
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - nullable_fields: fields that accept an explicit null
    - max_lengths: optional length limits for string fields
    """
    field_types: dict[str, type]
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    nullable_fields: set[str] = field(default_factory=set)
    max_lengths: dict[str, int] = field(default_factory=dict)


def coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(key: str, expected: type, value: Any):
    if value is None:
        return None

    if expected is int:
        return coerce_int(key, value)

    if expected is float:
        if isinstance(value, bool):
            raise ValidationError(f"{key} must be a number")
        if isinstance(value, (int, float)):
            result = float(value)
        elif isinstance(value, str):
            try:
                result = float(value.strip())
            except ValueError:
                raise ValidationError(f"{key} must be a number")
        else:
            raise ValidationError(f"{key} must be a number")
        # float() accepts "nan" and "inf"
        if not math.isfinite(result):
            raise ValidationError(f"{key} must be a finite number")
        return result

    if expected is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
            return value.strip().lower() == "true"
        raise ValidationError(f"{key} must be a boolean")

    if expected is str:
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - the policy's field types and length limits
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.field_types:
            raise ValidationError(f"Unknown field: {k}")
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        expected = policy.field_types[k]

        if raw is None:
            if k not in policy.nullable_fields:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(k, expected, raw)

        # Blank string check for required text fields
        if expected is str and val == "" and k not in policy.nullable_fields:
            raise ValidationError(f"{k} cannot be blank")

        limit = policy.max_lengths.get(k)
        if limit and isinstance(val, str) and len(val) > limit:
            raise ValidationError(f"{k} exceeds max length {limit}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by field types alone.
    Keep these small and centralized.
    """
    if "price" in patch and patch["price"] is not None:
        price = patch["price"]
        if price < 0:
            raise ValidationError("price must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE:,.2f}")

    for key in ("quantity", "min_stock"):
        if key in patch and patch[key] is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")


def enforce_rules_config(patch: dict) -> None:
    for key in ("low_stock_threshold", "max_stock_per_product"):
        if key in patch and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")


CONFIG_FIELD_TYPES = {
    "company_name": str,
    "low_stock_threshold": int,
    "currency": str,
    "auto_approve_movements": bool,
    "require_incident_approval": bool,
    "enable_notifications": bool,
    "default_location": str,
    "max_stock_per_product": int,
}

# Used for admin edits and for config read back from storage
CONFIG_POLICY = ModelValidationPolicy(
    field_types=CONFIG_FIELD_TYPES,
    writable_fields=set(CONFIG_FIELD_TYPES),
    required_on_create=set(CONFIG_FIELD_TYPES),
    max_lengths={"company_name": 120, "currency": 8, "default_location": 120},
)
