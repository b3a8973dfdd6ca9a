from __future__ import annotations

import logging
from dataclasses import replace

from ..models import Identity, SystemConfig
from ..seed import default_config
from ..state import InventoryState
from ..storage import CONFIG
from ..validation import (
    CONFIG_POLICY,
    ValidationError,
    validate_payload,
    enforce_rules_config,
)
from .permission_service import require_permission


logger = logging.getLogger(__name__)


class SettingsValidationError(ValidationError):
    pass


def get_config(state: InventoryState) -> SystemConfig:
    return state.config


def update_config(
    state: InventoryState,
    *,
    payload: dict,
    actor: Identity,
    partial: bool = True,
) -> SystemConfig:
    """
    Validate and save a new configuration (last writer wins).

    partial=True merges the given keys into the current config; partial=False
    requires every key (full replacement). Already-created movements and
    incidents are never re-evaluated against the new values.
    """
    require_permission(actor, "EDIT_CONFIG")

    try:
        patch = validate_payload(payload=payload, policy=CONFIG_POLICY, partial=partial)
        enforce_rules_config(patch)
    except SettingsValidationError:
        raise
    except ValidationError as exc:
        raise SettingsValidationError(str(exc)) from exc

    with state.transaction():
        previous = state.config
        state.config = replace(previous, **patch)
        state.persist(CONFIG)

    changed = sorted(k for k, v in patch.items() if getattr(previous, k) != v)
    logger.info("Config updated by %s: %s", actor.email, ", ".join(changed) or "no changes")
    return state.config


def reset_config(state: InventoryState, *, actor: Identity) -> SystemConfig:
    require_permission(actor, "EDIT_CONFIG")
    with state.transaction():
        state.config = default_config()
        state.persist(CONFIG)
    logger.info("Config reset to defaults by %s", actor.email)
    return state.config
