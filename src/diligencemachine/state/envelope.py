from __future__ import annotations

import json
from typing import Optional, Sequence, Tuple

from pydantic import ValidationError

from diligencemachine.catalog.bank import load_catalog
from diligencemachine.models.catalog import WizardStep
from diligencemachine.models.inputs import SCHEMA_VERSION, WizardState
from diligencemachine.state.machine import initial_state


def dump_state(state: WizardState) -> str:
    return state.model_dump_json()


def restore_state(
    raw: Optional[str],
    steps: Optional[Sequence[WizardStep]] = None,
) -> Tuple[WizardState, bool]:
    """
    Rebuild a WizardState from a stored blob.

    Returns (state, discarded). A blob from another schema version, one that
    no longer parses, or one whose step counters fall outside the wizard is
    dropped in favour of a fresh state; fields are never migrated one by one.
    """
    if raw is None:
        return initial_state(), False

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        return initial_state(), True

    if not isinstance(payload, dict) or payload.get("version") != SCHEMA_VERSION:
        return initial_state(), True

    # older writers did not record the high-water mark
    if "highest_step_reached" not in payload and "current_step" in payload:
        payload["highest_step_reached"] = payload["current_step"]

    try:
        state = WizardState.model_validate(payload)
    except ValidationError:
        return initial_state(), True

    total = len(steps if steps is not None else load_catalog().steps)
    if not 1 <= state.current_step <= state.highest_step_reached <= total:
        return initial_state(), True

    return state, False
