from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from diligencemachine.catalog.bank import load_catalog
from diligencemachine.features.selection import build_document
from diligencemachine.models.catalog import Catalog, WizardField, WizardStep
from diligencemachine.models.document import DiligenceDocument
from diligencemachine.models.inputs import UserInputs, WizardState
from diligencemachine.models.types import InputType, StepStatus, WizardPhase

# Pause between a valid selection and the automatic move to the next step.
# Applied by the UI layer only; transitions here are synchronous.
AUTO_ADVANCE_DELAY = 0.3


def _steps(steps: Optional[Sequence[WizardStep]]) -> Sequence[WizardStep]:
    return steps if steps is not None else load_catalog().steps


def initial_state() -> WizardState:
    return WizardState()


def step_at(index: int, steps: Optional[Sequence[WizardStep]] = None) -> WizardStep:
    steps = _steps(steps)
    if index < 1 or index > len(steps):
        raise IndexError(f"step {index} out of range 1..{len(steps)}")
    return steps[index - 1]


def is_step_complete(inputs: UserInputs, step: WizardStep) -> bool:
    # single-select: a value; multi-select: non-empty; compound: every sub-field
    return all(getattr(inputs, f) for f in step.input_fields())


def auto_advances(step: WizardStep) -> bool:
    return step.input_type in (InputType.SINGLE_SELECT, InputType.MULTI_SELECT)


def _compound_field(step: WizardStep, name: Optional[str]) -> WizardField:
    if name is None:
        raise ValueError(f"step {step.id} needs a field name, one of {[f.id for f in step.fields]}")
    for f in step.fields:
        if name in (f.id, f.field):
            return f
    raise ValueError(f"step {step.id} has no field '{name}'")


def _with_input(state: WizardState, attr: str, value) -> WizardState:
    inputs = state.inputs.model_copy(update={attr: value})
    return state.model_copy(update={"inputs": inputs})


def select(
    state: WizardState,
    value: str,
    field: Optional[str] = None,
    steps: Optional[Sequence[WizardStep]] = None,
) -> WizardState:
    """
    Record a selection on the current step.

    Single-select replaces the value, multi-select toggles it in the set and
    compound steps set the named sub-field. Unknown option ids raise
    ValueError. Selections are ignored once the output is showing.
    """
    if state.phase == WizardPhase.OUTPUT:
        return state

    step = step_at(state.current_step, steps)

    if step.input_type == InputType.COMPOUND:
        sub = _compound_field(step, field)
        if value not in sub.option_ids():
            raise ValueError(f"'{value}' is not an option for {sub.id}")
        return _with_input(state, sub.field, value)

    if value not in step.option_ids():
        raise ValueError(f"'{value}' is not an option for {step.id}")

    if step.input_type == InputType.MULTI_SELECT:
        current = list(getattr(state.inputs, step.field))
        if value in current:
            current.remove(value)
        else:
            current.append(value)
        return _with_input(state, step.field, current)

    return _with_input(state, step.field, value)


def can_advance(state: WizardState, steps: Optional[Sequence[WizardStep]] = None) -> bool:
    steps = _steps(steps)
    if state.phase != WizardPhase.WIZARD:
        return False
    if state.current_step >= len(steps):
        return False
    return is_step_complete(state.inputs, step_at(state.current_step, steps))


def should_auto_advance(state: WizardState, steps: Optional[Sequence[WizardStep]] = None) -> bool:
    """True when the UI should schedule an advance after the last selection."""
    steps = _steps(steps)
    if not can_advance(state, steps):
        return False
    return auto_advances(step_at(state.current_step, steps))


def advance(state: WizardState, steps: Optional[Sequence[WizardStep]] = None) -> WizardState:
    if not can_advance(state, steps):
        return state
    nxt = state.current_step + 1
    return state.model_copy(
        update={
            "current_step": nxt,
            "highest_step_reached": max(state.highest_step_reached, nxt),
        }
    )


def retreat(state: WizardState) -> WizardState:
    if state.phase != WizardPhase.WIZARD or state.current_step <= 1:
        return state
    return state.model_copy(update={"current_step": state.current_step - 1})


def jump(
    state: WizardState,
    target: int,
    steps: Optional[Sequence[WizardStep]] = None,
) -> WizardState:
    """
    Move to an already reached step. Going forward also needs every step in
    between to still be answered, since earlier answers can be cleared.
    """
    if state.phase != WizardPhase.WIZARD:
        return state
    if target < 1 or target == state.current_step or target > state.highest_step_reached:
        return state
    if target > state.current_step:
        steps = _steps(steps)
        for i in range(state.current_step, target):
            if not is_step_complete(state.inputs, step_at(i, steps)):
                return state
    return state.model_copy(update={"current_step": target})


def can_generate(state: WizardState, steps: Optional[Sequence[WizardStep]] = None) -> bool:
    steps = _steps(steps)
    if state.phase != WizardPhase.WIZARD or state.current_step != len(steps):
        return False
    # every step, not just the last: a jump can skip over a cleared answer
    return all(is_step_complete(state.inputs, s) for s in steps)


def generate(
    state: WizardState,
    catalog: Optional[Catalog] = None,
) -> Tuple[WizardState, Optional[DiligenceDocument]]:
    """Move to the output phase and build the document, or do nothing."""
    if catalog is None:
        catalog = load_catalog()
    if not can_generate(state, catalog.steps):
        return state, None
    doc = build_document(state.inputs, catalog=catalog)
    return state.model_copy(update={"phase": WizardPhase.OUTPUT}), doc


def back_from_output(state: WizardState, steps: Optional[Sequence[WizardStep]] = None) -> WizardState:
    if state.phase != WizardPhase.OUTPUT:
        return state
    return state.model_copy(
        update={"phase": WizardPhase.WIZARD, "current_step": len(_steps(steps))}
    )


def restart(state: WizardState) -> WizardState:
    return initial_state()


def progress(
    state: WizardState,
    steps: Optional[Sequence[WizardStep]] = None,
) -> List[Tuple[WizardStep, StepStatus]]:
    """Progress-bar status for each step."""
    out: List[Tuple[WizardStep, StepStatus]] = []
    for i, step in enumerate(_steps(steps), start=1):
        if i == state.current_step:
            status = StepStatus.ACTIVE
        elif i < state.current_step:
            status = StepStatus.COMPLETED
        elif i <= state.highest_step_reached:
            status = StepStatus.REACHABLE
        else:
            status = StepStatus.LOCKED
        out.append((step, status))
    return out
