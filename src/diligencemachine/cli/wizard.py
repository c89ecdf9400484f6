from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, List, Optional

from diligencemachine.models.types import InputType, StepStatus, WizardPhase
from diligencemachine.render.document import render_text
from diligencemachine.state import machine
from diligencemachine.state.session import WizardSession
from diligencemachine.storage.db import connect, init_schema

_MARKS = {
    StepStatus.ACTIVE: ">",
    StepStatus.COMPLETED: "x",
    StepStatus.REACHABLE: "~",
    StepStatus.LOCKED: " ",
}


def schedule_auto_advance(
    callback: Callable[[], None],
    delay: float = machine.AUTO_ADVANCE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    # The terminal has no event loop; a blocking pause stands in for the timer.
    sleep(delay)
    callback()


def open_session(data_dir: str, session_id: str) -> WizardSession:
    conn = connect(Path(data_dir))
    init_schema(conn)
    session = WizardSession(conn, session_id)
    if session.discarded:
        print("Saved wizard state was from another version; starting over.")
    return session


def print_status(session: WizardSession) -> None:
    state = session.state
    steps = session.catalog.steps

    bar = " ".join(
        f"[{_MARKS[status]}]{i}" for i, (_, status) in
        enumerate(machine.progress(state, steps), start=1)
    )
    print(bar)

    if state.phase == WizardPhase.OUTPUT:
        print("Output ready. Use 'wizard generate' to print it again, "
              "'wizard output-back' to edit or 'wizard restart'.")
        return

    step = machine.step_at(state.current_step, steps)
    print(f"Step {state.current_step}/{len(steps)}: {step.title}")
    print(f"  {step.subtitle}")

    if step.input_type == InputType.COMPOUND:
        for f in step.fields:
            chosen = getattr(state.inputs, f.field)
            print(f"  {f.label} [{f.id}]: {chosen or '-'}")
            print(f"    options: {', '.join(f.option_ids())}")
    else:
        chosen = getattr(state.inputs, step.field)
        for o in step.options:
            picked = o.id in chosen if isinstance(chosen, list) else o.id == chosen
            print(f"  ({'*' if picked else ' '}) {o.id}: {o.label}")

    if machine.can_generate(state, steps):
        print("Ready: run 'wizard generate'.")
    elif state.current_step == len(steps) and machine.is_step_complete(state.inputs, step):
        missing = [
            str(i) for i, s in enumerate(steps, start=1)
            if not machine.is_step_complete(state.inputs, s)
        ]
        print(f"Unanswered steps: {', '.join(missing)}. Use 'wizard jump --step N'.")
    elif machine.can_advance(state, steps) and not machine.auto_advances(step):
        print("Complete: run 'wizard next'.")


def run(
    action: str,
    data_dir: str = "data",
    session_id: str = "default",
    values: Optional[List[str]] = None,
    field: Optional[str] = None,
    step: Optional[int] = None,
) -> None:
    session = open_session(data_dir, session_id)
    before = session.state.current_step

    if action == "status":
        pass
    elif action == "select":
        for v in values or []:
            session.select(v, field)
        if session.should_auto_advance():
            schedule_auto_advance(session.advance)
    elif action == "next":
        session.advance()
    elif action == "back":
        session.retreat()
    elif action == "jump":
        session.jump(int(step or 0))
    elif action == "generate":
        if session.state.phase == WizardPhase.OUTPUT:
            session.back_from_output()
        doc = session.generate()
        if doc is None:
            print("Cannot generate yet: finish the final step first.")
        else:
            print(render_text(doc, session.catalog), end="")
            return
    elif action == "output-back":
        session.back_from_output()
    elif action == "restart":
        session.restart()
    else:
        raise ValueError(f"Unknown wizard action: {action}")

    if action in ("next", "back", "jump") and session.state.current_step == before:
        print(f"'{action}' not available from step {before}.")

    print_status(session)
