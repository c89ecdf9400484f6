from __future__ import annotations

import sqlite3
from typing import Optional

from diligencemachine.catalog.bank import load_catalog
from diligencemachine.models.catalog import Catalog
from diligencemachine.models.document import DiligenceDocument
from diligencemachine.models.inputs import WizardState
from diligencemachine.state import machine
from diligencemachine.state.envelope import dump_state, restore_state
from diligencemachine.storage.db import read_state, write_state


class WizardSession:
    """
    A wizard bound to one row of the session store.

    The state is loaded once on construction and written back in full after
    every transition, including no-op ones.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        session_id: str = "default",
        catalog: Optional[Catalog] = None,
    ) -> None:
        self.conn = conn
        self.session_id = session_id
        self.catalog = catalog or load_catalog()
        self.state, self.discarded = restore_state(
            read_state(conn, session_id), self.catalog.steps
        )
        if self.discarded:
            self._save()

    def _save(self) -> None:
        write_state(self.conn, self.session_id, dump_state(self.state))

    def _apply(self, new_state: WizardState) -> WizardState:
        self.state = new_state
        self._save()
        return self.state

    def select(self, value: str, field: Optional[str] = None) -> WizardState:
        return self._apply(machine.select(self.state, value, field, self.catalog.steps))

    def advance(self) -> WizardState:
        return self._apply(machine.advance(self.state, self.catalog.steps))

    def retreat(self) -> WizardState:
        return self._apply(machine.retreat(self.state))

    def jump(self, target: int) -> WizardState:
        return self._apply(machine.jump(self.state, target, self.catalog.steps))

    def generate(self) -> Optional[DiligenceDocument]:
        new_state, doc = machine.generate(self.state, self.catalog)
        self._apply(new_state)
        return doc

    def back_from_output(self) -> WizardState:
        return self._apply(machine.back_from_output(self.state, self.catalog.steps))

    def restart(self) -> WizardState:
        return self._apply(machine.restart(self.state))

    def should_auto_advance(self) -> bool:
        return machine.should_auto_advance(self.state, self.catalog.steps)
