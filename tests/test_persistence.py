import json
from pathlib import Path

from diligencemachine.models.inputs import SCHEMA_VERSION, WizardState
from diligencemachine.models.types import WizardPhase
from diligencemachine.state.envelope import dump_state, restore_state
from diligencemachine.state.machine import initial_state
from diligencemachine.state.session import WizardSession
from diligencemachine.storage.db import connect, init_schema, read_state, write_state

FULL_INPUTS = {
    "transaction_type": "full-acquisition",
    "product_type": "b2b-saas",
    "tech_archetype": "modern-cloud-native",
    "headcount": "51-200",
    "revenue_range": "5-25m",
    "growth_stage": "scaling",
    "company_age": "5-10yr",
    "geographies": ["us"],
    "business_model": "productized-platform",
    "scale_intensity": "moderate",
    "transformation_state": "stable",
    "data_sensitivity": "moderate",
    "operating_model": "hybrid",
}

def mk_conn(tmp_path: Path):
    conn = connect(tmp_path / "data")
    init_schema(conn)
    return conn

def test_dump_and_restore_keeps_state():
    s = WizardState(current_step=3, highest_step_reached=5)
    s = s.model_copy(update={"inputs": s.inputs.model_copy(update={"geographies": ["eu", "uk"]})})
    restored, discarded = restore_state(dump_state(s))
    assert not discarded
    assert restored == s

def test_missing_blob_is_fresh_not_discarded():
    state, discarded = restore_state(None)
    assert state == initial_state()
    assert not discarded

def test_old_version_is_discarded():
    payload = json.loads(dump_state(WizardState(current_step=4, highest_step_reached=4)))
    payload["version"] = 1
    state, discarded = restore_state(json.dumps(payload))
    assert discarded
    assert state == initial_state()

def test_unversioned_or_garbage_blobs_are_discarded():
    for raw in ("not json", "[]", json.dumps({"current_step": 2}),
                json.dumps({"version": SCHEMA_VERSION, "phase": "SOMEWHERE"})):
        state, discarded = restore_state(raw)
        assert discarded, raw
        assert state == initial_state()

def test_current_step_beyond_highest_is_discarded():
    raw = json.dumps({"version": SCHEMA_VERSION, "current_step": 6, "highest_step_reached": 2})
    _, discarded = restore_state(raw)
    assert discarded

def test_step_counters_outside_wizard_are_discarded():
    for cur, high in ((0, 0), (0, 3), (3, 42), (11, 11)):
        raw = json.dumps({"version": SCHEMA_VERSION, "current_step": cur, "highest_step_reached": high})
        state, discarded = restore_state(raw)
        assert discarded, (cur, high)
        assert state == initial_state()

def test_last_step_is_a_valid_high_water_mark():
    raw = json.dumps({"version": SCHEMA_VERSION, "current_step": 10, "highest_step_reached": 10})
    state, discarded = restore_state(raw)
    assert not discarded
    assert state.current_step == 10

def test_missing_highest_step_falls_back_to_current():
    raw = json.dumps({"version": SCHEMA_VERSION, "current_step": 4})
    state, discarded = restore_state(raw)
    assert not discarded
    assert state.current_step == 4
    assert state.highest_step_reached == 4

def test_session_with_out_of_range_step_starts_over(tmp_path: Path):
    conn = mk_conn(tmp_path)
    write_state(conn, "default", json.dumps(
        {"version": SCHEMA_VERSION, "current_step": 3, "highest_step_reached": 42}
    ))
    session = WizardSession(conn)
    assert session.discarded
    assert session.jump(42).current_step == 1
    assert session.select("carve-out").inputs.transaction_type == "carve-out"

def test_write_state_upserts(tmp_path: Path):
    conn = mk_conn(tmp_path)
    assert read_state(conn, "a") is None
    write_state(conn, "a", "one")
    write_state(conn, "a", "two")
    assert read_state(conn, "a") == "two"
    n = conn.execute("SELECT COUNT(*) AS n FROM wizard_sessions").fetchone()["n"]
    assert n == 1

def test_session_survives_reopen(tmp_path: Path):
    conn = mk_conn(tmp_path)
    session = WizardSession(conn, "deal-1")
    session.select("carve-out")
    session.advance()
    conn.close()

    again = WizardSession(mk_conn(tmp_path), "deal-1")
    assert not again.discarded
    assert again.state.current_step == 2
    assert again.state.inputs.transaction_type == "carve-out"

def test_sessions_are_independent(tmp_path: Path):
    conn = mk_conn(tmp_path)
    WizardSession(conn, "a").select("carve-out")
    other = WizardSession(conn, "b")
    assert other.state.inputs.transaction_type is None

def test_session_resets_stale_blob_and_overwrites_it(tmp_path: Path):
    conn = mk_conn(tmp_path)
    write_state(conn, "default", json.dumps({"version": 1, "current_step": 7}))
    session = WizardSession(conn)
    assert session.discarded
    assert session.state == initial_state()
    stored = json.loads(read_state(conn, "default"))
    assert stored["version"] == SCHEMA_VERSION
    assert stored["current_step"] == 1

def test_session_saves_output_phase(tmp_path: Path):
    conn = mk_conn(tmp_path)
    raw = WizardState(
        current_step=10,
        highest_step_reached=10,
        inputs=FULL_INPUTS,
    )
    write_state(conn, "default", dump_state(raw))
    session = WizardSession(conn)
    doc = session.generate()
    assert doc is not None
    assert WizardSession(conn).state.phase == WizardPhase.OUTPUT

    session.restart()
    assert WizardSession(conn).state == initial_state()
