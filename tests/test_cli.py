import json
from pathlib import Path

import pytest

from diligencemachine.cli import wizard
from diligencemachine.cli.__main__ import main
from diligencemachine.cli.generate_once import load_inputs

SAMPLE = Path(__file__).resolve().parent.parent / "samples" / "carve_out_eu.yaml"

@pytest.fixture
def no_wait(monkeypatch):
    monkeypatch.setattr(wizard, "schedule_auto_advance", lambda cb: cb())

def wiz(tmp_path, *args):
    main(["wizard", *args, "--data-dir", str(tmp_path)])

def test_check_catalog(capsys):
    main(["check-catalog"])
    assert "Catalog OK: 67 questions, 17 risk anchors, 10 steps" in capsys.readouterr().out

def test_init_db(tmp_path, capsys):
    main(["init-db", "--data-dir", str(tmp_path)])
    assert (tmp_path / "diligencemachine.sqlite3").exists()
    assert "Initialized sqlite db" in capsys.readouterr().out

def test_generate_text(capsys):
    main(["generate", "--inputs", str(SAMPLE)])
    out = capsys.readouterr().out
    assert "CONTENTS (20 questions)" in out
    assert "Carve-out Technology Entanglement" in out

def test_generate_json_to_file(tmp_path, capsys):
    out_path = tmp_path / "out" / "agenda.json"
    main(["generate", "--inputs", str(SAMPLE), "--format", "json",
          "--out", str(out_path), "--max-questions", "12"])
    assert "Wrote" in capsys.readouterr().out
    payload = json.loads(out_path.read_text(encoding="utf-8"))
    assert payload["summary"]["total_questions"] == 12

def test_generate_warns_when_few_match(tmp_path, capsys):
    p = tmp_path / "in.yaml"
    p.write_text("transaction-type: full-acquisition\ngeographies: us\nfavourite_colour: red\n")
    main(["generate", "--inputs", str(p)])
    out = capsys.readouterr().out
    assert "ignoring unknown input 'favourite_colour'" in out
    assert "note: only" in out

def test_load_inputs_accepts_kebab_keys(tmp_path):
    p = tmp_path / "in.yaml"
    p.write_text("tech-archetype: hybrid-legacy\ngeographies: eu\n")
    inputs = load_inputs(str(p))
    assert inputs.tech_archetype == "hybrid-legacy"
    assert inputs.geographies == ["eu"]

def test_generate_share_without_webhook(monkeypatch, capsys):
    monkeypatch.delenv("SLACK_WEBHOOK_URL", raising=False)
    main(["generate", "--inputs", str(SAMPLE), "--share"])
    assert "SLACK_WEBHOOK_URL not set" in capsys.readouterr().out

def test_missing_inputs_file_exits(tmp_path, capsys):
    with pytest.raises(SystemExit) as e:
        main(["generate", "--inputs", str(tmp_path / "nope.yaml")])
    assert e.value.code == 1
    assert capsys.readouterr().out.startswith("error:")

def test_wizard_walkthrough(tmp_path, capsys, no_wait):
    wiz(tmp_path, "status")
    assert "Step 1/10: Transaction Type" in capsys.readouterr().out

    # single-select auto-advances
    wiz(tmp_path, "select", "carve-out")
    assert "Step 2/10" in capsys.readouterr().out

    wiz(tmp_path, "select", "on-premise-enterprise")
    wiz(tmp_path, "select", "hybrid-legacy")
    capsys.readouterr()

    # compound step waits for 'next'
    wiz(tmp_path, "select", "51-200", "--field", "headcount")
    wiz(tmp_path, "select", "5-25m", "--field", "revenue-range")
    wiz(tmp_path, "select", "mature", "--field", "growth-stage")
    wiz(tmp_path, "select", "10-20yr", "--field", "company-age")
    out = capsys.readouterr().out
    assert "Step 4/10" in out
    assert "Complete: run 'wizard next'." in out
    wiz(tmp_path, "next")

    for v in ("eu", "customized-deployments", "moderate", "stable", "moderate"):
        wiz(tmp_path, "select", v)
    wiz(tmp_path, "select", "centralized-eng")
    out = capsys.readouterr().out
    assert "Step 10/10" in out
    assert "Ready: run 'wizard generate'." in out

    wiz(tmp_path, "generate")
    assert "CONTENTS (20 questions)" in capsys.readouterr().out

    wiz(tmp_path, "status")
    assert "Output ready." in capsys.readouterr().out

    wiz(tmp_path, "output-back")
    assert "Step 10/10" in capsys.readouterr().out

    wiz(tmp_path, "jump", "--step", "2")
    assert "Step 2/10" in capsys.readouterr().out

    wiz(tmp_path, "restart")
    assert "Step 1/10" in capsys.readouterr().out

def test_wizard_rejected_navigation_is_reported(tmp_path, capsys):
    wiz(tmp_path, "next")
    assert "'next' not available from step 1." in capsys.readouterr().out
    wiz(tmp_path, "generate")
    assert "Cannot generate yet" in capsys.readouterr().out

def test_wizard_bad_option_exits(tmp_path, capsys):
    with pytest.raises(SystemExit) as e:
        wiz(tmp_path, "select", "hostile-takeover")
    assert e.value.code == 1
    assert "is not an option" in capsys.readouterr().out
