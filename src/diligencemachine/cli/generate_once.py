from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from diligencemachine.catalog.bank import load_catalog
from diligencemachine.features.selection import MAX_QUESTIONS, MIN_QUESTIONS, build_document
from diligencemachine.models.inputs import UserInputs
from diligencemachine.notify.slack import share_document
from diligencemachine.render.document import render_json, render_text


def load_inputs(path: str) -> UserInputs:
    """
    Read target parameters from YAML. Keys may be snake_case or kebab-case;
    a single geography may be given as a plain string.
    """
    raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a mapping of input fields")

    data: Dict[str, Any] = {}
    for key, value in raw.items():
        name = str(key).replace("-", "_")
        if name not in UserInputs.model_fields:
            print(f"note: ignoring unknown input '{key}'")
            continue
        data[name] = value

    if isinstance(data.get("geographies"), str):
        data["geographies"] = [data["geographies"]]

    return UserInputs.model_validate(data)


def run(
    inputs_path: str,
    fmt: str = "text",
    out_path: Optional[str] = None,
    max_questions: int = MAX_QUESTIONS,
    share: bool = False,
) -> None:
    catalog = load_catalog()
    inputs = load_inputs(inputs_path)

    doc = build_document(inputs, catalog=catalog, max_questions=max_questions)

    if doc.matched_questions < MIN_QUESTIONS:
        print(
            f"note: only {doc.matched_questions} questions matched "
            f"(target window {MIN_QUESTIONS}-{max_questions})"
        )

    rendered = render_json(doc, catalog) if fmt == "json" else render_text(doc, catalog)

    if out_path:
        outp = Path(out_path)
        outp.parent.mkdir(parents=True, exist_ok=True)
        outp.write_text(rendered, encoding="utf-8")
        print(f"Wrote {outp.resolve()}")
    else:
        print(rendered, end="")

    if share:
        if share_document(doc):
            print("Shared summary to Slack")
        else:
            print("note: SLACK_WEBHOOK_URL not set, nothing shared")
