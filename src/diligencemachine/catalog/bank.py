from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Set

import yaml

from diligencemachine.models.catalog import (
    ORDINAL_DIMENSIONS,
    SET_DIMENSIONS,
    Catalog,
    QuestionCondition,
)
from diligencemachine.models.inputs import UserInputs
from diligencemachine.models.types import InputType, Topic

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"

QUESTIONS_FILE = "questions.yaml"
RISK_ANCHORS_FILE = "risk_anchors.yaml"
WIZARD_FILE = "wizard.yaml"


def _read_yaml(path: Path) -> Dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path.name}: expected a mapping at the top level")
    return data


def read_catalog(config_dir: Path) -> Catalog:
    """Parse the three catalog files under config_dir. No cross-checks."""
    questions = _read_yaml(config_dir / QUESTIONS_FILE)
    anchors = _read_yaml(config_dir / RISK_ANCHORS_FILE)
    wizard = _read_yaml(config_dir / WIZARD_FILE)

    return Catalog(
        topics=questions["topics"],
        questions=questions["questions"],
        risk_anchors=anchors["risk_anchors"],
        steps=wizard["steps"],
        brackets=wizard["brackets"],
    )


@lru_cache(maxsize=None)
def load_catalog(config_dir: str = str(CONFIG_DIR)) -> Catalog:
    """Load and validate the catalog once per process."""
    catalog = read_catalog(Path(config_dir))
    validate_catalog(catalog)
    return catalog


def _options_by_field(catalog: Catalog) -> Dict[str, Set[str]]:
    out: Dict[str, Set[str]] = {}
    for step in catalog.steps:
        if step.input_type == InputType.COMPOUND:
            for f in step.fields:
                out[f.field] = set(f.option_ids())
        elif step.field:
            out[step.field] = set(step.option_ids())
    return out


def _condition_errors(
    owner: str,
    cond: QuestionCondition,
    options: Dict[str, Set[str]],
) -> List[str]:
    errors: List[str] = []
    for cond_field, input_field in SET_DIMENSIONS:
        values = getattr(cond, cond_field)
        if values is None:
            continue
        if not values:
            errors.append(f"{owner}: empty {cond_field}")
        for v in values:
            if v not in options.get(input_field, set()):
                errors.append(f"{owner}: {cond_field} references unknown option '{v}'")

    for v in cond.exclude_transaction_types or ():
        if v not in options.get("transaction_type", set()):
            errors.append(f"{owner}: exclude_transaction_types references unknown option '{v}'")

    for cond_field, input_field in ORDINAL_DIMENSIONS:
        v = getattr(cond, cond_field)
        if v is not None and v not in options.get(input_field, set()):
            errors.append(f"{owner}: {cond_field} references unknown bracket '{v}'")
    return errors


def validate_catalog(catalog: Catalog) -> None:
    """
    Cross-check the catalog. Raises ValueError listing every problem found.
    These are authoring bugs, so they are not recoverable at runtime.
    """
    errors: List[str] = []

    topic_ids = [t.id for t in catalog.topics]
    if sorted(topic_ids) != sorted(Topic):
        errors.append(f"topics must be exactly {[t.value for t in Topic]}")
    orders = [t.order for t in catalog.topics]
    if len(set(orders)) != len(orders):
        errors.append("topic order values must be unique")

    seen: Set[str] = set()
    for q in catalog.questions:
        if q.id in seen:
            errors.append(f"duplicate question id: {q.id}")
        seen.add(q.id)
        if not q.text.strip() or not q.rationale.strip():
            errors.append(f"{q.id}: text and rationale are required")

    seen = set()
    for a in catalog.risk_anchors:
        if a.id in seen:
            errors.append(f"duplicate risk anchor id: {a.id}")
        seen.add(a.id)

    step_ids = [s.id for s in catalog.steps]
    if len(set(step_ids)) != len(step_ids):
        errors.append("wizard step ids must be unique")

    input_fields = set(UserInputs.model_fields)
    for step in catalog.steps:
        if step.input_type == InputType.COMPOUND:
            if not step.fields:
                errors.append(f"step {step.id}: compound step without fields")
            targets = [f.field for f in step.fields]
        else:
            if not step.options:
                errors.append(f"step {step.id}: no options")
            targets = [step.field] if step.field else []
            if not targets:
                errors.append(f"step {step.id}: no input field")
        for t in targets:
            if t not in input_fields:
                errors.append(f"step {step.id}: unknown input field '{t}'")
        if step.input_type == InputType.MULTI_SELECT and step.field != "geographies":
            errors.append(f"step {step.id}: only geographies is multi-valued")

    options = _options_by_field(catalog)
    for _, bracket in ORDINAL_DIMENSIONS:
        order = catalog.brackets.get(bracket)
        if order is None:
            errors.append(f"missing bracket order: {bracket}")
        elif set(order) != options.get(bracket, set()) or len(set(order)) != len(order):
            errors.append(f"bracket order for {bracket} does not match wizard options")

    for q in catalog.questions:
        errors.extend(_condition_errors(q.id, q.conditions, options))
    for a in catalog.risk_anchors:
        errors.extend(_condition_errors(a.id, a.conditions, options))

    if errors:
        raise ValueError("Invalid catalog:\n  " + "\n  ".join(errors))


def option_label(catalog: Catalog, field: str, option_id: str) -> str:
    """Human-readable label for an option id, falling back to the id."""
    for step in catalog.steps:
        if step.input_type == InputType.COMPOUND:
            for f in step.fields:
                if f.field == field:
                    for o in f.options:
                        if o.id == option_id:
                            return o.label
        elif step.field == field:
            for o in step.options:
                if o.id == option_id:
                    return o.label
    return option_id
