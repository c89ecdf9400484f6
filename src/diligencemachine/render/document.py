from __future__ import annotations

import json
import textwrap
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from diligencemachine.catalog.bank import load_catalog, option_label
from diligencemachine.models.catalog import Catalog
from diligencemachine.models.document import DiligenceDocument
from diligencemachine.models.types import InputType

TITLE = "Overview and Agenda"
BRAND = "Global Strategic Technologies"

METHODOLOGY = (
    "Questions were selected by a deterministic question-selection engine from a "
    "fixed bank of diligence questions. Each question carries conditions on the "
    "target parameters above; matching questions are ranked by priority, capped "
    "for a single working session and grouped by topic."
)

DISCLAIMER = (
    "This agenda is a starting framework for technical due diligence conversations. "
    "It does not replace a full assessment and should be adapted to the specifics "
    "of the transaction."
)

WIDTH = 78


def _wrap(text: str, indent: str = "") -> str:
    return textwrap.fill(text, width=WIDTH, initial_indent=indent, subsequent_indent=indent)


def _as_utc(ts: datetime) -> datetime:
    # naive timestamps are taken to be UTC already
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def input_summary(doc: DiligenceDocument, catalog: Catalog) -> List[Dict[str, str]]:
    """(label, value) rows for the target parameters block, in wizard order."""
    rows: List[Dict[str, str]] = []
    for step in catalog.steps:
        if step.input_type == InputType.COMPOUND:
            pairs = [(f.label, f.field) for f in step.fields]
        else:
            pairs = [(step.title, step.field)]
        for label, field in pairs:
            value = getattr(doc.inputs, field)
            if isinstance(value, list):
                shown = ", ".join(option_label(catalog, field, v) for v in value)
            elif value:
                shown = option_label(catalog, field, value)
            else:
                shown = "Not specified"
            rows.append({"label": label, "value": shown or "Not specified"})
    return rows


def render_text(doc: DiligenceDocument, catalog: Optional[Catalog] = None) -> str:
    """Plain-text rendition used for copy/paste and the CLI."""
    if catalog is None:
        catalog = load_catalog()

    lines: List[str] = []
    lines.append(TITLE.upper())
    lines.append(BRAND)
    lines.append(f"Generated: {_as_utc(doc.generated_at).strftime('%B %d, %Y %H:%M UTC')}")
    lines.append("")

    lines.append("TARGET PARAMETERS")
    for row in input_summary(doc, catalog):
        lines.append(f"  {row['label']}: {row['value']}")
    lines.append("")

    lines.append(f"CONTENTS ({doc.total_questions} questions)")
    for i, section in enumerate(doc.questions_by_topic, start=1):
        lines.append(f"  {i}. {section.topic.label} ({len(section.questions)})")
    lines.append("")

    for i, section in enumerate(doc.questions_by_topic, start=1):
        lines.append(f"{i}. {section.topic.label.upper()}")
        lines.append(f"   Audience: {section.topic.audience}")
        lines.append(_wrap(section.topic.subtitle, "   "))
        lines.append("")
        for nq in section.questions:
            q = nq.question
            lines.append(_wrap(f"{nq.number} {q.text}", ""))
            lines.append(f"     Priority: {q.priority.value}")
            if q.exit_impact:
                lines.append(f"     Exit impact: {q.exit_impact.value}")
            lines.append(_wrap(f"Why it matters: {q.rationale}", "     "))
            if q.lookout_signal:
                lines.append(_wrap(f"Lookout: {q.lookout_signal}", "     "))
            lines.append("")

    if doc.attention_areas:
        lines.append("ATTENTION AREAS")
        for a in doc.attention_areas:
            lines.append(f"  [{a.severity.value.upper()}] {a.title}")
            lines.append(_wrap(a.description, "    "))
        lines.append("")

    lines.append("METHODOLOGY")
    lines.append(_wrap(METHODOLOGY, "  "))
    lines.append("")
    lines.append(_wrap(DISCLAIMER))
    return "\n".join(lines) + "\n"


def render_json(doc: DiligenceDocument, catalog: Optional[Catalog] = None) -> str:
    if catalog is None:
        catalog = load_catalog()
    payload: Dict[str, Any] = {
        "title": TITLE,
        "brand": BRAND,
        "generated_at": _as_utc(doc.generated_at).isoformat(),
        "summary": {
            "total_questions": doc.total_questions,
            "matched_questions": doc.matched_questions,
            "topics": len(doc.questions_by_topic),
            "attention_areas": len(doc.attention_areas),
        },
        "target_parameters": input_summary(doc, catalog),
        "inputs": doc.inputs.model_dump(mode="json"),
        "questions_by_topic": [s.model_dump(mode="json") for s in doc.questions_by_topic],
        "attention_areas": [a.model_dump(mode="json") for a in doc.attention_areas],
    }
    return json.dumps(payload, indent=2)
