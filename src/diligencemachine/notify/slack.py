import os
import json
import requests

from diligencemachine.models.document import DiligenceDocument
from diligencemachine.models.types import Severity

def notify(text: str) -> bool:
    url = os.getenv("SLACK_WEBHOOK_URL")
    if not url:
        return False

    resp = requests.post(
        url,
        data=json.dumps({"text": text}),
        headers={"Content-Type": "application/json"},
        timeout=10,
    )
    resp.raise_for_status()
    return True

def summary_text(doc: DiligenceDocument) -> str:
    inp = doc.inputs
    topics = ", ".join(
        f"{s.topic.label} ({len(s.questions)})" for s in doc.questions_by_topic
    )
    high = [a.title for a in doc.attention_areas if a.severity == Severity.HIGH]
    lines = [
        f"Diligence agenda generated: {doc.total_questions} questions "
        f"({doc.matched_questions} matched)",
        f"{inp.transaction_type} | {inp.product_type} | {inp.tech_archetype} | "
        f"{', '.join(inp.geographies) or 'no geography'}",
        f"Topics: {topics or 'none'}",
    ]
    if high:
        lines.append(f"High-severity attention areas: {', '.join(high)}")
    return "\n".join(lines)

def share_document(doc: DiligenceDocument) -> bool:
    return notify(summary_text(doc))
