from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence

from diligencemachine.catalog.bank import load_catalog
from diligencemachine.features.conditions import matches
from diligencemachine.models.catalog import Catalog, DiligenceQuestion, RiskAnchor, TopicMeta
from diligencemachine.models.document import DiligenceDocument, NumberedQuestion, TopicSection
from diligencemachine.models.inputs import UserInputs
from diligencemachine.models.types import PRIORITY_RANK, SEVERITY_RANK, Priority, Topic

# Target window for the rendered document. Below the floor everything that
# matched is rendered; nothing is padded in.
MIN_QUESTIONS = 15
MAX_QUESTIONS = 20
MIN_PER_TOPIC = 1


def match_questions(
    inputs: UserInputs,
    questions: Sequence[DiligenceQuestion],
    brackets: Optional[Mapping[str, Sequence[str]]] = None,
) -> List[DiligenceQuestion]:
    return [q for q in questions if matches(inputs, q.conditions, brackets)]


def rank_questions(
    questions: Sequence[DiligenceQuestion],
    topic_order: Mapping[Topic, int],
) -> List[DiligenceQuestion]:
    """Priority first, then topic display order. Stable, so catalog order breaks ties."""
    return sorted(
        questions,
        key=lambda q: (PRIORITY_RANK[q.priority], topic_order[q.topic]),
    )


def _topic_count(questions: Sequence[DiligenceQuestion], topic: Topic) -> int:
    return sum(1 for q in questions if q.topic == topic)


def _pick_victim(
    selected: Sequence[DiligenceQuestion],
    min_per_topic: int,
) -> Optional[DiligenceQuestion]:
    # Lowest-ranked first; high priority is never given up for the floor.
    for q in reversed(selected):
        if q.priority == Priority.HIGH:
            continue
        if _topic_count(selected, q.topic) > min_per_topic:
            return q
    return None


def trim_questions(
    ranked: Sequence[DiligenceQuestion],
    topic_order: Mapping[Topic, int],
    max_total: int = MAX_QUESTIONS,
    min_per_topic: int = MIN_PER_TOPIC,
) -> List[DiligenceQuestion]:
    """
    Keep the first max_total questions of an already ranked list, then try to
    give every topic that matched at least min_per_topic slots by swapping out
    the lowest-ranked non-high question from a topic that can spare one.
    """
    if max_total <= 0:
        return []

    position = {q.id: i for i, q in enumerate(ranked)}
    selected = list(ranked[:max_total])
    leftovers = list(ranked[max_total:])

    for topic in sorted(topic_order, key=lambda t: topic_order[t]):
        floor = min(min_per_topic, _topic_count(ranked, topic))
        while _topic_count(selected, topic) < floor:
            candidate = next((q for q in leftovers if q.topic == topic), None)
            victim = _pick_victim(selected, min_per_topic)
            if candidate is None or victim is None:
                break
            selected.remove(victim)
            leftovers.remove(candidate)
            selected.append(candidate)
            selected.sort(key=lambda q: position[q.id])

    return selected


def group_by_topic(
    questions: Sequence[DiligenceQuestion],
    topics: Sequence[TopicMeta],
) -> List[TopicSection]:
    """
    One section per topic that has questions, in display order. Questions are
    numbered "<topic>.<position>" with both counters starting at 1.
    """
    sections: List[TopicSection] = []
    for meta in sorted(topics, key=lambda t: t.order):
        in_topic = [q for q in questions if q.topic == meta.id]
        if not in_topic:
            continue
        # stable: catalog order within a priority tier
        in_topic.sort(key=lambda q: PRIORITY_RANK[q.priority])
        topic_index = len(sections) + 1
        sections.append(
            TopicSection(
                topic=meta,
                questions=[
                    NumberedQuestion(number=f"{topic_index}.{i}", question=q)
                    for i, q in enumerate(in_topic, start=1)
                ],
            )
        )
    return sections


def select_attention_areas(
    inputs: UserInputs,
    anchors: Sequence[RiskAnchor],
    brackets: Optional[Mapping[str, Sequence[str]]] = None,
) -> List[RiskAnchor]:
    matched = [a for a in anchors if matches(inputs, a.conditions, brackets)]
    return sorted(matched, key=lambda a: SEVERITY_RANK[a.severity])


def build_document(
    inputs: UserInputs,
    catalog: Optional[Catalog] = None,
    max_questions: int = MAX_QUESTIONS,
    min_per_topic: int = MIN_PER_TOPIC,
    now: Optional[datetime] = None,
) -> DiligenceDocument:
    """
    Select, rank, trim and group questions for the given inputs, and pick the
    matching attention areas. Never raises for incomplete inputs: unanswered
    dimensions only make fewer conditions match.
    """
    if catalog is None:
        catalog = load_catalog()

    topic_order: Dict[Topic, int] = catalog.topic_order()

    matched = match_questions(inputs, catalog.questions, catalog.brackets)
    ranked = rank_questions(matched, topic_order)
    selected = trim_questions(ranked, topic_order, max_questions, min_per_topic)

    return DiligenceDocument(
        questions_by_topic=group_by_topic(selected, catalog.topics),
        attention_areas=select_attention_areas(inputs, catalog.risk_anchors, catalog.brackets),
        total_questions=len(selected),
        matched_questions=len(matched),
        generated_at=now or datetime.now(timezone.utc),
        inputs=inputs,
    )
