from __future__ import annotations

from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from diligencemachine.models.types import ExitImpact, InputType, Priority, Severity, Topic

# (condition field, UserInputs field) for OR-within-dimension checks
SET_DIMENSIONS: Tuple[Tuple[str, str], ...] = (
    ("transaction_types", "transaction_type"),
    ("product_types", "product_type"),
    ("tech_archetypes", "tech_archetype"),
    ("growth_stages", "growth_stage"),
    ("geographies", "geographies"),
    ("business_models", "business_model"),
    ("scale_intensity", "scale_intensity"),
    ("transformation_states", "transformation_state"),
    ("data_sensitivity", "data_sensitivity"),
    ("operating_models", "operating_model"),
)

# (condition field, UserInputs field / bracket table name) for "at least" checks
ORDINAL_DIMENSIONS: Tuple[Tuple[str, str], ...] = (
    ("headcount_min", "headcount"),
    ("revenue_min", "revenue_range"),
    ("company_age_min", "company_age"),
)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class QuestionCondition(_Frozen):
    """
    Predicate attached to a question or risk anchor.

    A field left as None is a wildcard. Set fields match when the input value
    is one of the listed values; the *_min fields are ordinal "at least"
    thresholds; exclude_transaction_types vetoes the whole condition.
    """

    transaction_types: Optional[Tuple[str, ...]] = None
    product_types: Optional[Tuple[str, ...]] = None
    tech_archetypes: Optional[Tuple[str, ...]] = None
    growth_stages: Optional[Tuple[str, ...]] = None
    geographies: Optional[Tuple[str, ...]] = None
    headcount_min: Optional[str] = None
    revenue_min: Optional[str] = None
    company_age_min: Optional[str] = None
    exclude_transaction_types: Optional[Tuple[str, ...]] = None
    business_models: Optional[Tuple[str, ...]] = None
    scale_intensity: Optional[Tuple[str, ...]] = None
    transformation_states: Optional[Tuple[str, ...]] = None
    data_sensitivity: Optional[Tuple[str, ...]] = None
    operating_models: Optional[Tuple[str, ...]] = None

    def is_unconditional(self) -> bool:
        return not self.model_dump(exclude_none=True)


class DiligenceQuestion(_Frozen):
    id: str
    topic: Topic
    audience_level: str
    text: str
    rationale: str
    priority: Priority
    conditions: QuestionCondition = QuestionCondition()
    exit_impact: Optional[ExitImpact] = None
    lookout_signal: Optional[str] = None
    track: Optional[str] = None


class RiskAnchor(_Frozen):
    id: str
    title: str
    description: str
    severity: Severity
    conditions: QuestionCondition = QuestionCondition()


class TopicMeta(_Frozen):
    id: Topic
    label: str
    audience: str
    subtitle: str
    order: int


class WizardOption(_Frozen):
    id: str
    label: str
    description: Optional[str] = None


class WizardField(_Frozen):
    id: str
    label: str
    field: str
    options: Tuple[WizardOption, ...]

    def option_ids(self) -> Tuple[str, ...]:
        return tuple(o.id for o in self.options)


class WizardStep(_Frozen):
    id: str
    title: str
    nav_label: str
    subtitle: str
    input_type: InputType
    field: Optional[str] = None
    options: Tuple[WizardOption, ...] = ()
    fields: Tuple[WizardField, ...] = ()

    def option_ids(self) -> Tuple[str, ...]:
        return tuple(o.id for o in self.options)

    def input_fields(self) -> Tuple[str, ...]:
        """UserInputs attributes written by this step."""
        if self.input_type == InputType.COMPOUND:
            return tuple(f.field for f in self.fields)
        return (self.field,) if self.field else ()


class Catalog(_Frozen):
    topics: Tuple[TopicMeta, ...]
    questions: Tuple[DiligenceQuestion, ...]
    risk_anchors: Tuple[RiskAnchor, ...]
    steps: Tuple[WizardStep, ...]
    brackets: Dict[str, Tuple[str, ...]]

    def topic_meta(self, topic: Topic) -> TopicMeta:
        for t in self.topics:
            if t.id == topic:
                return t
        raise KeyError(f"Unknown topic: {topic}")

    def topic_order(self) -> Dict[Topic, int]:
        return {t.id: t.order for t in self.topics}
