from datetime import datetime
from typing import List

from pydantic import BaseModel

from diligencemachine.models.catalog import DiligenceQuestion, RiskAnchor, TopicMeta
from diligencemachine.models.inputs import UserInputs

class NumberedQuestion(BaseModel):
    number: str  # "<topic index>.<position in topic>"
    question: DiligenceQuestion

class TopicSection(BaseModel):
    topic: TopicMeta
    questions: List[NumberedQuestion]

class DiligenceDocument(BaseModel):
    questions_by_topic: List[TopicSection]
    attention_areas: List[RiskAnchor]
    total_questions: int
    matched_questions: int
    generated_at: datetime
    inputs: UserInputs

    def question_ids(self) -> List[str]:
        return [nq.question.id for s in self.questions_by_topic for nq in s.questions]
