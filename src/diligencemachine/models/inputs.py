from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from diligencemachine.models.types import WizardPhase

SCHEMA_VERSION = 2

class UserInputs(BaseModel):
    transaction_type: Optional[str] = None
    product_type: Optional[str] = None
    tech_archetype: Optional[str] = None
    headcount: Optional[str] = None
    revenue_range: Optional[str] = None
    growth_stage: Optional[str] = None
    company_age: Optional[str] = None
    geographies: List[str] = []
    business_model: Optional[str] = None
    scale_intensity: Optional[str] = None
    transformation_state: Optional[str] = None
    data_sensitivity: Optional[str] = None
    operating_model: Optional[str] = None

    @field_validator("geographies")
    @classmethod
    def _dedupe_geographies(cls, v: List[str]) -> List[str]:
        out: List[str] = []
        for g in v:
            if g not in out:
                out.append(g)
        return out

class WizardState(BaseModel):
    version: int = SCHEMA_VERSION
    current_step: int = 1
    highest_step_reached: int = 1
    phase: WizardPhase = WizardPhase.WIZARD
    inputs: UserInputs = Field(default_factory=UserInputs)
