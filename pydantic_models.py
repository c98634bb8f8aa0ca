from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Literal, Optional, Tuple

Severity = Literal["low", "moderate", "high"]
Urgency = Literal["routine", "soon", "urgent", "emergency"]


class AlternativeDiagnosis(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    disease: str = Field(min_length=1)
    confidence: int = Field(ge=0, le=100, strict=True)


class DiagnosisRecord(BaseModel):
    """Structured prediction returned by every strategy and by the HTTP API.

    Sequences are tuples so records shared from the built-in tables stay immutable.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    disease: str = Field(min_length=1)
    confidence: int = Field(ge=0, le=100, strict=True)
    severity: Severity
    description: str
    tips: Tuple[str, ...] = Field(min_length=1)
    specialist: str = Field(min_length=1)
    alternative_diagnoses: Tuple[AlternativeDiagnosis, ...] = ()
    urgency: Optional[Urgency] = None
    when_to_see_doctor: Optional[str] = None

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


class PredictRequest(BaseModel):
    symptoms: List[str] = Field(min_length=1)

    @field_validator("symptoms")
    @classmethod
    def no_blank_labels(cls, symptoms: List[str]) -> List[str]:
        # labels are matched exactly, so they are checked but never rewritten
        if any(not label.strip() for label in symptoms):
            raise ValueError("symptom labels must not be blank")
        return symptoms


class ErrorResponse(BaseModel):
    error: str
