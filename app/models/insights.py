from pydantic import BaseModel, Field

from app.config import MAX_QUESTION_LENGTH
from app.models.patient import PatientRecord


class ClinicalSummary(BaseModel):
    """Narrative chart summary plus bookkeeping counts."""

    summary: str
    confidence: float = Field(ge=0.0, le=1.0)
    generated_at: str
    key_findings: int
    data_points_analyzed: int
    generated_by: str = ""


class RiskFactor(BaseModel):
    factor: str
    detail: str
    impact: str  # "medium", "high", "critical"


class RiskScore(BaseModel):
    score: int = Field(ge=0, le=100)
    level: str  # "low", "medium", "high", "critical"
    label: str
    factors: list[RiskFactor] = []
    recommendation: str


class LengthOfStay(BaseModel):
    estimated_days: int
    low: int
    high: int
    range: str  # e.g. "1-6 days"


class RiskPrediction(BaseModel):
    sepsis: RiskScore
    readmission: RiskScore
    icu: RiskScore
    length_of_stay: LengthOfStay
    overall_acuity: str
    generated_at: str


class MedicationWarning(BaseModel):
    severity: str  # "critical", "high", "medium", "low"
    type: str  # "contraindication", "interaction", "monitoring", "dose_adjustment", "allergy"
    medication: str
    message: str
    recommendation: str
    evidence: str


class MedicationCheck(BaseModel):
    warnings: list[MedicationWarning] = []
    total_medications: int
    warnings_count: int
    critical_count: int
    generated_at: str


class TreatmentSuggestion(BaseModel):
    category: str
    recommendation: str
    details: str
    confidence: float = Field(ge=0.0, le=1.0)
    evidence: str
    priority: str  # "critical", "high", "medium", "low"
    actions: list[str] = []


class TreatmentPlan(BaseModel):
    suggestions: list[TreatmentSuggestion] = []
    total_suggestions: int
    generated_at: str


class ChatRequest(BaseModel):
    record: PatientRecord
    question: str = Field(min_length=1, max_length=MAX_QUESTION_LENGTH)


class ChatReply(BaseModel):
    response: str
    patient_id: str
    generated_at: str
