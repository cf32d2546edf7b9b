import logging

from fastapi import APIRouter, HTTPException

from app.models.insights import (
    ChatReply,
    ChatRequest,
    ClinicalSummary,
    MedicationCheck,
    RiskPrediction,
    TreatmentPlan,
)
from app.models.patient import PatientRecord
from app.services.chat import chat_response
from app.services.facts import utc_timestamp
from app.services.medication_safety import check_medications
from app.services.risk import predict_risks
from app.services.summary import generate_summary
from app.services.treatment import suggest_treatments

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.post("/summarize", response_model=ClinicalSummary)
async def summarize(record: PatientRecord):
    """Narrative summary of the supplied chart snapshot.

    ``confidence`` carries a small random jitter, so two identical
    requests differ in that field (and in ``generated_at``) only.
    """
    try:
        return generate_summary(
            record.patient, record.encounters, record.labs, record.medications, record.vitals,
        )
    except Exception as e:
        logger.error("Summary generation failed for patient %s: %s", record.patient.id, e)
        raise HTTPException(status_code=500, detail="Failed to generate summary") from None


@router.post("/risks", response_model=RiskPrediction)
async def risks(record: PatientRecord):
    """Sepsis, readmission, ICU and length-of-stay estimates."""
    try:
        return predict_risks(record.patient, record.encounters, record.labs, record.vitals)
    except Exception as e:
        logger.error("Risk prediction failed for patient %s: %s", record.patient.id, e)
        raise HTTPException(status_code=500, detail="Failed to predict risks") from None


@router.post("/medications", response_model=MedicationCheck)
async def medications(record: PatientRecord):
    """Severity-sorted medication safety warnings."""
    try:
        return check_medications(record.patient, record.medications, record.labs)
    except Exception as e:
        logger.error("Medication check failed for patient %s: %s", record.patient.id, e)
        raise HTTPException(status_code=500, detail="Failed to check medications") from None


@router.post("/treatment", response_model=TreatmentPlan)
async def treatment(record: PatientRecord):
    """Guideline-based treatment suggestions, most urgent first."""
    try:
        return suggest_treatments(
            record.patient, record.encounters, record.labs, record.medications,
        )
    except Exception as e:
        logger.error("Treatment suggestion failed for patient %s: %s", record.patient.id, e)
        raise HTTPException(status_code=500, detail="Failed to suggest treatments") from None


@router.post("/chat", response_model=ChatReply)
async def chat(payload: ChatRequest):
    """Answer a free-text question about the chart."""
    record = payload.record
    try:
        response = chat_response(
            payload.question,
            record.patient,
            record.encounters,
            record.labs,
            record.medications,
            record.vitals,
        )
    except Exception as e:
        logger.error("Chat failed for patient %s: %s", record.patient.id, e)
        raise HTTPException(status_code=500, detail="Failed to process chat") from None
    return ChatReply(response=response, patient_id=record.patient.id, generated_at=utc_timestamp())
