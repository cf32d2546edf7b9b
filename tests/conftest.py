import os
from datetime import date

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

# Unseeded jitter and default limits for tests
os.environ["SUMMARY_RANDOM_SEED"] = ""
os.environ["MAX_QUESTION_LENGTH"] = "2000"
os.environ["LOG_LEVEL"] = "WARNING"

from app.main import app
from app.models.patient import PatientRecord


def born_years_ago(years: int, month: int = 6, day: int = 15) -> str:
    """Birth date that gives ``years`` under year-only age arithmetic."""
    return date(date.today().year - years, month, day).isoformat()


class FixedRandom:
    """Stands in for ``random`` so the summary confidence is exact."""

    def __init__(self, value: float = 0.5):
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def fixed_rng() -> FixedRandom:
    return FixedRandom(0.5)


def _encounter(date_: str, kind: str, complaint: str, diagnosis: str, notes: str = "") -> dict:
    return {
        "encounter_type": kind,
        "date": date_,
        "chief_complaint": complaint,
        "diagnosis": diagnosis,
        "notes": notes,
    }


def _lab(name: str, value: str, unit: str, ref: str, status: str, date_: str) -> dict:
    return {
        "test_name": name,
        "value": value,
        "unit": unit,
        "reference_range": ref,
        "status": status,
        "date": date_,
    }


def _med(name: str, dosage: str, frequency: str, status: str = "active") -> dict:
    return {"name": name, "dosage": dosage, "frequency": frequency, "status": status}


def _vitals(date_: str, hr, sbp, dbp, temp, rr, spo2, weight) -> dict:
    return {
        "date": date_,
        "heart_rate": hr,
        "systolic_bp": sbp,
        "diastolic_bp": dbp,
        "temperature": temp,
        "respiratory_rate": rr,
        "oxygen_saturation": spo2,
        "weight": weight,
    }


@pytest.fixture
def morrison() -> PatientRecord:
    """67-year-old with T2DM and CKD: metformin on a failing kidney."""
    return PatientRecord.model_validate({
        "patient": {
            "id": "pt-001",
            "mrn": "MRN-2024-001",
            "first_name": "James",
            "last_name": "Morrison",
            "date_of_birth": born_years_ago(67, 3, 15),
            "gender": "Male",
            "blood_type": "A+",
            "primary_diagnosis": "Type 2 Diabetes Mellitus with chronic kidney disease",
            "allergies": "Penicillin, Sulfa drugs",
            "risk_level": "high",
        },
        "encounters": [
            _encounter("2025-12-15", "Emergency", "Hypoglycemic episode with confusion",
                       "Severe hypoglycemia secondary to insulin overdose",
                       "BG 38 mg/dL. D50 administered IV."),
            _encounter("2025-11-20", "Outpatient", "Routine CKD follow-up",
                       "CKD Stage 3b, progression noted"),
            _encounter("2025-10-05", "Emergency", "Chest pain and shortness of breath",
                       "Acute heart failure exacerbation"),
            _encounter("2025-08-12", "Inpatient", "Diabetic foot ulcer infection",
                       "Infected diabetic foot ulcer, left great toe"),
            _encounter("2025-06-01", "Outpatient", "Annual diabetes review",
                       "Uncontrolled T2DM, HbA1c 9.2%"),
        ],
        "labs": [
            _lab("HbA1c", "9.2", "%", "4.0-5.6", "critical", "2025-12-15"),
            _lab("Creatinine", "2.8", "mg/dL", "0.7-1.3", "high", "2025-12-15"),
            _lab("eGFR", "28", "mL/min", ">60", "critical", "2025-12-15"),
            _lab("BUN", "42", "mg/dL", "7-20", "high", "2025-12-15"),
            _lab("Potassium", "5.4", "mEq/L", "3.5-5.0", "high", "2025-12-15"),
            _lab("BNP", "1250", "pg/mL", "<100", "critical", "2025-10-05"),
            _lab("Glucose (fasting)", "210", "mg/dL", "70-100", "high", "2025-12-15"),
            _lab("Hemoglobin", "10.2", "g/dL", "13.5-17.5", "low", "2025-12-15"),
        ],
        "medications": [
            _med("Metformin", "1000mg", "Twice daily"),
            _med("Insulin Glargine", "32 units", "Once daily at bedtime"),
            _med("Lisinopril", "20mg", "Once daily"),
            _med("Furosemide", "40mg", "Once daily"),
            _med("Semaglutide", "0.5mg", "Once weekly"),
            _med("Atorvastatin", "40mg", "Once daily"),
        ],
        "vitals": [
            _vitals("2025-12-15", 92, 158, 94, 98.6, 18, 96, 220),
            _vitals("2025-11-20", 88, 152, 90, 98.4, 16, 97, 218),
            _vitals("2025-10-05", 110, 168, 100, 98.8, 24, 92, 225),
            _vitals("2025-08-12", 96, 145, 88, 101.2, 20, 95, 222),
            _vitals("2025-06-01", 82, 142, 86, 98.6, 16, 97, 215),
        ],
    })


@pytest.fixture
def chen() -> PatientRecord:
    """78-year-old COPD patient admitted septic from pneumonia."""
    return PatientRecord.model_validate({
        "patient": {
            "id": "pt-003",
            "mrn": "MRN-2024-003",
            "first_name": "Robert",
            "last_name": "Chen",
            "date_of_birth": born_years_ago(78, 11, 3),
            "gender": "Male",
            "primary_diagnosis": "COPD with recurrent pneumonia, post-CABG",
            "allergies": "Codeine, Latex",
            "risk_level": "critical",
        },
        "encounters": [
            _encounter("2025-12-20", "Emergency", "Acute shortness of breath and fever",
                       "Community-acquired pneumonia with COPD exacerbation"),
            _encounter("2025-12-20", "Inpatient", "Respiratory failure",
                       "Acute respiratory failure, sepsis"),
            _encounter("2025-10-01", "Outpatient", "COPD management", "COPD GOLD Stage III"),
            _encounter("2025-06-15", "Outpatient", "Post-CABG follow-up",
                       "Stable post-CABG, mild aortic stenosis"),
        ],
        "labs": [
            _lab("WBC", "18.5", "K/uL", "4.5-11.0", "critical", "2025-12-20"),
            _lab("Lactate", "4.8", "mmol/L", "0.5-2.0", "critical", "2025-12-20"),
            _lab("Procalcitonin", "8.2", "ng/mL", "<0.1", "critical", "2025-12-20"),
            _lab("CRP", "185", "mg/L", "<10", "critical", "2025-12-20"),
            _lab("SpO2", "84", "%", "95-100", "critical", "2025-12-20"),
            _lab("Blood Culture", "S. pneumoniae", "", "No growth", "critical", "2025-12-21"),
        ],
        "medications": [
            _med("Tiotropium", "18mcg", "Once daily"),
            _med("Budesonide-Formoterol", "160/4.5mcg", "Twice daily"),
            _med("Roflumilast", "500mcg", "Once daily"),
            _med("Ceftriaxone", "2g", "Once daily"),
            _med("Aspirin", "81mg", "Once daily"),
        ],
        "vitals": [
            _vitals("2025-12-20", 118, 90, 55, 103.2, 32, 84, 155),
            _vitals("2025-12-21", 105, 95, 60, 101.8, 28, 88, 155),
            _vitals("2025-10-01", 85, 135, 82, 98.6, 20, 92, 158),
            _vitals("2025-06-15", 78, 130, 78, 98.4, 18, 94, 160),
        ],
    })


@pytest.fixture
def nakamura() -> PatientRecord:
    """44-year-old with well-controlled asthma; nothing should fire."""
    return PatientRecord.model_validate({
        "patient": {
            "id": "pt-006",
            "mrn": "MRN-2024-006",
            "first_name": "Emily",
            "last_name": "Nakamura",
            "date_of_birth": born_years_ago(44, 12, 1),
            "gender": "Female",
            "primary_diagnosis": "Asthma (moderate persistent) with anxiety disorder",
            "allergies": "Erythromycin",
            "risk_level": "low",
        },
        "encounters": [
            _encounter("2025-11-30", "Outpatient", "Asthma control assessment",
                       "Moderate persistent asthma, well-controlled"),
            _encounter("2025-07-20", "Emergency", "Acute asthma exacerbation",
                       "Severe asthma exacerbation"),
        ],
        "labs": [
            _lab("IgE (Total)", "280", "IU/mL", "<100", "high", "2025-11-30"),
            _lab("Eosinophils", "6.2", "%", "1-4", "high", "2025-11-30"),
            _lab("CBC", "WNL", "", "Normal", "normal", "2025-11-30"),
        ],
        "medications": [
            _med("Fluticasone-Salmeterol", "250/50mcg", "Twice daily"),
            _med("Albuterol", "90mcg", "As needed"),
            _med("Sertraline", "100mg", "Once daily"),
            _med("Montelukast", "10mg", "Once daily", status="discontinued"),
        ],
        "vitals": [
            _vitals("2025-11-30", 72, 115, 72, 98.4, 14, 99, 132),
            _vitals("2025-07-20", 102, 128, 80, 98.6, 26, 91, 130),
        ],
    })


@pytest.fixture
def bare() -> PatientRecord:
    """A 40-year-old with no clinical data at all."""
    return PatientRecord.model_validate({
        "patient": {
            "id": "pt-bare",
            "first_name": "Alex",
            "last_name": "Doe",
            "date_of_birth": born_years_ago(40),
            "gender": "Female",
            "primary_diagnosis": "Seasonal allergic rhinitis",
            "allergies": "None known",
        },
    })


@pytest.fixture
def client():
    """Provide a synchronous TestClient for HTTP endpoint tests."""
    return TestClient(app)


@pytest_asyncio.fixture
async def async_client():
    """Provide an async httpx client for async HTTP tests."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
