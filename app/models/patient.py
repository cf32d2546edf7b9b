from datetime import date

from pydantic import BaseModel, model_validator


class Patient(BaseModel):
    id: str = ""
    mrn: str = ""
    first_name: str = ""
    last_name: str = ""
    date_of_birth: date
    gender: str = ""
    blood_type: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    emergency_contact: str | None = None
    emergency_phone: str | None = None
    insurance_provider: str | None = None
    insurance_id: str | None = None
    primary_diagnosis: str = ""
    allergies: str | None = None  # free text, or "None known"
    risk_level: str = "low"  # "low", "medium", "high", "critical"
    status: str = "active"


class Encounter(BaseModel):
    id: str = ""
    patient_id: str = ""
    encounter_type: str = ""  # "Emergency", "Inpatient", "Outpatient"
    date: str = ""
    chief_complaint: str = ""
    diagnosis: str = ""
    notes: str = ""
    disposition: str = ""
    provider: str = ""
    department: str = ""


class LabResult(BaseModel):
    id: str = ""
    patient_id: str = ""
    test_name: str = ""
    value: str = ""
    unit: str = ""
    reference_range: str = ""
    status: str = "normal"  # "normal", "low", "high", "critical"
    date: str = ""
    ordered_by: str = ""


class Medication(BaseModel):
    id: str = ""
    patient_id: str = ""
    name: str = ""
    dosage: str = ""
    frequency: str = ""
    route: str = ""
    start_date: str | None = None
    end_date: str | None = None
    status: str = "active"
    prescriber: str = ""
    notes: str = ""


class Vitals(BaseModel):
    id: str = ""
    patient_id: str = ""
    date: str = ""
    heart_rate: int | None = None
    systolic_bp: int | None = None
    diastolic_bp: int | None = None
    temperature: float | None = None  # Fahrenheit
    respiratory_rate: int | None = None
    oxygen_saturation: float | None = None  # percent
    weight: float | None = None


class PatientRecord(BaseModel):
    """One patient's snapshot, as consumed by every engine.

    Encounters, labs and vitals are re-ordered newest first on validation
    (stable, so same-day entries keep the order they were supplied in).
    The engines take the first element of each list as the most recent.
    Medications keep their supplied order.
    """

    patient: Patient
    encounters: list[Encounter] = []
    labs: list[LabResult] = []
    medications: list[Medication] = []
    vitals: list[Vitals] = []

    @model_validator(mode="after")
    def _newest_first(self) -> "PatientRecord":
        self.encounters = sorted(self.encounters, key=lambda e: e.date, reverse=True)
        self.labs = sorted(self.labs, key=lambda lab: lab.date, reverse=True)
        self.vitals = sorted(self.vitals, key=lambda v: v.date, reverse=True)
        return self
