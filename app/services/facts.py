"""Derived facts shared by every engine.

All helpers are pure and assume the newest-first ordering established by
``PatientRecord``: "latest" and "most recent" always mean the first element
of the list they are given.
"""

import re
from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime

from app.models.patient import Encounter, LabResult, Medication, Patient, Vitals

NO_ALLERGIES = "None known"

# Leading numeric prefix, the way JavaScript's parseFloat reads "9.2%" or " 28"
_NUMERIC_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat()


def patient_age(patient: Patient, today: date | None = None) -> int:
    """Year-only age: current year minus birth year, birthdays ignored."""
    today = today or date.today()
    return today.year - patient.date_of_birth.year


def age_and_gender(patient: Patient) -> str:
    """Demographic phrase such as "67-year-old male"; no gender word when none is recorded."""
    age = f"{patient_age(patient)}-year-old"
    gender = patient.gender.strip().lower()
    return f"{age} {gender}" if gender else age


def has_allergies(patient: Patient) -> bool:
    return bool(patient.allergies) and patient.allergies != NO_ALLERGIES


def parse_lab_value(value: str | None) -> float | None:
    """Tolerant numeric parse of a lab value; None when there is no leading number."""
    if value is None:
        return None
    match = _NUMERIC_PREFIX.match(str(value))
    if not match:
        return None
    return float(match.group(1))


def lab_above(lab: LabResult | None, threshold: float) -> bool:
    if lab is None:
        return False
    value = parse_lab_value(lab.value)
    return value is not None and value > threshold


def lab_below(lab: LabResult | None, threshold: float) -> bool:
    if lab is None:
        return False
    value = parse_lab_value(lab.value)
    return value is not None and value < threshold


def find_lab(labs: Iterable[LabResult], test_name: str) -> LabResult | None:
    """Most recent lab whose name is exactly ``test_name``."""
    return next((lab for lab in labs if lab.test_name == test_name), None)


def find_lab_containing(labs: Iterable[LabResult], fragment: str) -> LabResult | None:
    """Most recent lab whose name contains ``fragment`` (case-insensitive)."""
    fragment = fragment.lower()
    return next((lab for lab in labs if fragment in lab.test_name.lower()), None)


def active_medications(medications: Iterable[Medication]) -> list[Medication]:
    return [m for m in medications if m.status == "active"]


def medication_matches(name: str, keywords: Sequence[str]) -> bool:
    """Case-insensitive substring match of a medication name against any keyword."""
    lowered = name.lower()
    return any(k in lowered for k in keywords)


def any_medication_matches(medications: Iterable[Medication], keywords: Sequence[str]) -> bool:
    return any(medication_matches(m.name, keywords) for m in medications)


def critical_labs(labs: Iterable[LabResult]) -> list[LabResult]:
    return [lab for lab in labs if lab.status == "critical"]


def critical_or_high_labs(labs: Iterable[LabResult]) -> list[LabResult]:
    return [lab for lab in labs if lab.status in ("critical", "high")]


def emergency_encounters(encounters: Iterable[Encounter]) -> list[Encounter]:
    return [e for e in encounters if e.encounter_type == "Emergency"]


def inpatient_encounters(encounters: Iterable[Encounter]) -> list[Encounter]:
    return [e for e in encounters if e.encounter_type == "Inpatient"]


def recent_encounters(encounters: Sequence[Encounter], limit: int = 5) -> list[Encounter]:
    return list(encounters[:limit])


def latest_vitals(vitals: Sequence[Vitals]) -> Vitals | None:
    return vitals[0] if vitals else None


def above(value: float | None, threshold: float) -> bool:
    """Threshold check that never fires on a missing reading."""
    return value is not None and value > threshold


def below(value: float | None, threshold: float) -> bool:
    return value is not None and value < threshold


def display(value) -> str:
    """Render a reading for prose: whole floats lose their ".0", missing reads "N/A"."""
    if value is None:
        return "N/A"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
