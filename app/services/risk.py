"""Additive point scoring for sepsis, readmission, ICU and length of stay.

Every score starts from a base, adds fixed increments for each threshold
that fires and is capped. Missing vitals never fire a threshold.
"""

import logging
from collections.abc import Sequence

from app.models.insights import LengthOfStay, RiskFactor, RiskPrediction, RiskScore
from app.models.patient import Encounter, LabResult, Patient, Vitals
from app.services import facts

logger = logging.getLogger(__name__)

SEPSIS_BASE, SEPSIS_CAP = 10, 98
READMISSION_BASE, READMISSION_CAP = 15, 95
ICU_BASE, ICU_CAP = 5, 95
LOS_BASE_DAYS = 3

SEPSIS_RECOMMENDATIONS = (
    "Immediate sepsis workup recommended. Consider blood cultures, lactate, "
    "and broad-spectrum antibiotics.",
    "Continue monitoring. No immediate sepsis concern.",
)
READMISSION_RECOMMENDATIONS = (
    "High readmission risk. Ensure comprehensive discharge planning, follow-up "
    "within 7 days, and medication reconciliation.",
    "Standard discharge planning appropriate.",
)
ICU_RECOMMENDATIONS = (
    "Consider ICU-level monitoring. Alert rapid response team.",
    "Floor-level care appropriate.",
)


def risk_level(score: int) -> str:
    if score >= 70:
        return "critical"
    if score >= 50:
        return "high"
    if score >= 30:
        return "medium"
    return "low"


def has_infection_marker(labs: Sequence[LabResult]) -> bool:
    """WBC above 12, or any Lactate or Procalcitonin result on file."""
    return any(
        (lab.test_name == "WBC" and facts.lab_above(lab, 12))
        or lab.test_name in ("Lactate", "Procalcitonin")
        for lab in labs
    )


def _clamp(score: int, cap: int) -> int:
    return max(0, min(score, cap))


def sepsis_score(v: Vitals, infection_marker: bool, age: int) -> int:
    score = SEPSIS_BASE
    if facts.above(v.heart_rate, 90):
        score += 15
    if facts.above(v.heart_rate, 110):
        score += 20
    if facts.above(v.temperature, 100.4) or facts.below(v.temperature, 96.8):
        score += 20
    if facts.above(v.respiratory_rate, 20):
        score += 15
    if facts.below(v.systolic_bp, 100):
        score += 20
    if facts.below(v.oxygen_saturation, 92):
        score += 15
    if infection_marker:
        score += 20
    if age > 65:
        score += 10
    return _clamp(score, SEPSIS_CAP)


def readmission_score(
    patient: Patient,
    er_visit_count: int,
    critical_lab_count: int,
    lab_count: int,
    age: int,
) -> int:
    score = READMISSION_BASE + 12 * er_visit_count
    if age > 65:
        score += 10
    if critical_lab_count > 2:
        score += 15
    # Stands in for the active-medication count; kept as the lab count on purpose
    if lab_count > 5:
        score += 10
    if patient.risk_level == "high":
        score += 15
    elif patient.risk_level == "critical":
        score += 25
    return _clamp(score, READMISSION_CAP)


def icu_score(patient: Patient, v: Vitals, sepsis: int, critical_lab_count: int) -> int:
    score = ICU_BASE
    if sepsis > 50:
        score += 25
    if facts.below(v.oxygen_saturation, 90):
        score += 30
    if facts.below(v.systolic_bp, 90):
        score += 25
    if critical_lab_count > 3:
        score += 15
    if patient.risk_level == "critical":
        score += 20
    return _clamp(score, ICU_CAP)


def length_of_stay(sepsis: int, readmission: int, age: int) -> LengthOfStay:
    days = LOS_BASE_DAYS
    if sepsis > 60:
        days += 4
    if readmission > 50:
        days += 2
    if age > 75:
        days += 2
    low, high = max(1, days - 2), days + 3
    return LengthOfStay(estimated_days=days, low=low, high=high, range=f"{low}-{high} days")


def sepsis_factors(v: Vitals, infection_marker: bool, age: int) -> list[RiskFactor]:
    factors = []
    if facts.above(v.heart_rate, 100):
        factors.append(RiskFactor(factor="Tachycardia", detail=f"HR {v.heart_rate} bpm", impact="high"))
    if facts.above(v.temperature, 100.4):
        factors.append(RiskFactor(
            factor="Fever", detail=f"Temp {facts.display(v.temperature)}°F", impact="high",
        ))
    if facts.below(v.systolic_bp, 100):
        factors.append(RiskFactor(
            factor="Hypotension",
            detail=f"BP {v.systolic_bp}/{facts.display(v.diastolic_bp)}",
            impact="critical",
        ))
    if infection_marker:
        factors.append(RiskFactor(
            factor="Infection markers elevated",
            detail="WBC/Lactate/Procalcitonin abnormal",
            impact="high",
        ))
    if facts.below(v.oxygen_saturation, 92):
        factors.append(RiskFactor(
            factor="Hypoxemia", detail=f"SpO2 {facts.display(v.oxygen_saturation)}%", impact="high",
        ))
    if age > 65:
        factors.append(RiskFactor(factor="Advanced age", detail=f"{age} years old", impact="medium"))
    return factors


def readmission_factors(
    patient: Patient, er_visit_count: int, critical_lab_count: int,
) -> list[RiskFactor]:
    factors = []
    if er_visit_count > 1:
        factors.append(RiskFactor(
            factor="Frequent ER visits", detail=f"{er_visit_count} visits", impact="high",
        ))
    if critical_lab_count > 0:
        factors.append(RiskFactor(
            factor="Critical lab values",
            detail=f"{critical_lab_count} critical results",
            impact="high",
        ))
    if patient.risk_level in ("high", "critical"):
        factors.append(RiskFactor(
            factor="High-risk classification", detail=patient.primary_diagnosis, impact="high",
        ))
    return factors


def predict_risks(
    patient: Patient,
    encounters: Sequence[Encounter],
    labs: Sequence[LabResult],
    vitals: Sequence[Vitals],
) -> RiskPrediction:
    age = facts.patient_age(patient)
    latest = facts.latest_vitals(vitals) or Vitals()
    critical_count = len(facts.critical_labs(labs))
    er_count = len(facts.emergency_encounters(encounters))
    infection_marker = has_infection_marker(labs)

    sepsis = sepsis_score(latest, infection_marker, age)
    readmission = readmission_score(patient, er_count, critical_count, len(labs), age)
    icu = icu_score(patient, latest, sepsis, critical_count)
    acuity = risk_level(max(sepsis, readmission, icu))

    logger.debug(
        "Risk scores for patient %s: sepsis=%d readmission=%d icu=%d acuity=%s",
        patient.id, sepsis, readmission, icu, acuity,
    )

    return RiskPrediction(
        sepsis=RiskScore(
            score=sepsis,
            level=risk_level(sepsis),
            label="Sepsis Risk",
            factors=sepsis_factors(latest, infection_marker, age),
            recommendation=SEPSIS_RECOMMENDATIONS[0 if sepsis > 50 else 1],
        ),
        readmission=RiskScore(
            score=readmission,
            level=risk_level(readmission),
            label="30-Day Readmission",
            factors=readmission_factors(patient, er_count, critical_count),
            recommendation=READMISSION_RECOMMENDATIONS[0 if readmission > 50 else 1],
        ),
        icu=RiskScore(
            score=icu,
            level=risk_level(icu),
            label="ICU Probability",
            factors=[],
            recommendation=ICU_RECOMMENDATIONS[0 if icu > 40 else 1],
        ),
        length_of_stay=length_of_stay(sepsis, readmission, age),
        overall_acuity=acuity,
        generated_at=facts.utc_timestamp(),
    )
