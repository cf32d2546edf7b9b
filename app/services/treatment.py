import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from app.models.insights import TreatmentPlan, TreatmentSuggestion
from app.models.patient import Encounter, LabResult, Medication, Patient
from app.services import facts

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}
PREVENTIVE_CARE_MIN_AGE = 50


@dataclass(frozen=True)
class GuidelineRule:
    """Diagnosis keywords plus a builder; the builder may still decline (None)."""

    keywords: tuple[str, ...]
    build: Callable[[Sequence[LabResult]], TreatmentSuggestion | None]


def _glycemic_management(labs: Sequence[LabResult]) -> TreatmentSuggestion | None:
    hba1c = facts.find_lab(labs, "HbA1c")
    if not facts.lab_above(hba1c, 8):
        return None
    return TreatmentSuggestion(
        category="Glycemic Management",
        recommendation="Intensify diabetes management due to HbA1c > 8%",
        details=(
            f"Current HbA1c: {hba1c.value}%. Target: < 7% (individualized). "
            "Consider adding/optimizing GLP-1 RA or SGLT2 inhibitor."
        ),
        confidence=0.92,
        evidence="ADA Standards of Medical Care in Diabetes — 2025",
        priority="high",
        actions=[
            "Review current insulin regimen",
            "Consider GLP-1 RA if not on one",
            "Endocrinology referral if HbA1c > 9%",
            "Continuous glucose monitoring evaluation",
        ],
    )


def _renal_protection(labs: Sequence[LabResult]) -> TreatmentSuggestion:
    egfr = facts.find_lab(labs, "eGFR")
    prefix = f"eGFR: {egfr.value} mL/min. " if egfr else ""
    return TreatmentSuggestion(
        category="Renal Protection",
        recommendation="Optimize renoprotective therapy",
        details=f"{prefix}Consider SGLT2 inhibitor for renal protection. Avoid nephrotoxic agents.",
        confidence=0.88,
        evidence="KDIGO CKD Guidelines 2024; CREDENCE Trial",
        priority="high",
        actions=[
            "Add SGLT2 inhibitor (dapagliflozin/empagliflozin)",
            "Nephrology follow-up in 4 weeks",
            "Dietary protein restriction counseling",
            "Dialysis access planning if eGFR < 20",
        ],
    )


def _heart_failure_gdmt(labs: Sequence[LabResult]) -> TreatmentSuggestion:
    return TreatmentSuggestion(
        category="Heart Failure Management",
        recommendation="Ensure guideline-directed medical therapy (GDMT)",
        details="Verify patient is on all four pillars: ACEi/ARB/ARNI, beta-blocker, MRA, and SGLT2i.",
        confidence=0.91,
        evidence="AHA/ACC/HFSA Heart Failure Guidelines 2023",
        priority="high",
        actions=[
            "Confirm ARNI titration to target dose",
            "Add SGLT2 inhibitor if not present",
            "Cardiac rehab referral",
            "Remote monitoring enrollment",
        ],
    )


def _copd_step_up(labs: Sequence[LabResult]) -> TreatmentSuggestion:
    return TreatmentSuggestion(
        category="COPD Management",
        recommendation="Step-up therapy for frequent exacerbations",
        details="Consider adding PDE4 inhibitor or long-term azithromycin for exacerbation prevention.",
        confidence=0.85,
        evidence="GOLD 2025 COPD Guidelines",
        priority="medium",
        actions=[
            "Pulmonary rehabilitation",
            "Annual influenza and pneumococcal vaccination",
            "Home oxygen assessment",
            "Smoking cessation review",
        ],
    )


def _sle_management(labs: Sequence[LabResult]) -> TreatmentSuggestion:
    return TreatmentSuggestion(
        category="SLE Management",
        recommendation="Monitor for renal involvement progression",
        details=(
            "Continue immunosuppression. Monitor proteinuria and complement levels. "
            "Consider belimumab if recurrent flares."
        ),
        confidence=0.84,
        evidence="EULAR/ERA-EDTA Lupus Nephritis Guidelines 2024",
        priority="high",
        actions=[
            "Monthly urine protein monitoring",
            "Quarterly complement levels",
            "Ophthalmology screening for HCQ",
            "Bone density screening on steroids",
        ],
    )


def _liver_disease(labs: Sequence[LabResult]) -> TreatmentSuggestion:
    return TreatmentSuggestion(
        category="Liver Disease Management",
        recommendation="Variceal surveillance and transplant evaluation",
        details="Continue non-selective beta-blocker. Regular EGD screening. Avoid hepatotoxic drugs.",
        confidence=0.89,
        evidence="AASLD Practice Guidelines for Cirrhosis 2024",
        priority="critical",
        actions=[
            "Liver transplant evaluation (MELD-based)",
            "EGD every 6 months for varices",
            "HCC screening with US + AFP every 6 months",
            "Avoid all NSAIDs and acetaminophen > 2g/day",
        ],
    )


def _preventive_care() -> TreatmentSuggestion:
    return TreatmentSuggestion(
        category="Preventive Care",
        recommendation="Age-appropriate screening",
        details=(
            "Ensure up-to-date cancer screening, cardiovascular risk assessment, "
            "and vaccination schedule."
        ),
        confidence=0.95,
        evidence="USPSTF Screening Recommendations 2025",
        priority="low",
        actions=[
            "Colorectal cancer screening",
            "Lipid panel if not recent",
            "Flu + COVID + pneumonia vaccines",
            "Fall risk assessment if > 65",
        ],
    )


GUIDELINES: tuple[GuidelineRule, ...] = (
    GuidelineRule(keywords=("diabetes",), build=_glycemic_management),
    GuidelineRule(keywords=("kidney", "ckd"), build=_renal_protection),
    GuidelineRule(keywords=("heart failure", "hf"), build=_heart_failure_gdmt),
    GuidelineRule(keywords=("copd",), build=_copd_step_up),
    GuidelineRule(keywords=("lupus", "sle"), build=_sle_management),
    GuidelineRule(keywords=("cirrhosis", "liver"), build=_liver_disease),
)


def sort_by_priority(suggestions: list[TreatmentSuggestion]) -> list[TreatmentSuggestion]:
    return sorted(suggestions, key=lambda s: PRIORITY_ORDER.get(s.priority, len(PRIORITY_ORDER)))


def suggest_treatments(
    patient: Patient,
    encounters: Sequence[Encounter],
    labs: Sequence[LabResult],
    medications: Sequence[Medication],
) -> TreatmentPlan:
    diagnosis = patient.primary_diagnosis.lower()
    suggestions: list[TreatmentSuggestion] = []

    for rule in GUIDELINES:
        if not any(k in diagnosis for k in rule.keywords):
            continue
        suggestion = rule.build(labs)
        if suggestion is not None:
            suggestions.append(suggestion)

    if facts.patient_age(patient) >= PREVENTIVE_CARE_MIN_AGE:
        suggestions.append(_preventive_care())

    suggestions = sort_by_priority(suggestions)
    logger.debug("Treatment plan for patient %s: %d suggestion(s)", patient.id, len(suggestions))

    return TreatmentPlan(
        suggestions=suggestions,
        total_suggestions=len(suggestions),
        generated_at=facts.utc_timestamp(),
    )
