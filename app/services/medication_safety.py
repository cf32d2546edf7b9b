"""Medication safety checks over the active medication list.

Per-drug lab rules live in ``LAB_RULES`` and the co-prescription rules in
``INTERACTION_RULES``; both are evaluated in table order. Lab values go
through the tolerant numeric parse, so a non-numeric result never fires.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from app.models.insights import MedicationCheck, MedicationWarning
from app.models.patient import LabResult, Medication, Patient
from app.services import facts

logger = logging.getLogger(__name__)

SEVERITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}


@dataclass(frozen=True)
class LabRule:
    """Fires when an active drug matches ``keywords`` and its lab check passes."""

    keywords: tuple[str, ...]
    find_lab: Callable[[Sequence[LabResult]], LabResult | None]
    fires: Callable[[LabResult | None], bool]
    build: Callable[[Medication, LabResult], MedicationWarning]


@dataclass(frozen=True)
class InteractionRule:
    """Fires once per call when the active set holds a drug from every group."""

    groups: tuple[tuple[str, ...], ...]
    build: Callable[[Sequence[LabResult]], MedicationWarning]


def _metformin_renal(med: Medication, egfr: LabResult) -> MedicationWarning:
    return MedicationWarning(
        severity="critical",
        type="contraindication",
        medication=med.name,
        message=(
            f"CONTRAINDICATED: {med.name} with eGFR {egfr.value} mL/min (< 30). "
            "High risk of lactic acidosis. Discontinue immediately."
        ),
        recommendation="Switch to insulin or DPP-4 inhibitor adjusted for renal function.",
        evidence="FDA Black Box Warning; KDIGO Guidelines 2024",
    )


def _nsaid_renal(med: Medication, creatinine: LabResult) -> MedicationWarning:
    return MedicationWarning(
        severity="high",
        type="contraindication",
        medication=med.name,
        message=(
            f"AVOID: {med.name} with elevated creatinine ({creatinine.value} mg/dL). "
            "Risk of acute kidney injury."
        ),
        recommendation="Use acetaminophen for pain management.",
        evidence="AKI Prevention Guidelines",
    )


def _insulin_hyperglycemia(med: Medication, glucose: LabResult) -> MedicationWarning:
    return MedicationWarning(
        severity="medium",
        type="dose_adjustment",
        medication=med.name,
        message=(
            f"Glucose remains elevated ({glucose.value} mg/dL) despite {med.name} "
            f"{med.dosage}. Consider dose adjustment."
        ),
        recommendation="Review insulin regimen. Consider endocrinology consultation.",
        evidence="ADA Standards of Care 2025",
    )


def _raas_hyperkalemia(med: Medication, potassium: LabResult) -> MedicationWarning:
    return MedicationWarning(
        severity="high",
        type="monitoring",
        medication=med.name,
        message=f"Hyperkalemia risk: K+ {potassium.value} mEq/L with {med.name}. Monitor closely.",
        recommendation=(
            "Consider dose reduction. Check potassium in 48-72 hours. "
            "Consider potassium binder if persistent."
        ),
        evidence="ACC/AHA Heart Failure Guidelines",
    )


LAB_RULES: tuple[LabRule, ...] = (
    LabRule(
        keywords=("metformin",),
        find_lab=lambda labs: facts.find_lab(labs, "eGFR"),
        fires=lambda lab: facts.lab_below(lab, 30),
        build=_metformin_renal,
    ),
    LabRule(
        keywords=("ibuprofen", "naproxen", "nsaid"),
        find_lab=lambda labs: facts.find_lab(labs, "Creatinine"),
        fires=lambda lab: facts.lab_above(lab, 1.5),
        build=_nsaid_renal,
    ),
    LabRule(
        keywords=("insulin",),
        find_lab=lambda labs: facts.find_lab_containing(labs, "glucose"),
        fires=lambda lab: facts.lab_above(lab, 200),
        build=_insulin_hyperglycemia,
    ),
    LabRule(
        keywords=("lisinopril", "valsartan", "enalapril"),
        find_lab=lambda labs: facts.find_lab(labs, "Potassium"),
        fires=lambda lab: facts.lab_above(lab, 5.2),
        build=_raas_hyperkalemia,
    ),
)


def _dual_antithrombotic(labs: Sequence[LabResult]) -> MedicationWarning:
    return MedicationWarning(
        severity="medium",
        type="interaction",
        medication="Apixaban + Aspirin",
        message="Dual antithrombotic therapy increases bleeding risk. Verify clinical indication.",
        recommendation=(
            "Assess bleeding risk vs thromboembolic benefit. "
            "Consider discontinuing aspirin if not indicated."
        ),
        evidence="AUGUSTUS Trial",
    )


def _mra_with_raas(labs: Sequence[LabResult]) -> MedicationWarning:
    potassium = facts.find_lab(labs, "Potassium")
    tail = f"Current K+: {potassium.value}" if potassium else "Monitor potassium closely."
    return MedicationWarning(
        severity="high",
        type="interaction",
        medication="Spironolactone + ACEi/ARB",
        message=f"Combined use increases hyperkalemia risk. {tail}",
        recommendation="Monitor potassium every 1-2 weeks initially. Dietary potassium restriction.",
        evidence="RALES Trial Safety Data",
    )


INTERACTION_RULES: tuple[InteractionRule, ...] = (
    InteractionRule(groups=(("apixaban",), ("aspirin",)), build=_dual_antithrombotic),
    InteractionRule(
        groups=(("spironolactone",), ("lisinopril", "valsartan")),
        build=_mra_with_raas,
    ),
)


def allergy_conflict(patient: Patient, med: Medication) -> bool:
    """Allergy text names the drug, or a sulfa allergy meets sulfamethoxazole."""
    name = med.name.strip().lower()
    if not patient.allergies or not name:
        return False
    allergies = patient.allergies.lower()
    return name in allergies or ("sulfa" in allergies and "sulfamethoxazole" in name)


def _allergy_warning(patient: Patient, med: Medication) -> MedicationWarning:
    return MedicationWarning(
        severity="critical",
        type="allergy",
        medication=med.name,
        message=(
            f"ALLERGY ALERT: Patient has documented allergy to {patient.allergies}. "
            f"{med.name} may cross-react."
        ),
        recommendation="Verify allergy history. Use alternative medication.",
        evidence="Patient allergy record",
    )


def sort_by_severity(warnings: list[MedicationWarning]) -> list[MedicationWarning]:
    # sorted() is stable: ties keep emission order
    return sorted(warnings, key=lambda w: SEVERITY_ORDER.get(w.severity, len(SEVERITY_ORDER)))


def check_medications(
    patient: Patient,
    medications: Sequence[Medication],
    labs: Sequence[LabResult],
) -> MedicationCheck:
    active = facts.active_medications(medications)
    warnings: list[MedicationWarning] = []

    for med in active:
        for rule in LAB_RULES:
            if not facts.medication_matches(med.name, rule.keywords):
                continue
            lab = rule.find_lab(labs)
            if rule.fires(lab):
                warnings.append(rule.build(med, lab))
        if allergy_conflict(patient, med):
            warnings.append(_allergy_warning(patient, med))

    for rule in INTERACTION_RULES:
        if all(facts.any_medication_matches(active, group) for group in rule.groups):
            warnings.append(rule.build(labs))

    warnings = sort_by_severity(warnings)
    critical = sum(1 for w in warnings if w.severity == "critical")
    logger.debug(
        "Medication check for patient %s: %d warning(s), %d critical",
        patient.id, len(warnings), critical,
    )

    return MedicationCheck(
        warnings=warnings,
        total_medications=len(active),
        warnings_count=len(warnings),
        critical_count=critical,
        generated_at=facts.utc_timestamp(),
    )
