import logging
import random
from collections.abc import Sequence
from typing import Protocol

from app.config import ENGINE_VERSION, SUMMARY_RANDOM_SEED
from app.models.insights import ClinicalSummary
from app.models.patient import Encounter, LabResult, Medication, Patient, Vitals
from app.services import facts
from app.services.concerns import identify_concerns

logger = logging.getLogger(__name__)

CONFIDENCE_BASE = 0.87
CONFIDENCE_JITTER = 0.1
MAX_LISTED_LABS = 5


class RandomSource(Protocol):
    def random(self) -> float: ...


# Module-level source so a configured seed gives a reproducible sequence per process
_default_rng: RandomSource = (
    random.Random(SUMMARY_RANDOM_SEED) if SUMMARY_RANDOM_SEED is not None else random
)


def generate_summary(
    patient: Patient,
    encounters: Sequence[Encounter],
    labs: Sequence[LabResult],
    medications: Sequence[Medication],
    vitals: Sequence[Vitals],
    rng: RandomSource | None = None,
) -> ClinicalSummary:
    """Build the narrative chart summary.

    The confidence value is the only non-deterministic part of the engine:
    ``0.87 + U[0, 0.1)``. Pass ``rng`` (anything with a ``random()`` method)
    to pin it.
    """
    rng = rng or _default_rng
    active_meds = facts.active_medications(medications)
    flagged_labs = facts.critical_or_high_labs(labs)
    latest = facts.latest_vitals(vitals)

    text = f"**Clinical Summary — {patient.first_name} {patient.last_name}**\n\n"
    text += (
        f"{facts.age_and_gender(patient)} with primary diagnosis of "
        f"{patient.primary_diagnosis}. "
    )

    if facts.has_allergies(patient):
        text += f"Known allergies: {patient.allergies}. "

    er_visits = facts.emergency_encounters(encounters)
    admissions = facts.inpatient_encounters(encounters)
    if er_visits or admissions:
        text += "\n\n**Recent Healthcare Utilization:** "
        text += (
            f"{len(er_visits)} ER visit(s) and {len(admissions)} admission(s) "
            "in medical record. "
        )

    recent = facts.recent_encounters(encounters)
    if recent:
        e = recent[0]
        text += f"\n\nMost recent encounter ({e.date}): {e.encounter_type} — {e.chief_complaint}. "
        text += f"Diagnosis: {e.diagnosis}. {e.notes} "

    if flagged_labs:
        text += "\n\n**Critical/Abnormal Labs:** "
        for lab in flagged_labs[:MAX_LISTED_LABS]:
            text += (
                f"\n• {lab.test_name}: {lab.value} {lab.unit} "
                f"(ref: {lab.reference_range}) — {lab.status.upper()}"
            )

    text += f"\n\n**Active Medications ({len(active_meds)}):** "
    for med in active_meds:
        text += f"\n• {med.name} {med.dosage} {med.frequency}"

    if latest is not None:
        text += f"\n\n**Latest Vitals ({latest.date}):** "
        text += (
            f"HR {facts.display(latest.heart_rate)}, "
            f"BP {facts.display(latest.systolic_bp)}/{facts.display(latest.diastolic_bp)}, "
        )
        text += (
            f"Temp {facts.display(latest.temperature)}°F, "
            f"RR {facts.display(latest.respiratory_rate)}, "
            f"SpO2 {facts.display(latest.oxygen_saturation)}%"
        )

    text += "\n\n**Key Concerns:**"
    concerns = identify_concerns(patient, encounters, labs, medications, vitals)
    for concern in concerns:
        text += f"\n⚠️ {concern}"

    data_points = len(encounters) + len(labs) + len(medications) + len(vitals)
    logger.debug(
        "Summary for patient %s: %d concern(s) from %d data points",
        patient.id, len(concerns), data_points,
    )

    return ClinicalSummary(
        summary=text,
        confidence=CONFIDENCE_BASE + rng.random() * CONFIDENCE_JITTER,
        generated_at=facts.utc_timestamp(),
        key_findings=len(concerns),
        data_points_analyzed=data_points,
        generated_by=ENGINE_VERSION,
    )
