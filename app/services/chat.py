"""Keyword-routed answers about one patient's chart.

The lowercased question is matched against ``ROUTES`` in order and the first
route whose keywords appear wins. Nothing is remembered between calls.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from app.models.patient import Encounter, LabResult, Medication, Patient, Vitals
from app.services import facts
from app.services.concerns import identify_concerns

MAX_CHAT_LABS = 8


@dataclass(frozen=True)
class ChartContext:
    patient: Patient
    encounters: Sequence[Encounter]
    labs: Sequence[LabResult]
    medications: Sequence[Medication]
    vitals: Sequence[Vitals]


def _overview(c: ChartContext) -> str:
    p = c.patient
    active = facts.active_medications(c.medications)
    critical = facts.critical_labs(c.labs)
    return (
        f"{p.first_name} {p.last_name} is a {facts.age_and_gender(p)} "
        f"with {p.primary_diagnosis}. They have {len(c.encounters)} "
        f"encounters on record, {len(active)} active medications, and {len(critical)} "
        f"critical lab values. Known allergies: {p.allergies or 'None'}."
    )


def _concerns(c: ChartContext) -> str:
    concerns = identify_concerns(c.patient, c.encounters, c.labs, c.medications, c.vitals)
    numbered = "\n".join(f"{i}. {concern}" for i, concern in enumerate(concerns, start=1))
    return (
        f"Key concerns for {c.patient.first_name}:\n\n{numbered}\n\n"
        "I recommend reviewing the Risk Prediction panel for quantitative risk scores."
    )


def _medications(c: ChartContext) -> str:
    active = facts.active_medications(c.medications)
    listed = "\n".join(f"• {m.name} {m.dosage} — {m.frequency}" for m in active)
    return (
        f"{c.patient.first_name} is currently on {len(active)} active medications:\n\n"
        f"{listed}\n\nCheck the Medication Safety panel for interaction warnings."
    )


def _labs(c: ChartContext) -> str:
    listed = "\n".join(
        f"• {lab.test_name}: {lab.value} {lab.unit} ({lab.status.upper()}) — {lab.date}"
        for lab in c.labs[:MAX_CHAT_LABS]
    )
    return f"Recent lab results for {c.patient.first_name}:\n\n{listed}"


def _vitals(c: ChartContext) -> str:
    v = facts.latest_vitals(c.vitals)
    if v is None:
        return "No vital signs recorded for this patient."
    d = facts.display
    return (
        f"Latest vitals for {c.patient.first_name} ({v.date}):\n\n"
        f"• Heart Rate: {d(v.heart_rate)} bpm\n"
        f"• Blood Pressure: {d(v.systolic_bp)}/{d(v.diastolic_bp)} mmHg\n"
        f"• Temperature: {d(v.temperature)}°F\n"
        f"• Respiratory Rate: {d(v.respiratory_rate)}/min\n"
        f"• SpO2: {d(v.oxygen_saturation)}%\n"
        f"• Weight: {d(v.weight)} lbs"
    )


def _encounters(c: ChartContext) -> str:
    listed = "\n\n".join(
        f"• {e.date} — {e.encounter_type}: {e.chief_complaint}\n  Dx: {e.diagnosis}"
        for e in facts.recent_encounters(c.encounters)
    )
    return f"Recent encounters for {c.patient.first_name}:\n\n{listed}"


def _allergies(c: ChartContext) -> str:
    return (
        f"Documented allergies for {c.patient.first_name}: "
        f"{c.patient.allergies or facts.NO_ALLERGIES}.\n\n"
        "Always verify allergy status before prescribing new medications."
    )


def _treatment(c: ChartContext) -> str:
    return (
        f"Based on {c.patient.first_name}'s current condition ({c.patient.primary_diagnosis}), "
        "I recommend reviewing the Treatment Suggestions panel for evidence-based "
        "recommendations. Key areas to address:\n\n"
        "1. Optimize current medication regimen\n"
        "2. Follow up on critical lab values\n"
        "3. Schedule appropriate preventive screenings\n\n"
        'Please click the "Treatment" tab for detailed, guideline-based suggestions.'
    )


def _help(c: ChartContext) -> str:
    return (
        f"I can help you understand {c.patient.first_name}'s clinical data. Try asking about:\n\n"
        '• "What are the key risks?"\n'
        '• "Show me recent labs"\n'
        '• "What medications is the patient on?"\n'
        '• "Give me a summary"\n'
        '• "What vitals were last recorded?"\n'
        '• "Show encounter history"\n'
        '• "What are the treatment recommendations?"'
    )


ROUTES: tuple[tuple[tuple[str, ...], Callable[[ChartContext], str]], ...] = (
    (("summary", "overview", "who is"), _overview),
    (("risk", "danger", "concern", "worry"), _concerns),
    (("medication", "drug", "prescription", "med"), _medications),
    (("lab", "test", "result"), _labs),
    (("vital", "blood pressure", "heart rate", "temperature"), _vitals),
    (("history", "encounter", "visit"), _encounters),
    (("allerg",), _allergies),
    (("treatment", "recommend", "what should", "next step"), _treatment),
)


def chat_response(
    question: str,
    patient: Patient,
    encounters: Sequence[Encounter],
    labs: Sequence[LabResult],
    medications: Sequence[Medication],
    vitals: Sequence[Vitals],
) -> str:
    q = question.lower()
    context = ChartContext(patient, encounters, labs, medications, vitals)
    for keywords, handler in ROUTES:
        if any(k in q for k in keywords):
            return handler(context)
    return _help(context)
