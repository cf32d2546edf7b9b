"""Concern identifier shared by the summary generator and the chat responder.

Each rule looks at the same derived facts and either returns one concern
string or None. Rules are additive and run in table order; the order is
part of the output contract.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from app.models.patient import Encounter, LabResult, Medication, Patient, Vitals
from app.services import facts

NO_CONCERNS = "No critical concerns identified at this time. Continue routine monitoring."


@dataclass(frozen=True)
class ConcernFacts:
    critical_labs: list[LabResult]
    er_visits: list[Encounter]
    latest_vitals: Vitals
    active_meds: list[Medication]
    egfr: LabResult | None


def _critical_labs(f: ConcernFacts) -> str | None:
    if not f.critical_labs:
        return None
    listed = ", ".join(f"{lab.test_name} {lab.value}" for lab in f.critical_labs[:3])
    return f"{len(f.critical_labs)} critical lab value(s): {listed}"


def _frequent_er_visits(f: ConcernFacts) -> str | None:
    if len(f.er_visits) < 2:
        return None
    return f"{len(f.er_visits)} ER visits indicate frequent acute care utilization"


def _hypoxemia(f: ConcernFacts) -> str | None:
    spo2 = f.latest_vitals.oxygen_saturation
    if not facts.below(spo2, 92):
        return None
    return f"Hypoxemia (SpO2 {facts.display(spo2)}%) — may require supplemental oxygen"


def _uncontrolled_hypertension(f: ConcernFacts) -> str | None:
    v = f.latest_vitals
    if not facts.above(v.systolic_bp, 160):
        return None
    return f"Uncontrolled hypertension (BP {v.systolic_bp}/{facts.display(v.diastolic_bp)})"


def _tachycardia(f: ConcernFacts) -> str | None:
    hr = f.latest_vitals.heart_rate
    if not facts.above(hr, 100):
        return None
    return f"Tachycardia (HR {hr}) — evaluate underlying cause"


def _polypharmacy(f: ConcernFacts) -> str | None:
    if len(f.active_meds) <= 5:
        return None
    return (
        f"Polypharmacy ({len(f.active_meds)} active medications) — "
        "review for deprescribing opportunities"
    )


def _metformin_renal(f: ConcernFacts) -> str | None:
    on_metformin = facts.any_medication_matches(f.active_meds, ("metformin",))
    if not (on_metformin and facts.lab_below(f.egfr, 30)):
        return None
    return f"Metformin contraindicated with eGFR {f.egfr.value} — URGENT: discontinue"


CONCERN_RULES: tuple[Callable[[ConcernFacts], str | None], ...] = (
    _critical_labs,
    _frequent_er_visits,
    _hypoxemia,
    _uncontrolled_hypertension,
    _tachycardia,
    _polypharmacy,
    _metformin_renal,
)


def identify_concerns(
    patient: Patient,
    encounters: Sequence[Encounter],
    labs: Sequence[LabResult],
    medications: Sequence[Medication],
    vitals: Sequence[Vitals],
) -> list[str]:
    """Ordered concern strings; a single placeholder when nothing fires."""
    f = ConcernFacts(
        critical_labs=facts.critical_labs(labs),
        er_visits=facts.emergency_encounters(encounters),
        latest_vitals=facts.latest_vitals(vitals) or Vitals(),
        active_meds=facts.active_medications(medications),
        egfr=facts.find_lab(labs, "eGFR"),
    )

    concerns = [c for c in (rule(f) for rule in CONCERN_RULES) if c is not None]
    if not concerns:
        concerns.append(NO_CONCERNS)
    return concerns
