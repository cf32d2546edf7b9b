"""Tests for the concern identifier."""

from app.models.patient import LabResult, Medication, Patient, Vitals
from app.services.concerns import NO_CONCERNS, identify_concerns


def _concerns(record):
    return identify_concerns(
        record.patient, record.encounters, record.labs, record.medications, record.vitals,
    )


PATIENT = Patient(date_of_birth="1970-01-01", first_name="Test")


class TestIdentifyConcerns:
    def test_nothing_fires_gives_single_placeholder(self, nakamura):
        assert _concerns(nakamura) == [NO_CONCERNS]

    def test_empty_chart_gives_single_placeholder(self, bare):
        assert _concerns(bare) == [NO_CONCERNS]

    def test_morrison_concerns_in_rule_order(self, morrison):
        concerns = _concerns(morrison)
        assert concerns == [
            "3 critical lab value(s): HbA1c 9.2, eGFR 28, BNP 1250",
            "2 ER visits indicate frequent acute care utilization",
            "Polypharmacy (6 active medications) — review for deprescribing opportunities",
            "Metformin contraindicated with eGFR 28 — URGENT: discontinue",
        ]

    def test_critical_labs_list_at_most_three(self, chen):
        first = _concerns(chen)[0]
        # Newest first: the blood culture is dated a day after the rest
        assert first == "6 critical lab value(s): Blood Culture S. pneumoniae, WBC 18.5, Lactate 4.8"

    def test_vitals_rules(self):
        vitals = [Vitals(date="2025-01-01", heart_rate=120, systolic_bp=170, diastolic_bp=100,
                         oxygen_saturation=88)]
        concerns = identify_concerns(PATIENT, [], [], [], vitals)
        assert concerns == [
            "Hypoxemia (SpO2 88%) — may require supplemental oxygen",
            "Uncontrolled hypertension (BP 170/100)",
            "Tachycardia (HR 120) — evaluate underlying cause",
        ]

    def test_fractional_spo2(self):
        vitals = [Vitals(date="2025-01-01", oxygen_saturation=91.5)]
        assert identify_concerns(PATIENT, [], [], [], vitals) == [
            "Hypoxemia (SpO2 91.5%) — may require supplemental oxygen",
        ]

    def test_only_latest_vitals_count(self, chen):
        # Older reading (SpO2 84) must not be used; latest is 88
        assert any("SpO2 88%" in c for c in _concerns(chen))
        assert not any("SpO2 84%" in c for c in _concerns(chen))

    def test_absent_vitals_fields_tolerated(self):
        concerns = identify_concerns(PATIENT, [], [], [], [Vitals(date="2025-01-01")])
        assert concerns == [NO_CONCERNS]

    def test_polypharmacy_boundary(self):
        five = [Medication(name=f"Drug{i}") for i in range(5)]
        assert identify_concerns(PATIENT, [], [], five, []) == [NO_CONCERNS]
        six = five + [Medication(name="Drug5")]
        assert identify_concerns(PATIENT, [], [], six, [])[0].startswith("Polypharmacy (6")

    def test_metformin_needs_numeric_egfr_below_30(self):
        meds = [Medication(name="Metformin XR")]
        low = [LabResult(test_name="eGFR", value="25")]
        ok = [LabResult(test_name="eGFR", value="35")]
        junk = [LabResult(test_name="eGFR", value="pending")]
        assert "URGENT" in identify_concerns(PATIENT, [], low, meds, [])[0]
        assert identify_concerns(PATIENT, [], ok, meds, []) == [NO_CONCERNS]
        assert identify_concerns(PATIENT, [], junk, meds, []) == [NO_CONCERNS]

    def test_discontinued_metformin_ignored(self):
        meds = [Medication(name="Metformin", status="discontinued")]
        labs = [LabResult(test_name="eGFR", value="20")]
        assert identify_concerns(PATIENT, [], labs, meds, []) == [NO_CONCERNS]
