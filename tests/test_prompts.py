"""
Prompt Template Tests
"""
from dataclasses import replace

from homept.prompts import (
    IDENTITY_FROM_IMAGE,
    IDENTITY_PROVIDED,
    clinical_text_block,
    patient_information_text,
    report_system_prompt,
)
from homept.schema import PatientInfo


class TestReportSystemPrompt:
    """One template for both flows"""

    def test_literals_come_from_settings(self, settings):
        custom = replace(
            settings,
            home_physio_frequency="5 times per week",
            doctor_name="Dr. A. Example",
            required_medications=("Drug A 10 mg",),
        )
        prompt = report_system_prompt(custom)
        assert 'homePhysio.frequency MUST ALWAYS be "5 times per week"' in prompt
        assert 'doctorName: "Dr. A. Example"' in prompt
        assert '"Drug A 10 mg"' in prompt
        assert "Paracetamol" not in prompt

    def test_identity_sources_differ_only_in_identity_rules(self, settings):
        provided = report_system_prompt(settings, IDENTITY_PROVIDED)
        from_image = report_system_prompt(settings, IDENTITY_FROM_IMAGE)

        assert "Use the exact values provided" in provided
        assert "from the patient information screenshot" in from_image
        for prompt in (provided, from_image):
            assert "EXACT pain score" in prompt
            assert "Medication name and dosage ONLY" in prompt


class TestUserContentBlocks:
    """Text blocks sent with the request"""

    def test_patient_information_text(self):
        patient = PatientInfo(id="p-0", name="Jane Doe", mrn="MRN-1", hospital="EIH")
        text = patient_information_text(patient)
        assert text.splitlines()[0] == "Patient Information (use these exact values):"
        assert "Name: Jane Doe" in text
        assert "Date of Birth: Unknown" in text
        assert "Hospital: EIH" in text

    def test_clinical_text_block(self):
        assert clinical_text_block("  Knee pain 9/10 \n") == "Clinical Description:\nKnee pain 9/10"
