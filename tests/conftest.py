"""
Test Configuration and Fixtures
"""
import copy
import io
import json
import re

import pytest
from PIL import Image

from homept import create_app
from homept.settings import ReportSettings


BASE_REPORT = {
    "patientInformation": {
        "name": "Jane Doe",
        "dateOfBirth": "1950-04-12",
        "gender": "Female",
        "mrn": "MRN-001234",
        "dateOfReport": "2026-10-18",
        "hospital": "Emirates International Hospital",
    },
    "clinicalHistory": (
        "The patient reports severe right knee pain with intensity 9/10, worse on stairs "
        "and prolonged standing, limiting household ambulation over the last three months."
    ),
    "pastMedicalHistory": ["Hypertension", "Type 2 diabetes"],
    "vitalSigns": ["Blood Pressure: stable", "Heart Rate: stable"],
    "clinicalNotes": (
        "Antalgic gait with tenderness over the medial joint line. Pain 9/10 on weight bearing. "
        "There is mild restriction of knee ROM, with flexion around 115 degrees and extension "
        "to -5 degrees. Reduced strength of the quadriceps."
    ),
    "diagnoses": [
        {"label": "Primary osteoarthritis, right knee", "code": "M17.11", "description": "Degenerative joint disease"},
        {"label": "Difficulty in walking", "code": "R26.2", "description": "Impaired ambulation"},
    ],
    "treatmentPlan": {
        "medications": ["Diclofenac gel topical", "Paracetamol 650 mg"],
        "homePhysio": {"frequency": "3 times per week", "duration": "6 months"},
        "shortTermGoals": ["Reduce pain to 5/10 within 6 weeks", "Improve knee flexion to 125 degrees"],
        "longTermGoals": ["Independent ambulation indoors", "Safe stair negotiation"],
    },
    "prognosis": ["Good with adherence to the home program", "Risk of deterioration if untreated"],
    "conclusion": (
        "The patient will benefit from home physical therapy at 3 times per week for 6 months "
        "to prevent deterioration, improve function and control pain."
    ),
    "signature": {
        "greeting": "Sincerely,",
        "doctorName": "Dr. Farhat El Rassi",
        "title": "Consultant Orthopedic Surgeon",
        "dohLicense": "DOH License No.: GD36956",
        "facility": "Facility: Emirates International Hospital, Abu Dhabi, UAE",
        "date": "Date: 2026-10-18",
        "signatureStamp": "Signature & Stamp:",
    },
}


def _make_report(name: str = "Jane Doe", **overrides):
    data = copy.deepcopy(BASE_REPORT)
    data["patientInformation"]["name"] = name
    data.update(overrides)
    return data


def patient_name_in(user_content) -> str:
    """Name from the 'use these exact values' block the batch flow sends."""
    for part in user_content:
        if part.get("type") == "text":
            m = re.search(r"^Name: (.*)$", part["text"], flags=re.MULTILINE)
            if m:
                return m.group(1).strip()
    return ""


class FakeCompleter:
    """Stands in for the OpenAI completer; respond() returns JSON text or an exception."""

    def __init__(self, respond):
        self.respond = respond
        self.calls = []

    async def __call__(self, system_prompt, user_content, schema_name, schema, model=None, **kwargs):
        self.calls.append({
            "system_prompt": system_prompt,
            "user_content": user_content,
            "schema_name": schema_name,
            "schema": schema,
            "model": model,
        })
        result = self.respond(system_prompt, user_content, schema_name)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing"""
    app = create_app('testing')
    app.config['REPORTS_DIR'] = str(tmp_path_factory.mktemp('reports'))
    app.config['BATCH_REPORTS_DIR'] = str(tmp_path_factory.mktemp('batches'))
    yield app


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def settings():
    return ReportSettings(openai_api_key="test-key")


@pytest.fixture
def make_report():
    return _make_report


@pytest.fixture
def report_payload():
    return _make_report()


@pytest.fixture
def fake_completer():
    return FakeCompleter


@pytest.fixture
def echo_report_completer():
    """Answers every report request with a valid report for the named patient."""
    def respond(system_prompt, user_content, schema_name):
        return json.dumps(_make_report(patient_name_in(user_content) or "Jane Doe"))
    return FakeCompleter(respond)


@pytest.fixture(scope='session')
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), color=(255, 255, 255)).save(buf, format="PNG")
    return buf.getvalue()
