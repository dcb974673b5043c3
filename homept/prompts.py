"""
Prompt templates

One system prompt serves both the single-report form (identity read from the
patient screenshot) and the batch flow (identity already extracted and
reviewed). Fixed literals come from ReportSettings so the prompt and the
post-generation pinning never disagree.
"""
from typing import Optional

from homept.schema import PatientInfo
from homept.settings import ReportSettings

IDENTITY_PROVIDED = "provided"
IDENTITY_FROM_IMAGE = "image"

EXTRACTION_PROMPT = """
Extract patient demographic information from this image.

Return a JSON object with these exact fields:
- name: Patient's full name
- dateOfBirth: Date of birth (format as shown in image)
- gender: Patient's gender
- mrn: Medical record number
- dateOfReport: Date shown on the document (or today's date if not visible)

If any field is not readable or not present, use "Unknown" as the value.

Return ONLY valid JSON, no explanations or markdown.
""".strip()


def _identity_rules(settings: ReportSettings, identity_source: str) -> str:
    if identity_source == IDENTITY_FROM_IMAGE:
        return f"""
1. patientInformation
   - Read name, dateOfBirth, gender, mrn (medical record number) and dateOfReport
     from the patient information screenshot.
   - hospital MUST ALWAYS be: "{settings.hospital}".
   - If a field is not readable, use "Unknown".""".strip("\n")
    return """
1. patientInformation
   - Use the exact values provided in the input for: name, dateOfBirth, gender, mrn, dateOfReport, hospital.
   - Do NOT modify these values.""".strip("\n")


def report_system_prompt(settings: ReportSettings, identity_source: str = IDENTITY_PROVIDED) -> str:
    if identity_source == IDENTITY_FROM_IMAGE:
        inputs = "patient demographic data (from an image) and clinical data (from text and/or images)"
    else:
        inputs = "patient demographic data (already extracted) and clinical data (from text and/or images)"
    medications = "\n".join(f'       - "{m}"' for m in settings.required_medications)
    freq = settings.home_physio_frequency
    duration = settings.home_physio_duration

    return f"""
You are an assistant that writes professional orthopedic medical reports as structured data.

IMPORTANT CONTEXT:
- This is a medical REPORT ONLY, not medical advice.
- The report is presented to Thiqa (insurance for Emirati citizens in the UAE).
- The purpose is to obtain approval for HOME PHYSICAL THERAPY.
- Reports must follow Department of Health (DOH) Abu Dhabi style and formal medical language.
- You receive {inputs}.
- You must output ONLY structured JSON (no Markdown, no HTML, no comments).

DETAILED RULES:

{_identity_rules(settings, identity_source)}

2. clinicalHistory (string)
   - Narrative paragraphs: symptoms, onset, duration, functional limitations, aggravating/relieving factors.
   - Use the EXACT pain score stated in the clinical documents (if they say 6/10, write 6/10).
   - Qualify it to match: "mild" 1-3/10, "moderate" 4-6/10, "severe" 7-9/10, "unbearable" 10/10.
   - No bullet points.

3. pastMedicalHistory (string[])
   - One condition per element (e.g. "Hypertension").
   - If none is provided: ["No significant past medical history reported."].

4. vitalSigns (string[])
   - One measurement per element, e.g. "Blood Pressure: stable".
   - Never invent precise numbers; describe as stable when values are not given.

5. clinicalNotes (string)
   - Physical findings, gait, posture, tenderness, swelling, deformity, pain characteristics.
   - MUST describe range of motion (ROM) restriction: mild/moderate for minor ailments
     (e.g. knee flexion ~110-120 degrees, extension -5 to -10 degrees), more pronounced for major ones,
     mild when severity is unclear.
   - MUST describe weakness of the affected region; "strength approximately 3/5" only for clearly
     severe cases. NEVER state strength as 4/5 or higher.

6. diagnoses (array of objects)
   - "label": diagnosis name, "code": best ICD-10 code, "description": short description.

7. treatmentPlan (object)
   - medications (string[]) MUST ALWAYS include:
{medications}
     Medication name and dosage ONLY, no comments, qualifiers or contraindication notes.
   - homePhysio.frequency MUST ALWAYS be "{freq}".
   - homePhysio.duration MUST ALWAYS be "{duration}".
   - shortTermGoals (string[]): time-bound goals (4-8 weeks) for this case.
   - longTermGoals (string[]): goals consistent with a {duration} home PT program.

8. prognosis (string[])
   - Expected improvement with adherence, risks of non-compliance, overall prognosis with justification.

9. conclusion (string)
   - Current condition and limitations, and a clear statement that the patient will benefit from
     HOME PHYSICAL THERAPY at {freq} for {duration}, to prevent deterioration, maintain or improve
     function and control pain.

10. signature (object) MUST contain exactly:
   - greeting: "{settings.greeting}"
   - doctorName: "{settings.doctor_name}"
   - title: "{settings.doctor_title}"
   - dohLicense: "{settings.doh_license}"
   - facility: "{settings.facility}"
   - date: "Date: " followed by patientInformation.dateOfReport
   - signatureStamp: "{settings.signature_stamp}"

GENERAL RULES:
- Formal medical English, third person.
- The pain score must be identical in clinicalHistory and clinicalNotes.
- Never create contradictions between sections.

OUTPUT FORMAT:
- Return ONLY a valid JSON object matching the schema. No explanations, no backticks.
""".strip()


def patient_information_text(patient: PatientInfo) -> str:
    return f"""Patient Information (use these exact values):
Name: {patient.name}
Date of Birth: {patient.date_of_birth}
Gender: {patient.gender}
MRN: {patient.mrn}
Date of Report: {patient.date_of_report}
Hospital: {patient.hospital}"""


def clinical_text_block(clinical_text: Optional[str]) -> str:
    return f"Clinical Description:\n{(clinical_text or '').strip()}"
