"""
Extraction and report generation for one patient.

Each function accepts an optional completer; when omitted a client is opened
for the call. Batch code opens one completer and passes it down.
"""
import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Optional, Union

from homept.prompts import (
    EXTRACTION_PROMPT,
    IDENTITY_FROM_IMAGE,
    IDENTITY_PROVIDED,
    clinical_text_block,
    patient_information_text,
    report_system_prompt,
)
from homept.schema import (
    ExtractedIdentity,
    PatientInfo,
    Report,
    extraction_json_schema,
    report_json_schema,
    validate_report,
)
from homept.services.openai_service import (
    Completer,
    ContentPart,
    image_part,
    open_completer,
    parse_json_object,
    text_part,
)
from homept.settings import ReportSettings
from homept.uploads import bytes_to_data_url, sniff_image_mimetype

logger = logging.getLogger(__name__)

REPORT_SCHEMA_NAME = "thiqa_medical_report"
EXTRACTION_SCHEMA_NAME = "patient_info_extraction"


def new_patient_id(index: int) -> str:
    return f"patient-{index}-{uuid.uuid4().hex[:12]}"


def failed_extraction(index: int, settings: ReportSettings, message: str, patient_id: Optional[str] = None) -> PatientInfo:
    return PatientInfo(
        id=patient_id or new_patient_id(index),
        name=f"Patient {index + 1} (Extraction Failed)",
        date_of_birth="Unknown",
        gender="Unknown",
        mrn="Unknown",
        date_of_report=date.today().isoformat(),
        hospital=settings.hospital,
        image_index=index,
        extraction_error=message,
    )


async def extract_patient(
    image: Union[str, bytes],
    index: int,
    settings: ReportSettings,
    complete: Optional[Completer] = None,
) -> PatientInfo:
    """
    Read identity fields off a patient screenshot, given as a data URL or the
    raw upload bytes. Never raises for unreadable images or model failures.
    """
    patient_id = new_patient_id(index)
    try:
        if isinstance(image, bytes):
            image = bytes_to_data_url(image, sniff_image_mimetype(image, f"Patient image {index + 1}"))
        async with open_completer(settings.openai_api_key, settings.timeout, complete) as c:
            text = await c(
                None,
                [text_part(EXTRACTION_PROMPT), image_part(image)],
                EXTRACTION_SCHEMA_NAME,
                extraction_json_schema(),
                model=settings.extraction_model,
            )
        identity = ExtractedIdentity.model_validate(parse_json_object(text))
    except Exception as e:
        logger.warning("Extraction failed for image %s (%s): %s", index, patient_id, e)
        return failed_extraction(index, settings, str(e), patient_id)

    return PatientInfo(
        id=patient_id,
        name=identity.name,
        date_of_birth=identity.date_of_birth,
        gender=identity.gender,
        mrn=identity.mrn,
        date_of_report=identity.date_of_report,
        hospital=settings.hospital,
        image_index=index,
    )


def pin_fixed_fields(
    data: Dict[str, Any],
    settings: ReportSettings,
    patient: Optional[PatientInfo] = None,
) -> Dict[str, Any]:
    """
    Overwrite the values the model must copy verbatim.

    Only touches sub-objects that are present so a structurally broken answer
    still fails validation with its real violations.
    """
    out = dict(data)

    info = out.get("patientInformation")
    if patient is not None:
        out["patientInformation"] = {
            "name": patient.name,
            "dateOfBirth": patient.date_of_birth,
            "gender": patient.gender,
            "mrn": patient.mrn,
            "dateOfReport": patient.date_of_report,
            "hospital": patient.hospital or settings.hospital,
        }
    elif isinstance(info, dict):
        out["patientInformation"] = {**info, "hospital": settings.hospital}
    info = out.get("patientInformation")

    plan = out.get("treatmentPlan")
    if isinstance(plan, dict):
        plan = dict(plan)
        meds = plan.get("medications")
        if isinstance(meds, list):
            missing = [m for m in settings.required_medications if m not in meds]
            plan["medications"] = missing + list(meds)
        if isinstance(plan.get("homePhysio"), dict):
            plan["homePhysio"] = {
                **plan["homePhysio"],
                "frequency": settings.home_physio_frequency,
                "duration": settings.home_physio_duration,
            }
        out["treatmentPlan"] = plan

    sig = out.get("signature")
    if isinstance(sig, dict):
        sig = {
            **sig,
            "greeting": settings.greeting,
            "doctorName": settings.doctor_name,
            "title": settings.doctor_title,
            "dohLicense": settings.doh_license,
            "facility": settings.facility,
            "signatureStamp": settings.signature_stamp,
        }
        if isinstance(info, dict) and isinstance(info.get("dateOfReport"), str):
            sig["date"] = f"Date: {info['dateOfReport']}"
        out["signature"] = sig

    return out


async def _complete_report(
    content: List[ContentPart],
    identity_source: str,
    settings: ReportSettings,
    complete: Optional[Completer],
    patient: Optional[PatientInfo] = None,
) -> Report:
    async with open_completer(settings.openai_api_key, settings.timeout, complete) as c:
        text = await c(
            report_system_prompt(settings, identity_source),
            content,
            REPORT_SCHEMA_NAME,
            report_json_schema(),
            model=settings.model,
        )
    data = parse_json_object(text)
    return validate_report(pin_fixed_fields(data, settings, patient))


async def generate_report(
    patient: PatientInfo,
    clinical_text: Optional[str],
    clinical_image: Optional[str],
    settings: ReportSettings,
    complete: Optional[Completer] = None,
) -> Report:
    """Batch flow: identity is already known, the model writes the clinical parts."""
    content = [text_part(patient_information_text(patient))]
    if clinical_text and clinical_text.strip():
        content.append(text_part(clinical_text_block(clinical_text)))
    if clinical_image:
        content.append(image_part(clinical_image))
        content.append(text_part("The above image contains clinical notes or findings."))
    return await _complete_report(content, IDENTITY_PROVIDED, settings, complete, patient)


async def generate_single_report(
    patient_image: str,
    clinical_text: Optional[str],
    clinical_image: Optional[str],
    settings: ReportSettings,
    complete: Optional[Completer] = None,
) -> Report:
    """Single-report form: the model reads the identity from the screenshot itself."""
    content = []
    if clinical_text and clinical_text.strip():
        content.append(text_part(clinical_text_block(clinical_text)))
    content.append(image_part(patient_image))
    content.append(text_part("The above image contains the patient information."))
    if clinical_image:
        content.append(image_part(clinical_image))
        content.append(text_part("The above image contains clinical notes or findings."))
    return await _complete_report(content, IDENTITY_FROM_IMAGE, settings, complete)
