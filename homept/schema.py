"""
Report schema

Declarative shape of the report the model must return, plus the patient and
batch-result records exchanged with the UI. Wire format is camelCase JSON.
"""
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from homept.errors import ReportValidationError


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class PatientInformation(_WireModel):
    name: str
    date_of_birth: str
    gender: str
    mrn: str
    date_of_report: str
    hospital: str


class Diagnosis(_WireModel):
    label: str
    code: str
    description: str

    def as_line(self) -> str:
        return f"{self.label} ({self.code}): {self.description}"


class HomePhysio(_WireModel):
    frequency: str
    duration: str


class TreatmentPlan(_WireModel):
    medications: Tuple[str, ...]
    home_physio: HomePhysio
    short_term_goals: Tuple[str, ...]
    long_term_goals: Tuple[str, ...]


class Signature(_WireModel):
    greeting: str
    doctor_name: str
    title: str
    doh_license: str
    facility: str
    date: str
    signature_stamp: str

    def lines(self) -> Tuple[str, ...]:
        return (
            self.greeting,
            self.doctor_name,
            self.title,
            self.doh_license,
            self.facility,
            self.date,
            self.signature_stamp,
        )


class Report(_WireModel):
    patient_information: PatientInformation
    clinical_history: str
    past_medical_history: Tuple[str, ...]
    vital_signs: Tuple[str, ...]
    clinical_notes: str
    diagnoses: Tuple[Diagnosis, ...]
    treatment_plan: TreatmentPlan
    prognosis: Tuple[str, ...]
    conclusion: str
    signature: Signature


class ExtractedIdentity(_WireModel):
    """What the extraction call reads off a patient screenshot."""
    name: str
    date_of_birth: str
    gender: str
    mrn: str
    date_of_report: str


class PatientInfo(BaseModel):
    """Identity of one batch patient; the reviewer may edit it before generation."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str = "Unknown"
    date_of_birth: str = "Unknown"
    gender: str = "Unknown"
    mrn: str = "Unknown"
    date_of_report: str = "Unknown"
    hospital: str = ""
    image_index: Optional[int] = None
    extraction_error: Optional[str] = None

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PatientReportResult(_WireModel):
    model_config = ConfigDict(extra="ignore")

    patient_id: str
    patient_name: str
    status: Literal["success", "error"]
    report: Optional[Report] = None
    error: Optional[str] = None
    stage: Optional[str] = None

    def to_json_dict(self) -> Dict[str, Any]:
        out = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        out.setdefault("report", None)
        return out


class PatientPdfResult(_WireModel):
    model_config = ConfigDict(extra="ignore")

    patient_id: str
    patient_name: str
    status: Literal["success", "error"]
    pdf_path: str = ""
    pdf_filename: str = ""
    docx_path: Optional[str] = None
    docx_filename: Optional[str] = None
    error: Optional[str] = None
    stage: Optional[str] = None

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _format_loc(loc: Tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc) or "<root>"


def validation_violations(exc: ValidationError) -> List[Dict[str, str]]:
    return [{"path": _format_loc(err["loc"]), "message": err["msg"]} for err in exc.errors()]


def validate_report(data: Any, stage: Optional[str] = None) -> Report:
    """Validate a decoded JSON payload, reporting every violated field path."""
    if isinstance(data, Report):
        return data
    try:
        return Report.model_validate(data)
    except ValidationError as e:
        raise ReportValidationError(validation_violations(e), stage=stage) from e


def report_json_schema() -> Dict[str, Any]:
    return Report.model_json_schema(by_alias=True)


def extraction_json_schema() -> Dict[str, Any]:
    return ExtractedIdentity.model_json_schema(by_alias=True)
