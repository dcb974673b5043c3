"""
Document plan

The ordered list of section commands for one report. The PDF and DOCX
backends both interpret this list, so the section order lives only here.
"""
from dataclasses import dataclass
from typing import List, Tuple, Union

from homept.schema import Report

REPORT_TITLE = "Medical Report"

# Vertical space in points; the DOCX backend maps these to paragraph spacing
SECTION_GAP = 12
SIGNATURE_GAP = 24

MAJOR = 1
SUBSECTION = 2


@dataclass(frozen=True)
class Title:
    text: str


@dataclass(frozen=True)
class Heading:
    text: str
    level: int = MAJOR


@dataclass(frozen=True)
class Paragraph:
    text: str


@dataclass(frozen=True)
class Lines:
    """Plain lines, one per item, no bullet."""
    items: Tuple[str, ...]


@dataclass(frozen=True)
class BulletList:
    items: Tuple[str, ...]


@dataclass(frozen=True)
class Gap:
    size: float = SECTION_GAP


@dataclass(frozen=True)
class SignatureBlock:
    lines: Tuple[str, ...]


Command = Union[Title, Heading, Paragraph, Lines, BulletList, Gap, SignatureBlock]


def patient_information_lines(report: Report) -> Tuple[str, ...]:
    info = report.patient_information
    return (
        f"Name: {info.name}",
        f"Date of Birth: {info.date_of_birth}",
        f"Gender: {info.gender}",
        f"MRN: {info.mrn}",
        f"Date of Report: {info.date_of_report}",
        f"Hospital: {info.hospital}",
    )


def build_document_plan(report: Report) -> List[Command]:
    plan = report.treatment_plan
    return [
        Title(REPORT_TITLE),
        Heading("Patient Information:"),
        Lines(patient_information_lines(report)),
        Gap(),
        Heading("Clinical History:"),
        Paragraph(report.clinical_history),
        Gap(),
        Heading("Past Medical History:"),
        BulletList(report.past_medical_history),
        Gap(),
        Heading("Vital Signs:"),
        BulletList(report.vital_signs),
        Gap(),
        Heading("Clinical Notes:"),
        Paragraph(report.clinical_notes),
        Gap(),
        Heading("Diagnoses:"),
        BulletList(tuple(d.as_line() for d in report.diagnoses)),
        Gap(),
        Heading("Treatment Plan:"),
        Heading("Medications:", SUBSECTION),
        BulletList(plan.medications),
        Gap(),
        Heading("Home Physiotherapy:", SUBSECTION),
        Lines((
            f"Frequency: {plan.home_physio.frequency}",
            f"Duration: {plan.home_physio.duration}",
        )),
        Gap(),
        Heading("Short-Term Goals:", SUBSECTION),
        BulletList(plan.short_term_goals),
        Gap(),
        Heading("Long-Term Goals:", SUBSECTION),
        BulletList(plan.long_term_goals),
        Gap(),
        Heading("Prognosis:"),
        BulletList(report.prognosis),
        Gap(),
        Heading("Conclusion:"),
        Paragraph(report.conclusion),
        Gap(SIGNATURE_GAP),
        SignatureBlock(report.signature.lines()),
    ]
