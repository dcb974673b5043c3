"""
Batch orchestration

Records are processed in fixed-size chunks: every record of a chunk runs
concurrently, the next chunk starts once all of them have settled. The
chunk size only limits load on the OpenAI API; records share no state.

Every stage returns exactly one result per input record, in input order,
and a failing record never cancels its siblings.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Iterator, List, Mapping, Optional, Sequence, TypeVar, Union

from homept.documents import save_documents
from homept.errors import InputError
from homept.generation import extract_patient, generate_report
from homept.schema import PatientInfo, PatientPdfResult, PatientReportResult, validate_report
from homept.services.openai_service import Completer, open_completer
from homept.services.storage_service import batch_stem, dated_directory, new_batch_timestamp
from homept.settings import ReportSettings
from homept.uploads import normalize_data_url

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

UNKNOWN_PATIENT = "Unknown"


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    size = max(1, int(size))
    for i in range(0, len(items), size):
        yield list(items[i:i + size])


async def run_in_chunks(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    chunk_size: int,
) -> List[R]:
    results: List[R] = []
    for chunk in chunked(list(items), chunk_size):
        results.extend(await asyncio.gather(*(worker(item) for item in chunk)))
    return results


@dataclass(frozen=True)
class PatientRecord:
    patient: PatientInfo
    clinical_text: str = ""
    clinical_image: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any, index: int = 0) -> "PatientRecord":
        if not isinstance(data, Mapping) or not isinstance(data.get("patientInfo"), Mapping):
            raise InputError(f"Patient {index + 1} is missing patientInfo")
        info = dict(data["patientInfo"])
        info.setdefault("id", f"patient-{index}")
        try:
            patient = PatientInfo.model_validate(info)
        except ValueError as e:
            raise InputError(f"Patient {index + 1} has invalid patientInfo: {e}") from e
        return cls(
            patient=patient,
            clinical_text=str(data.get("clinicalText") or ""),
            clinical_image=normalize_data_url(data.get("clinicalImageBase64")),
        )


@dataclass(frozen=True)
class ReportEntry:
    patient_id: str
    report: Any

    @classmethod
    def from_json(cls, data: Any, index: int = 0) -> "ReportEntry":
        # a malformed entry still gets a result of its own, failing at validation
        if not isinstance(data, Mapping):
            return cls(patient_id=f"patient-{index}", report=data)
        return cls(patient_id=str(data.get("patientId") or f"patient-{index}"), report=data.get("report"))


@dataclass(frozen=True)
class BatchRun:
    reports: List[PatientReportResult]
    documents: List[PatientPdfResult]
    output_dir: str
    batch_timestamp: str


def _name_from_payload(report: Any) -> str:
    if isinstance(report, Mapping):
        info = report.get("patientInformation")
        if isinstance(info, Mapping) and isinstance(info.get("name"), str) and info["name"]:
            return info["name"]
    name = getattr(getattr(report, "patient_information", None), "name", None)
    return name or UNKNOWN_PATIENT


async def extract_patients(
    images: Sequence[Union[str, bytes]],
    settings: ReportSettings,
    complete: Optional[Completer] = None,
) -> List[PatientInfo]:
    async with open_completer(settings.openai_api_key, settings.timeout, complete) as c:
        async def worker(item):
            index, image = item
            return await extract_patient(image, index, settings, c)

        return await run_in_chunks(list(enumerate(images)), worker, settings.chunk_size)


def _input_failure(data: Any, index: int, e: InputError) -> PatientReportResult:
    info = data.get("patientInfo") if isinstance(data, Mapping) else None
    info = info if isinstance(info, Mapping) else {}
    patient_id = str(info.get("id") or f"patient-{index}")
    logger.warning("Rejected input for %s: %s", patient_id, e.message)
    return PatientReportResult(
        patient_id=patient_id,
        patient_name=str(info.get("name") or UNKNOWN_PATIENT),
        status="error",
        error=e.message,
        stage=e.stage,
    )


async def generate_reports(
    records: Sequence[Union[PatientRecord, Mapping[str, Any]]],
    settings: ReportSettings,
    complete: Optional[Completer] = None,
) -> List[PatientReportResult]:
    """Records may be raw request entries; each is parsed in its own worker."""
    async with open_completer(settings.openai_api_key, settings.timeout, complete) as c:
        async def worker(item) -> PatientReportResult:
            index, record = item
            if not isinstance(record, PatientRecord):
                try:
                    record = PatientRecord.from_json(record, index)
                except InputError as e:
                    return _input_failure(record, index, e)
            patient = record.patient
            try:
                report = await generate_report(patient, record.clinical_text, record.clinical_image, settings, c)
            except Exception as e:
                stage = getattr(e, "stage", "generation")
                logger.warning("Report generation failed for %s at %s: %s", patient.id, stage, e)
                return PatientReportResult(
                    patient_id=patient.id,
                    patient_name=patient.name or UNKNOWN_PATIENT,
                    status="error",
                    error=str(e),
                    stage=stage,
                )
            return PatientReportResult(
                patient_id=patient.id,
                patient_name=patient.name,
                status="success",
                report=report,
            )

        return await run_in_chunks(list(enumerate(records)), worker, settings.chunk_size)


async def persist_reports(
    entries: Sequence[ReportEntry],
    batch_timestamp: str,
    output_dir: str,
    chunk_size: int = 2,
) -> List[PatientPdfResult]:
    """Validate, render and write one PDF/DOCX pair per entry."""

    async def worker(entry: ReportEntry) -> PatientPdfResult:
        try:
            report = validate_report(entry.report)
            stem = batch_stem(report.patient_information.name, batch_timestamp)
            saved = await asyncio.to_thread(save_documents, report, output_dir, stem)
        except Exception as e:
            stage = getattr(e, "stage", "persist")
            logger.error("Error creating documents for patient %s at %s: %s", entry.patient_id, stage, e)
            return PatientPdfResult(
                patient_id=entry.patient_id,
                patient_name=_name_from_payload(entry.report),
                status="error",
                error=str(e),
                stage=stage,
            )
        return PatientPdfResult(
            patient_id=entry.patient_id,
            patient_name=report.patient_information.name,
            status="success",
            pdf_path=saved.pdf_path,
            pdf_filename=saved.pdf_filename,
            docx_path=saved.docx_path,
            docx_filename=saved.docx_filename,
        )

    return await run_in_chunks(entries, worker, chunk_size)


async def run_batch(
    records: Sequence[PatientRecord],
    settings: ReportSettings,
    output_root: str,
    complete: Optional[Completer] = None,
    batch_timestamp: Optional[str] = None,
    today: Optional[date] = None,
) -> BatchRun:
    """Generate every report, then write documents for the successful ones."""
    batch_timestamp = batch_timestamp or new_batch_timestamp()
    output_dir = dated_directory(output_root, today)

    reports = await generate_reports(records, settings, complete)
    entries = [ReportEntry(r.patient_id, r.report) for r in reports if r.status == "success"]
    documents = await persist_reports(entries, batch_timestamp, output_dir, settings.chunk_size)
    return BatchRun(
        reports=reports,
        documents=documents,
        output_dir=output_dir,
        batch_timestamp=batch_timestamp,
    )
