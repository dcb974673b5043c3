"""
API Blueprint

Single-report flow:
- POST /api/generate-report      multipart form -> report + PDF/DOCX on disk
- POST /api/create-pdf           report JSON -> PDF/DOCX on disk

Batch flow (the UI lets a reviewer correct identities between steps):
- POST /api/extract-patients        patient screenshots -> identities
- POST /api/generate-reports-batch  identities + clinical input -> reports
- POST /api/create-pdfs-batch       reports -> PDF/DOCX pairs in a dated folder
"""
import asyncio
import re

from flask import Blueprint, current_app, jsonify, request

from homept.batch import (
    ReportEntry,
    extract_patients,
    generate_reports,
    persist_reports,
)
from homept.documents import save_documents
from homept.errors import ReportError, ReportValidationError
from homept.generation import generate_single_report
from homept.schema import validate_report
from homept.services.storage_service import dated_directory, single_report_stem
from homept.settings import ReportSettings
from homept.uploads import upload_to_data_url

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _settings() -> ReportSettings:
    return ReportSettings.from_config(current_app.config)


def _has_file(f) -> bool:
    return f is not None and bool(f.filename)


def _report_error(e: ReportError, what: str):
    if e.status_code >= 500:
        current_app.logger.error("%s failed at %s: %s", what, e.stage, e.message)
    return jsonify(e.to_dict()), e.status_code


def _unexpected_error(e: Exception, error: str):
    current_app.logger.exception(error)
    return jsonify({"error": error, "message": f"{type(e).__name__}: {e}"}), 500


@api_bp.route("/generate-report", methods=["POST"])
def generate_report():
    patient_file = request.files.get("patientInfoImage")
    clinical_file = request.files.get("clinicalImage")
    clinical_text = (request.form.get("clinicalText") or "").strip()

    if not _has_file(patient_file):
        return jsonify({"error": "Patient information image is required"}), 400
    if not clinical_text and not _has_file(clinical_file):
        return jsonify({"error": "At least one of clinical text or clinical image is required"}), 400

    try:
        patient_image = upload_to_data_url(patient_file, "patientInfoImage")
        clinical_image = upload_to_data_url(clinical_file, "clinicalImage") if _has_file(clinical_file) else None
        report = asyncio.run(generate_single_report(patient_image, clinical_text, clinical_image, _settings()))
        stem = single_report_stem(report.patient_information.name)
        saved = save_documents(report, current_app.config["REPORTS_DIR"], stem)
    except ReportError as e:
        return _report_error(e, "Report generation")
    except Exception as e:
        return _unexpected_error(e, "Failed to generate report")

    return jsonify({
        "success": True,
        "report": report.to_json_dict(),
        "pdfPath": saved.pdf_path,
        "pdfFilename": saved.pdf_filename,
        "docxPath": saved.docx_path,
        "docxFilename": saved.docx_filename,
    }), 200


@api_bp.route("/create-pdf", methods=["POST"])
def create_pdf():
    payload = request.get_json(silent=True)
    if payload is None:
        return jsonify({"error": "Report JSON body is required"}), 400

    try:
        report = validate_report(payload)
    except ReportValidationError as e:
        return jsonify(e.to_dict()), 400

    try:
        stem = single_report_stem(report.patient_information.name)
        saved = save_documents(report, current_app.config["REPORTS_DIR"], stem)
    except ReportError as e:
        return _report_error(e, "PDF creation")
    except Exception as e:
        return _unexpected_error(e, "Failed to create PDF")

    return jsonify({
        "success": True,
        "pdfPath": saved.pdf_path,
        "pdfFilename": saved.pdf_filename,
        "docxPath": saved.docx_path,
        "docxFilename": saved.docx_filename,
    }), 200


@api_bp.route("/extract-patients", methods=["POST"])
def extract_patients_route():
    files = [f for f in request.files.getlist("patientImages") if _has_file(f)]
    max_images = int(current_app.config.get("MAX_PATIENT_IMAGES", 10))

    if not files:
        return jsonify({"error": "No patient images provided"}), 400
    if len(files) > max_images:
        return jsonify({"error": f"Maximum {max_images} patient images allowed"}), 400

    try:
        # unreadable files become placeholder patients, not a failed request
        images = [f.read() for f in files]
        patients = asyncio.run(extract_patients(images, _settings()))
    except ReportError as e:
        return _report_error(e, "Patient extraction")
    except Exception as e:
        return _unexpected_error(e, "Failed to extract patient information")

    return jsonify({"success": True, "patients": [p.to_json_dict() for p in patients]}), 200


@api_bp.route("/generate-reports-batch", methods=["POST"])
def generate_reports_batch():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "JSON object body is required"}), 400
    patients = payload.get("patients") or []
    if not isinstance(patients, list) or not patients:
        return jsonify({"error": "No patients data provided"}), 400

    try:
        results = asyncio.run(generate_reports(patients, _settings()))
    except ReportError as e:
        return _report_error(e, "Batch report generation")
    except Exception as e:
        return _unexpected_error(e, "Failed to generate reports")

    failed = sum(1 for r in results if r.status == "error")
    current_app.logger.info("Generated %s reports, %s failed", len(results) - failed, failed)
    return jsonify({"success": True, "reports": [r.to_json_dict() for r in results]}), 200


@api_bp.route("/create-pdfs-batch", methods=["POST"])
def create_pdfs_batch():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "JSON object body is required"}), 400
    reports = payload.get("reports") or []
    batch_timestamp = str(payload.get("batchTimestamp") or "").strip()

    if not isinstance(reports, list) or not reports:
        return jsonify({"error": "No reports provided"}), 400
    if not batch_timestamp:
        return jsonify({"error": "Batch timestamp is required"}), 400
    batch_timestamp = re.sub(r"[^A-Za-z0-9_-]", "-", batch_timestamp)

    try:
        entries = [ReportEntry.from_json(r, i) for i, r in enumerate(reports)]
        output_dir = dated_directory(current_app.config["BATCH_REPORTS_DIR"])
        results = asyncio.run(persist_reports(entries, batch_timestamp, output_dir, _settings().chunk_size))
    except ReportError as e:
        return _report_error(e, "PDF batch")
    except Exception as e:
        return _unexpected_error(e, "Failed to create PDFs")

    return jsonify({"success": True, "results": [r.to_json_dict() for r in results]}), 200
