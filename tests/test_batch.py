"""
Batch Orchestration Tests
"""
import asyncio
import base64
import json
import os
from datetime import date

import pytest

from homept.batch import (
    PatientRecord,
    ReportEntry,
    chunked,
    extract_patients,
    generate_reports,
    persist_reports,
    run_batch,
    run_in_chunks,
)
from homept.errors import InputError, UpstreamError
from homept.schema import PatientInfo

from conftest import patient_name_in


def record(name, index=0):
    return PatientRecord(
        patient=PatientInfo(id=f"patient-{index}", name=name, date_of_report="2026-10-18"),
        clinical_text=f"{name} has knee pain 7/10",
    )


class TestChunking:
    """Fixed-size chunks"""

    def test_chunked(self):
        assert list(chunked([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]
        assert list(chunked([], 2)) == []
        assert list(chunked([1, 2], 0)) == [[1], [2]]

    def test_order_and_concurrency_bound(self):
        in_flight = 0
        peak = 0

        async def worker(item):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            # later items of a chunk finish first
            await asyncio.sleep(0.01 * (3 - item % 3))
            in_flight -= 1
            return item * 10

        results = asyncio.run(run_in_chunks(list(range(7)), worker, 2))
        assert results == [0, 10, 20, 30, 40, 50, 60]
        assert peak == 2


class TestRecords:
    """Request payload parsing"""

    def test_patient_record_from_json(self):
        rec = PatientRecord.from_json({
            "patientInfo": {"id": "p-1", "name": "Jane Doe", "dateOfBirth": "1950-04-12"},
            "clinicalText": "Knee pain",
        })
        assert rec.patient.id == "p-1"
        assert rec.patient.gender == "Unknown"
        assert rec.clinical_text == "Knee pain"
        assert rec.clinical_image is None

    def test_missing_patient_info(self):
        with pytest.raises(InputError) as exc:
            PatientRecord.from_json({"clinicalText": "x"}, 2)
        assert "Patient 3" in exc.value.message

    def test_bare_base64_image_becomes_data_url(self, png_bytes):
        rec = PatientRecord.from_json({
            "patientInfo": {"name": "Jane"},
            "clinicalImageBase64": base64.b64encode(png_bytes).decode(),
        })
        assert rec.patient.id == "patient-0"
        assert rec.clinical_image.startswith("data:image/png;base64,")

    def test_report_entry_from_json(self):
        entry = ReportEntry.from_json({"patientId": "p-9", "report": {"x": 1}}, 0)
        assert entry.patient_id == "p-9"
        loose = ReportEntry.from_json("nope", 3)
        assert (loose.patient_id, loose.report) == ("patient-3", "nope")


class TestExtractPatients:
    """Batch identity extraction"""

    def test_one_result_per_image_in_order(self, settings, fake_completer):
        def respond(system_prompt, user_content, schema_name):
            url = user_content[1]["image_url"]["url"]
            if url.endswith("bad"):
                return UpstreamError("unreadable")
            return json.dumps({
                "name": url.rsplit(",", 1)[1], "dateOfBirth": "Unknown", "gender": "Unknown",
                "mrn": "Unknown", "dateOfReport": "2026-10-18",
            })

        images = ["data:image/png;base64,first", "data:image/png;base64,bad", "data:image/png;base64,third"]
        patients = asyncio.run(extract_patients(images, settings, fake_completer(respond)))

        assert [p.name for p in patients] == ["first", "Patient 2 (Extraction Failed)", "third"]
        assert [p.image_index for p in patients] == [0, 1, 2]
        assert len({p.id for p in patients}) == 3

    def test_unreadable_upload_only_fails_its_own_image(self, settings, fake_completer, png_bytes):
        complete = fake_completer(lambda *a: json.dumps({
            "name": "Jane Doe", "dateOfBirth": "Unknown", "gender": "Unknown",
            "mrn": "Unknown", "dateOfReport": "2026-10-18",
        }))
        patients = asyncio.run(extract_patients([png_bytes, b"garbage", png_bytes], settings, complete))

        assert [p.name for p in patients] == ["Jane Doe", "Patient 2 (Extraction Failed)", "Jane Doe"]
        assert "not a readable image" in patients[1].extraction_error
        assert len(complete.calls) == 2
        assert complete.calls[0]["user_content"][1]["image_url"]["url"].startswith("data:image/png;base64,")


class TestGenerateReports:
    """Per-patient failure isolation"""

    def test_failure_does_not_cancel_siblings(self, settings, fake_completer, make_report):
        def respond(system_prompt, user_content, schema_name):
            name = patient_name_in(user_content)
            if name == "John Roe":
                return UpstreamError("LLM request failed: timeout")
            return json.dumps(make_report(name))

        records = [record("Jane Doe", 0), record("John Roe", 1), record("Mary Major", 2)]
        results = asyncio.run(generate_reports(records, settings, fake_completer(respond)))

        assert [r.status for r in results] == ["success", "error", "success"]
        assert [r.patient_name for r in results] == ["Jane Doe", "John Roe", "Mary Major"]
        assert results[0].report.patient_information.name == "Jane Doe"
        assert results[1].report is None
        assert results[1].stage == "generation"
        assert "timeout" in results[1].error

    def test_bad_entry_only_fails_its_own_record(self, settings, echo_report_completer):
        entries = [
            {"patientInfo": {"id": "p-0", "name": "Jane Doe"}, "clinicalText": "Knee pain 7/10"},
            {"patientInfo": {"id": "p-1", "name": "John Roe"}, "clinicalImageBase64": "bm90IGFuIGltYWdl"},
            {"clinicalText": "no identity"},
            {"patientInfo": {"id": "p-3", "name": "Mary Major"}, "clinicalText": "Hip pain 5/10"},
        ]
        results = asyncio.run(generate_reports(entries, settings, echo_report_completer))

        assert [r.status for r in results] == ["success", "error", "error", "success"]
        assert [r.patient_id for r in results] == ["p-0", "p-1", "patient-2", "p-3"]
        assert results[1].stage == "input"
        assert "not a readable image" in results[1].error
        assert (results[2].patient_name, results[2].stage) == ("Unknown", "input")
        assert len(echo_report_completer.calls) == 2

    def test_validation_failure_stage(self, settings, fake_completer, make_report):
        def respond(system_prompt, user_content, schema_name):
            data = make_report(patient_name_in(user_content))
            del data["conclusion"]
            return json.dumps(data)

        results = asyncio.run(generate_reports([record("Jane Doe")], settings, fake_completer(respond)))
        assert results[0].status == "error"
        assert results[0].stage == "validation"


class TestPersistReports:
    """Documents for a batch"""

    def test_writes_pairs_with_shared_stems(self, tmp_path, make_report):
        entries = [
            ReportEntry("p-0", make_report("Jane Doe")),
            ReportEntry("p-1", {"patientInformation": {"name": "Broken"}}),
            ReportEntry("p-2", make_report("Mary O'Neil")),
        ]
        results = asyncio.run(persist_reports(entries, "2026-10-18_09-30-00", str(tmp_path)))

        assert [r.status for r in results] == ["success", "error", "success"]
        assert results[0].pdf_filename == "Jane_Doe_2026-10-18_09-30-00.pdf"
        assert results[0].docx_filename == "Jane_Doe_2026-10-18_09-30-00.docx"
        assert results[2].pdf_filename == "Mary_ONeil_2026-10-18_09-30-00.pdf"
        assert os.path.isfile(results[0].pdf_path)
        assert os.path.isfile(results[0].docx_path)
        assert results[1].patient_name == "Broken"
        assert results[1].stage == "validation"

    def test_unknown_name_fallback(self, tmp_path):
        results = asyncio.run(persist_reports([ReportEntry("p-0", None)], "ts", str(tmp_path)))
        assert results[0].status == "error"
        assert results[0].patient_name == "Unknown"
        assert results[0].to_json_dict()["patientId"] == "p-0"


class TestRunBatch:
    """Generate then persist"""

    def test_dated_folder(self, tmp_path, settings, echo_report_completer):
        records = [record("Jane Doe", 0), record("John Roe", 1)]
        run = asyncio.run(run_batch(
            records, settings, str(tmp_path), echo_report_completer,
            batch_timestamp="2026-10-18_10-00-00", today=date(2026, 10, 18),
        ))

        assert run.output_dir == os.path.join(str(tmp_path), "2026-10-18")
        assert [d.status for d in run.documents] == ["success", "success"]
        assert sorted(os.listdir(run.output_dir)) == [
            "Jane_Doe_2026-10-18_10-00-00.docx",
            "Jane_Doe_2026-10-18_10-00-00.pdf",
            "John_Roe_2026-10-18_10-00-00.docx",
            "John_Roe_2026-10-18_10-00-00.pdf",
        ]
