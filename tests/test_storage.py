"""
File Naming and Storage Tests
"""
import os
import re
from datetime import date, datetime

import pytest

from homept.documents import save_documents
from homept.errors import ReportError
from homept.schema import validate_report
from homept.services.storage_service import (
    batch_stem,
    dated_directory,
    new_batch_timestamp,
    sanitize_patient_name,
    single_report_stem,
)


class TestNaming:
    """Output file names"""

    @pytest.mark.parametrize("name,expected", [
        ("Jane Doe", "Jane_Doe"),
        ("  Mary   O'Neil-Smith ", "Mary_ONeilSmith"),
        ("محمد", "Unknown"),
        ("", "Unknown"),
        ("x" * 80, "x" * 50),
    ])
    def test_sanitize_patient_name(self, name, expected):
        assert sanitize_patient_name(name) == expected

    def test_batch_stem(self):
        assert batch_stem("Jane Doe", "2026-10-18_09-30-00") == "Jane_Doe_2026-10-18_09-30-00"

    def test_batch_timestamp_format(self):
        assert new_batch_timestamp(datetime(2026, 10, 18, 9, 5, 7)) == "2026-10-18_09-05-07"
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}", new_batch_timestamp())

    def test_single_report_stem(self):
        stem = single_report_stem("Jane Doe", datetime(2026, 10, 18, 9, 5, 7, 123000))
        assert stem == "Jane_Doe_2026-10-18T09-05-07-123"

    def test_dated_directory(self, tmp_path):
        assert dated_directory(str(tmp_path), date(2026, 1, 2)) == os.path.join(str(tmp_path), "2026-01-02")


class TestSaveDocuments:
    """PDF and DOCX written side by side"""

    def test_writes_both_files(self, tmp_path, report_payload):
        out = tmp_path / "nested"
        saved = save_documents(validate_report(report_payload), str(out), "Jane_Doe_1")

        assert saved.pdf_filename == "Jane_Doe_1.pdf"
        assert saved.docx_filename == "Jane_Doe_1.docx"
        with open(saved.pdf_path, "rb") as f:
            assert f.read(4) == b"%PDF"
        with open(saved.docx_path, "rb") as f:
            assert f.read(2) == b"PK"

    def test_unwritable_directory(self, tmp_path, report_payload):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(ReportError) as exc:
            save_documents(validate_report(report_payload), str(blocker / "sub"), "stem")
        assert exc.value.stage == "persist"
