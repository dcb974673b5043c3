"""Where generated documents are written and what they are called."""
from __future__ import annotations

import os
import re
from datetime import date, datetime
from typing import Optional


def ensure_directory(path: str) -> str:
    os.makedirs(path, exist_ok=True)
    return path


def dated_directory(base: str, today: Optional[date] = None) -> str:
    """base/YYYY-MM-DD, one folder per calendar day of batch runs."""
    today = today or date.today()
    return os.path.join(os.path.expanduser(base), today.isoformat())


def write_file(path: str, data: bytes) -> str:
    with open(path, "wb") as f:
        f.write(data)
    return path


def sanitize_patient_name(name: str, limit: int = 50) -> str:
    s = re.sub(r"[^a-zA-Z0-9\s]", "", name or "")
    s = re.sub(r"\s+", "_", s.strip())
    return s[:limit] or "Unknown"


def batch_stem(patient_name: str, batch_timestamp: str) -> str:
    """PDF and DOCX of one patient in one batch share this stem."""
    return f"{sanitize_patient_name(patient_name)}_{batch_timestamp}"


def new_batch_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return now.strftime("%Y-%m-%d_%H-%M-%S")


def single_report_stem(patient_name: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    token = re.sub(r"[^a-zA-Z0-9]", "_", patient_name or "")[:30] or "Unknown"
    stamp = re.sub(r"[:.]", "-", now.isoformat(timespec="milliseconds"))
    return f"{token}_{stamp}"
