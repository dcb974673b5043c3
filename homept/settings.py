"""Snapshot of the app config used by the generation pipeline.

Batch work runs inside asyncio.run(), away from the Flask request, so it gets
a plain object instead of reaching for current_app.
"""
from dataclasses import dataclass, field
from typing import Any, Mapping, Tuple


@dataclass(frozen=True)
class ReportSettings:
    openai_api_key: str = ""
    model: str = "gpt-4o"
    extraction_model: str = "gpt-4o-mini"
    timeout: float = 120.0
    chunk_size: int = 2
    hospital: str = "Emirates International Hospital"
    doctor_name: str = "Dr. Farhat El Rassi"
    doctor_title: str = "Consultant Orthopedic Surgeon"
    doh_license: str = "DOH License No.: GD36956"
    facility: str = "Facility: Emirates International Hospital, Abu Dhabi, UAE"
    greeting: str = "Sincerely,"
    signature_stamp: str = "Signature & Stamp:"
    home_physio_frequency: str = "3 times per week"
    home_physio_duration: str = "6 months"
    required_medications: Tuple[str, ...] = field(
        default=("Diclofenac gel topical", "Paracetamol 650 mg")
    )

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "ReportSettings":
        defaults = cls()
        return cls(
            openai_api_key=(cfg.get("OPENAI_API_KEY") or "").strip(),
            model=cfg.get("OPENAI_MODEL") or defaults.model,
            extraction_model=cfg.get("OPENAI_EXTRACTION_MODEL") or defaults.extraction_model,
            timeout=float(cfg.get("OPENAI_TIMEOUT") or defaults.timeout),
            chunk_size=max(1, int(cfg.get("BATCH_CHUNK_SIZE") or defaults.chunk_size)),
            hospital=cfg.get("HOSPITAL_NAME") or defaults.hospital,
            doctor_name=cfg.get("DOCTOR_NAME") or defaults.doctor_name,
            doctor_title=cfg.get("DOCTOR_TITLE") or defaults.doctor_title,
            doh_license=cfg.get("DOH_LICENSE") or defaults.doh_license,
            facility=cfg.get("FACILITY") or defaults.facility,
            home_physio_frequency=cfg.get("HOME_PHYSIO_FREQUENCY") or defaults.home_physio_frequency,
            home_physio_duration=cfg.get("HOME_PHYSIO_DURATION") or defaults.home_physio_duration,
            required_medications=tuple(cfg.get("REQUIRED_MEDICATIONS") or defaults.required_medications),
        )
