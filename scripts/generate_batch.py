import argparse
import asyncio
import json
import logging
import os

from config import get_config
from homept.batch import PatientRecord, run_batch
from homept.errors import ReportError
from homept.settings import ReportSettings
from homept.uploads import path_to_data_url


def load_records(manifest_path: str):
    """
    Manifest: {"patients": [{"patientInfo": {...}, "clinicalText": "...",
    "clinicalImagePath": "scans/p1.jpg"}]}. Image paths are relative to the manifest.
    """
    with open(manifest_path, "r", encoding="utf8") as f:
        data = json.load(f)
    patients = data.get("patients") if isinstance(data, dict) else data
    base = os.path.dirname(os.path.abspath(manifest_path))

    records = []
    for i, p in enumerate(patients or []):
        p = dict(p)
        image_path = p.pop("clinicalImagePath", None)
        if image_path:
            p["clinicalImageBase64"] = path_to_data_url(os.path.join(base, image_path))
        records.append(PatientRecord.from_json(p, i))
    return records


def main() -> None:
    ap = argparse.ArgumentParser(description="Generate home PT reports for a batch of patients")
    ap.add_argument("manifest", help="JSON file listing the patients")
    ap.add_argument("--out", default="", help="Base output folder (default BATCH_REPORTS_DIR)")
    args = ap.parse_args()

    cfg_cls = get_config()
    cfg = {k: getattr(cfg_cls, k) for k in dir(cfg_cls) if k.isupper()}
    logging.basicConfig(level=cfg.get("LOG_LEVEL", "INFO"), format="%(levelname)s %(name)s: %(message)s")

    settings = ReportSettings.from_config(cfg)
    try:
        records = load_records(args.manifest)
    except ReportError as e:
        raise SystemExit(f"Invalid manifest: {e.message}")
    except (OSError, ValueError) as e:
        raise SystemExit(f"Invalid manifest: {e}")
    if not records:
        raise SystemExit("No patients in manifest")

    run = asyncio.run(run_batch(records, settings, args.out or cfg["BATCH_REPORTS_DIR"]))

    for r in run.reports:
        if r.status == "error":
            print(f"FAILED  {r.patient_id}  {r.patient_name}  [{r.stage}] {r.error}")
    for d in run.documents:
        if d.status == "success":
            print(f"OK      {d.patient_id}  {d.pdf_path}  {d.docx_path}")
        else:
            print(f"FAILED  {d.patient_id}  {d.patient_name}  [{d.stage}] {d.error}")
    print(f"Done. Patients {len(records)}  documents {sum(1 for d in run.documents if d.status == 'success')}  folder {run.output_dir}")


if __name__ == "__main__":
    main()
