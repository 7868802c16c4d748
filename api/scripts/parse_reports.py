# api/scripts/parse_reports.py
"""
Run the extractor over XML credit reports without the API.

    python api/scripts/parse_reports.py samples/            # CSV summary
    python api/scripts/parse_reports.py report.xml --json   # full records
"""
import argparse
import csv
import json
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))  # make 'app' importable from a checkout
from app.logging_config import setup_structured_logging
from app.parsers.credit_report import extract_batch

COLUMNS = ["file", "ok", "stage", "name", "pan", "creditScore", "accounts"]


def collect_files(path: str) -> list[str]:
    if os.path.isdir(path):
        return [
            os.path.join(path, f)
            for f in sorted(os.listdir(path))
            if f.lower().endswith(".xml") and os.path.isfile(os.path.join(path, f))
        ]
    return [path]


def _row(outcome) -> dict:
    if not outcome.ok:
        return {"file": outcome.filename, "ok": 0, "stage": outcome.error.stage}
    record = outcome.record
    return {
        "file": outcome.filename,
        "ok": 1,
        "stage": "",
        "name": record["name"],
        "pan": record["pan"],
        "creditScore": record["creditScore"],
        "accounts": len(record["creditAccounts"]),
    }


def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="Extract normalized records from XML credit reports")
    p.add_argument("path", help="XML file or directory of XML files")
    p.add_argument("--json", action="store_true", help="print full outcomes as JSON")
    p.add_argument("--log-level", default="WARNING")
    args = p.parse_args(argv)
    if not os.path.exists(args.path):
        p.error(f"no such file or directory: {args.path}")

    # stdout carries the report output
    setup_structured_logging(use_json=False, log_level=args.log_level, stream=sys.stderr)

    documents = []
    for fp in collect_files(args.path):
        with open(fp, "rb") as fh:
            documents.append((os.path.basename(fp), fh.read()))

    outcomes = extract_batch(documents)

    if args.json:
        print(json.dumps([o.to_dict() for o in outcomes], indent=2))
    else:
        writer = csv.DictWriter(sys.stdout, fieldnames=COLUMNS)
        writer.writeheader()
        for outcome in outcomes:
            writer.writerow(_row(outcome))

    return 0 if all(o.ok for o in outcomes) else 1


if __name__ == "__main__":
    sys.exit(main())
