from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from pathlib import Path
from typing import Iterable


CSV_COLUMNS = [
    "file",
    "status",
    "errors",
    "warnings",
    "infos",
    "access_key",
    "emit_name",
    "dest_name",
    "nNF",
    "serie",
    "dhEmi",
    "vNF",
]


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


def collect_xml_files(paths: Iterable[Path]) -> list[Path]:
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(sorted(p for p in path.rglob("*") if p.is_file() and p.suffix.lower() == ".xml"))
        elif path.is_file():
            files.append(path)
        else:
            raise SystemExit(f"Input not found: {path}")
    return files


def _format_amount(value: object) -> str:
    if value is None:
        return ""
    try:
        return f"{value:.2f}"
    except (TypeError, ValueError):
        return str(value)


def csv_row(name: str, report) -> list[str]:
    meta = report.meta
    return [
        name,
        "OK" if report.ok else "ERROR",
        str(report.summary.errors),
        str(report.summary.warnings),
        str(report.summary.infos),
        meta.access_key or "",
        meta.emit_name or "",
        meta.dest_name or "",
        meta.number or "",
        meta.series or "",
        meta.issued_at or "",
        _format_amount(meta.v_nf),
    ]


def write_csv(results, out_path: Path) -> None:
    with out_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(CSV_COLUMNS)
        for result in results:
            writer.writerow(csv_row(result.name, result.report))


def write_json(results, out_path: Path) -> None:
    payload = [{"file": r.name, "report": r.report.to_payload()} for r in results]
    out_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def run_nfe_audit(files: list[Path], *, max_workers: int, rules_config=None):
    _ensure_backend_on_path()
    from common.audit_engine.batch import BatchDocument, audit_batch
    from common.audit_engine.parser import decode_document

    documents = [BatchDocument(name=str(path), xml=decode_document(path.read_bytes())) for path in files]
    return audit_batch(documents, max_workers=max_workers, rules_config=rules_config)


def main(argv: list[str] | None = None) -> int:
    _ensure_backend_on_path()
    from common.audit_engine.settings import get_audit_settings, load_rules_config

    settings = get_audit_settings()
    parser = argparse.ArgumentParser(
        description="Pre-audit NF-e XML files and write JSON/CSV outputs."
    )
    parser.add_argument("inputs", nargs="+", help="XML files or directories (searched recursively).")
    parser.add_argument(
        "--output-dir",
        default=".",
        help="Output directory for nfe_audit.json and nfe_audit.csv (default: current directory).",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=settings.max_workers,
        help="Documents audited concurrently (default: NFE_AUDIT_MAX_WORKERS or 4).",
    )
    parser.add_argument(
        "--rules-config",
        default=None,
        help="JSON/YAML file with per-rule configuration (default: NFE_AUDIT_RULES_CONFIG).",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: INFO).")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    rules_path = Path(args.rules_config) if args.rules_config else settings.rules_config_path
    rules_config = load_rules_config(rules_path)

    files = collect_xml_files(Path(p) for p in args.inputs)
    if not files:
        raise SystemExit("No XML files found.")

    output_dir = Path(args.output_dir).resolve()
    output_dir.mkdir(parents=True, exist_ok=True)

    results = run_nfe_audit(files, max_workers=args.max_workers, rules_config=rules_config)

    out_json = output_dir / "nfe_audit.json"
    out_csv = output_dir / "nfe_audit.csv"
    write_json(results, out_json)
    write_csv(results, out_csv)

    failed = sum(1 for r in results if not r.report.ok)
    print(f"Audited {len(results)} file(s): {len(results) - failed} ok, {failed} with errors")
    print(f"Wrote {out_json}")
    print(f"Wrote {out_csv}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
