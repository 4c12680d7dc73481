"""
Batch normalizer for product detail JSON.

Runs every data/*.json file through: safe parse -> ensure_detail_v2 ->
repair report, then writes the canonical details to details.json.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path

import orjson

from diagnostics import RepairReport, diagnose_detail
from models import dump_detail
from normalizer import ensure_detail_v2
from parser import ParseFailure, safe_parse_json_object

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
OUTPUT_FILE = Path(__file__).parent / "details.json"


@dataclass
class FileResult:
    filename: str
    detail: dict | None = None
    report: RepairReport | None = None
    error: str | None = None
    elapsed: float = 0.0


def process_file(filepath: Path) -> FileResult:
    """Parse and normalize a single detail file. Never raises on bad content."""
    logger.info(f"Processing {filepath.name}...")
    t0 = time.monotonic()

    parsed = safe_parse_json_object(filepath.read_bytes())
    if isinstance(parsed, ParseFailure):
        logger.error(f"  {filepath.name}: {parsed.error}")
        return FileResult(filename=filepath.name, error=parsed.error, elapsed=time.monotonic() - t0)

    model = ensure_detail_v2(parsed.value)
    detail = dump_detail(model)
    report = diagnose_detail(parsed.value, model)
    elapsed = time.monotonic() - t0

    logger.info(
        f"  Result: {report.path} | "
        f"Gallery: {len(detail['gallery'])}, "
        f"Specs: {len(detail['specs'])}, "
        f"Option groups: {len(detail['option_groups'])}, "
        f"Sections: {len(detail['sections'])} | "
        f"Repairs: {report.repair_count}"
    )
    return FileResult(filename=filepath.name, detail=detail, report=report, elapsed=elapsed)


def process_all(data_dir: Path | None = None) -> list[FileResult]:
    json_files = sorted((data_dir or DATA_DIR).glob("*.json"))
    logger.info(f"Found {len(json_files)} detail files to normalize")
    return [process_file(f) for f in json_files]


def print_report(results: list[FileResult], wall_clock: float) -> None:
    """Print a summary of what was normalized and repaired."""
    ok = [r for r in results if r.error is None]
    failed = [r for r in results if r.error is not None]

    print(f"\n{'='*70}")
    print("NORMALIZATION REPORT")
    print(f"{'='*70}")

    print(f"\n── Reliability ──")
    print(f"  Files attempted:  {len(results)}")
    print(f"  Normalized:       {len(ok)}")
    print(f"  Unreadable:       {len(failed)}")
    for r in failed:
        print(f"    {r.filename:<25} {r.error}")

    if not ok:
        print("\n  Nothing normalized.")
        return

    print(f"\n── Paths ──")
    migrated = sum(1 for r in ok if r.report.path == "migrate")
    print(f"  Legacy migrated:  {migrated}/{len(ok)}")
    print(f"  Re-normalized:    {len(ok) - migrated}/{len(ok)}")

    print(f"\n── Repairs ──")
    print(f"  {'File':<25} {'Ids':>5} {'Skip':>5} {'Keys':>5} {'Drop':>5} {'Skel':>5} {'Desc':>5}")
    print(f"  {'-'*57}")
    for r in ok:
        rep = r.report
        keys = len(rep.renamed_spec_keys) + len(rep.renamed_group_keys)
        print(f"  {r.filename:<25} {rep.generated_gallery_ids:>5} {rep.skipped_gallery_entries:>5} "
              f"{keys:>5} {len(rep.dropped_section_types):>5} "
              f"{'yes' if rep.skeleton_applied else '-':>5} "
              f"{'yes' if rep.description_seeded else '-':>5}")

    print(f"\n── Timing ──")
    print(f"  Wall clock (total):  {wall_clock:.3f}s")
    print(f"  Sum per file:        {sum(r.elapsed for r in results):.3f}s")

    print(f"\n{'='*70}")


def main() -> None:
    t_wall_start = time.monotonic()
    results = process_all()
    wall_clock = time.monotonic() - t_wall_start

    details = [r.detail for r in results if r.detail is not None]
    OUTPUT_FILE.write_bytes(orjson.dumps(details, option=orjson.OPT_INDENT_2))
    logger.info(f"Wrote {len(details)} details to {OUTPUT_FILE}")

    print_report(results, wall_clock)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    main()
