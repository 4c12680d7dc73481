"""
Diagnostic: show what normalization repairs for each detail JSON file.

Reports the path taken (migrate vs renormalize) and every self-healing
step: generated ids, skipped entries, renamed keys, dropped sections.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from models import SECTION_TYPES, ProductDetailV2
from normalizer import LEGACY_DESCRIPTION_FIELDS, as_list, clean_text, ensure_detail_v2, first_present, is_detail_v2
from parser import ParseFailure, as_record, safe_parse_json_object

DATA_DIR = Path(__file__).parent / "data"

# Stands in for a blank or missing section type in dropped_section_types
UNTYPED_SECTION = "(untyped)"


@dataclass
class RepairReport:
    """Repairs applied while normalizing one detail value."""

    path: str = ""  # "renormalize" or "migrate"
    generated_gallery_ids: int = 0
    skipped_gallery_entries: int = 0
    # (key as supplied, key after dedupe) where they differ
    renamed_spec_keys: list[tuple[str, str]] = field(default_factory=list)
    renamed_group_keys: list[tuple[str, str]] = field(default_factory=list)
    dropped_section_types: list[str] = field(default_factory=list)
    skeleton_applied: bool = False
    gallery_section_prepended: bool = False
    description_seeded: bool = False

    @property
    def repair_count(self) -> int:
        return (
            self.generated_gallery_ids
            + self.skipped_gallery_entries
            + len(self.renamed_spec_keys)
            + len(self.renamed_group_keys)
            + len(self.dropped_section_types)
            + int(self.skeleton_applied)
            + int(self.gallery_section_prepended)
        )


def _renamed(raw: Any, final_keys: list[str], *key_fields: str) -> list[tuple[str, str]]:
    records = [obj for obj in (as_record(e) for e in as_list(raw)) if obj is not None]
    renamed = []
    for obj, final in zip(records, final_keys):
        supplied = clean_text(first_present(obj, *key_fields))
        if supplied != final:
            renamed.append((supplied, final))
    return renamed


def diagnose_detail(raw: Any, detail: ProductDetailV2 | None = None) -> RepairReport:
    """Describe the repairs that turned ``raw`` into ``detail``.

    ``detail`` is the result of ensure_detail_v2(raw); it is built here when
    the caller has not already done so.
    """
    report = RepairReport(path="renormalize" if is_detail_v2(raw) else "migrate")
    obj = as_record(raw) or {}
    if detail is None:
        detail = ensure_detail_v2(raw)

    for entry in as_list(obj.get("gallery")):
        if isinstance(entry, str):
            if entry.strip():
                report.generated_gallery_ids += 1
            else:
                report.skipped_gallery_entries += 1
        elif isinstance(entry, dict):
            if not clean_text(entry.get("id")):
                report.generated_gallery_ids += 1
        else:
            report.skipped_gallery_entries += 1

    report.renamed_spec_keys = _renamed(obj.get("specs"), [r.key for r in detail.specs], "key")
    report.renamed_group_keys = _renamed(
        obj.get("option_groups"), [g.key for g in detail.option_groups], "key", "id"
    )

    if report.path == "migrate":
        report.skeleton_applied = True
        report.description_seeded = any(obj.get(name) is not None for name in LEGACY_DESCRIPTION_FIELDS)
        return report

    kept_types = []
    for entry in as_list(obj.get("sections")):
        section = as_record(entry)
        if section is None:
            continue
        section_type = clean_text(section.get("type"))
        if section_type in SECTION_TYPES:
            kept_types.append(section_type)
        else:
            report.dropped_section_types.append(section_type or UNTYPED_SECTION)

    report.skeleton_applied = not kept_types
    report.gallery_section_prepended = bool(kept_types) and "gallery" not in kept_types
    return report


def diagnose_file(filepath: Path) -> dict:
    parsed = safe_parse_json_object(filepath.read_bytes())
    if isinstance(parsed, ParseFailure):
        return {"file": filepath.name, "error": parsed.error}
    return {"file": filepath.name, "report": diagnose_detail(parsed.value)}


def main():
    json_files = sorted(DATA_DIR.glob("*.json"))
    print(f"Diagnosing {len(json_files)} detail files\n")

    for filepath in json_files:
        result = diagnose_file(filepath)

        print(f"{'=' * 70}")
        print(f"  {result['file']}")
        print(f"{'=' * 70}")

        if "error" in result:
            print(f"  UNREADABLE: {result['error']}\n")
            continue

        r: RepairReport = result["report"]
        print(f"  Path: {r.path}")
        print(f"  Gallery: {r.generated_gallery_ids} ids generated, {r.skipped_gallery_entries} entries skipped")
        for before, after in r.renamed_spec_keys:
            print(f"  Spec key:  {before or '(none)':<20} -> {after}")
        for before, after in r.renamed_group_keys:
            print(f"  Group key: {before or '(none)':<20} -> {after}")
        if r.dropped_section_types:
            print(f"  Dropped sections: {r.dropped_section_types}")
        if r.skeleton_applied:
            print("  Default skeleton applied")
        if r.gallery_section_prepended:
            print("  Gallery section prepended")
        if r.description_seeded:
            print("  Legacy description seeded into richText")
        if not r.repair_count:
            print("  Already canonical!")
        print()


if __name__ == "__main__":
    main()
