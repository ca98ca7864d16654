#!/usr/bin/env python3
"""
Load the bundled reference data and report every name reference that does
not resolve (chassis patterns, drone and vehicle systems, chassis
abilities, actions, class trees and tree requirements).

Exits non-zero when the data fails to load or any reference is broken.
"""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import settings  # noqa: E402
from catalog_service import ReferenceCatalog  # noqa: E402
from record_store import load_record_store  # noqa: E402
from reference_integrity import find_reference_errors  # noqa: E402


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--data-dir", type=Path, default=settings.DATA_DIR)
    parser.add_argument("--schema-dir", type=Path, default=settings.SCHEMA_DIR)
    parser.add_argument("--skip-schema", action="store_true", help="only check base record fields")
    args = parser.parse_args(argv)

    try:
        records, schemas = load_record_store(args.data_dir, args.schema_dir, validate=not args.skip_schema)
    except RuntimeError as exc:
        print(exc)
        return 1

    catalog = ReferenceCatalog.from_records(records, schemas)
    print(f"Loaded {sum(len(v) for v in records.values())} records across {len(records)} schemas")

    errors = find_reference_errors(catalog)
    if not errors:
        print("── All references resolve ──")
        return 0

    print(f"\n── {len(errors)} broken reference(s) ──")
    for err in errors:
        print(f"  {err['schemaName']:<28} {err['message']}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
