#!/usr/bin/env python3
"""
Reconcile submission directories with database records.

Reports directories that have no record (left behind by an interrupted
rollback) and records whose directory is missing. With --execute, orphaned
directories are removed; records are never touched.

Usage:
    python scripts/cleanup_orphaned_artifacts.py            # dry run
    python scripts/cleanup_orphaned_artifacts.py --execute
"""

import sys
from pathlib import Path
from typing import Dict, List

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from intake.artifacts import ArtifactStore
from intake.config import IntakeSettings, load_settings
from intake.identity import is_submission_id
from intake.repository import SubmissionRepository
from intake.review import ReviewQueries


def find_orphans(settings: IntakeSettings) -> Dict[str, List[str]]:
    """
    Compare submission directories against database rows.

    Returns:
        dict with:
            - orphaned_dirs: directories with no database record
            - missing_dirs: records with no directory
            - kept: submissions present in both
    """
    SubmissionRepository(settings.database_path).init_schema()
    store = ArtifactStore(settings)

    db_ids = set(ReviewQueries(settings.database_path).all_submission_ids())
    dir_ids = {d for d in store.list_submission_ids() if is_submission_id(d)}

    return {
        "orphaned_dirs": sorted(dir_ids - db_ids),
        "missing_dirs": sorted(db_ids - dir_ids),
        "kept": sorted(dir_ids & db_ids),
    }


def directory_size(path: Path) -> int:
    return sum(f.stat().st_size for f in path.rglob("*") if f.is_file())


def cleanup_orphaned_artifacts(settings: IntakeSettings, dry_run: bool = True) -> List[str]:
    """
    Remove submission directories that have no database record.

    Args:
        settings: Intake settings (submissions root and database path)
        dry_run: If True, only report what would be deleted

    Returns:
        Submission ids whose directories were removed (empty on a dry run)
    """
    report = find_orphans(settings)
    store = ArtifactStore(settings)
    orphaned = report["orphaned_dirs"]

    print("📊 Analysis Results:")
    print(f"   • Submissions with directory and record: {len(report['kept'])}")
    print(f"   • Orphaned directories (no DB record): {len(orphaned)}")
    print(f"   • Records without a directory: {len(report['missing_dirs'])}")

    for submission_id in report["missing_dirs"]:
        print(f"   ⚠️ Record {submission_id} has no directory")

    if not orphaned:
        print("\n✅ No orphaned directories found. Database and submissions are in sync.")
        return []

    total_size = 0
    print("\n🗑️  Orphaned directories:")
    for submission_id in orphaned:
        size = directory_size(store.directory_for(submission_id))
        total_size += size
        print(f"   • {submission_id} ({size / 1024:.1f} KB)")
    print(f"\n💾 Total space to free: {total_size / (1024 * 1024):.2f} MB")

    if dry_run:
        print("\n🔍 [DRY RUN] No files deleted.")
        print("   Run with --execute to actually delete files.")
        return []

    removed = [sid for sid in orphaned if store.rollback(sid)]
    print(f"\n✅ Deleted {len(removed)} of {len(orphaned)} orphaned directories")
    return removed


if __name__ == "__main__":
    dry_run = "--execute" not in sys.argv
    if dry_run:
        print("🔍 DRY RUN MODE")
        print("   Add --execute flag to actually delete files\n")
    cleanup_orphaned_artifacts(load_settings(), dry_run=dry_run)
