#!/usr/bin/env python3
"""
Check downloaded resumes in the resume directory.
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import List

import recruit_config


def list_downloaded_resumes(download_dir: str = recruit_config.RESUME_DIR) -> List[Path]:
    """Finished downloads in download_dir, newest first (Chrome partials excluded)."""
    directory = Path(download_dir)
    if not directory.exists():
        return []
    files = [
        f for f in directory.iterdir()
        if f.is_file() and not f.name.startswith('.') and not f.name.endswith('.crdownload')
    ]
    return sorted(files, key=lambda f: f.stat().st_mtime, reverse=True)


def check_downloads(download_dir: str = recruit_config.RESUME_DIR):
    """Print what has been downloaded so far."""
    print("=" * 60)
    print(f"Downloaded resumes in: {download_dir}")
    print("=" * 60)

    files = list_downloaded_resumes(download_dir)
    if not files:
        print("⚠️  No resumes downloaded yet.")
        return

    total_size = sum(f.stat().st_size for f in files)
    print(f"✓ Total files: {len(files)}")
    print(f"✓ Total size: {total_size:,} bytes ({total_size / 1024 / 1024:.2f} MB)")
    print("-" * 60)

    for i, f in enumerate(files[:20], 1):
        stat = f.stat()
        print(f"{i:3d}. {f.name}")
        print(f"     Size: {stat.st_size:,} bytes | Modified: {datetime.fromtimestamp(stat.st_mtime).strftime('%Y-%m-%d %H:%M:%S')}")

    if len(files) > 20:
        print(f"\n... and {len(files) - 20} more files")

    empty_files = [f for f in files if f.stat().st_size == 0]
    if empty_files:
        print(f"\n⚠️  Warning: {len(empty_files)} empty file(s) found:")
        for f in empty_files:
            print(f"     - {f.name}")

    print("=" * 60)


if __name__ == "__main__":
    check_downloads(sys.argv[1] if len(sys.argv) > 1 else recruit_config.RESUME_DIR)
