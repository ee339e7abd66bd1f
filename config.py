#!/usr/bin/env python
"""Create the local service config and seed catalog from the shipped samples.

    config.sample.yaml  -> config.yaml   (read by start.py, or via CATALOG_CONFIG)
    sample_catalog.yaml -> catalog.yaml  (store.seed_file, loaded at startup)

Usage:
    python config.py            # create whichever of the two is missing
    python config.py --force    # replace both with fresh copies
    python config.py --no-seed  # service config only, start with an empty catalog
"""

import argparse
import shutil
from pathlib import Path

SERVICE_CONFIG = ("config.sample.yaml", "config.yaml")
SEED_CATALOG = ("sample_catalog.yaml", "catalog.yaml")


def copy_sample(root: Path, sample: str, target: str, force: bool) -> bool:
    """Copy one sample into place. Returns True if a file was written."""
    source, destination = root / sample, root / target
    if not source.exists():
        print(f"  missing sample {sample}, nothing to copy")
        return False
    if destination.exists() and not force:
        print(f"  kept {target} (pass --force to replace it)")
        return False
    shutil.copy(source, destination)
    print(f"  wrote {target} from {sample}")
    return True


def main():
    parser = argparse.ArgumentParser(description="Create config.yaml and catalog.yaml from the samples")
    parser.add_argument("--force", "-f", action="store_true", help="Replace existing files")
    parser.add_argument("--no-seed", action="store_true", help="Skip the seed catalog")
    args = parser.parse_args()

    root = Path(__file__).parent.resolve()
    pairs = [SERVICE_CONFIG] if args.no_seed else [SERVICE_CONFIG, SEED_CATALOG]
    written = sum(copy_sample(root, sample, target, args.force) for sample, target in pairs)

    if written:
        print("Start the catalog with: python start.py")


if __name__ == "__main__":
    main()
