import os
import sys
import argparse
import logging

from photorename import (
    __version__,
    configure_logging,
    RenameAbort,
    RunSummary,
)
from photorename.executor import execute_plan
from photorename.metadata import READERS, make_reader
from photorename.planner import RenamePlanner

# ------------------------------------------------------------
# helpers
# ------------------------------------------------------------

def _existing_dir(value: str) -> str:
    path = os.path.abspath(value)
    if not os.path.isdir(path):
        raise argparse.ArgumentTypeError(f"{value} is not an existing directory")
    return path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="renamebydate",
        description=(
            "Rename photos in a folder to YYYY-MM-DD_HH-MM-SS based on their capture date. "
            "Duplicates get trailing '-' characters. Matching .xmp sidecars are renamed along."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument('-v', '--version', action='version', version=f'photorename {__version__}')
    parser.add_argument('folder', type=_existing_dir, help='Folder with the photos to rename (not recursive)')
    parser.add_argument('--dry-run', action='store_true', help='Only log what would be renamed')
    parser.add_argument('--reader', choices=sorted(READERS), default='exiftool',
                        help="Where capture dates come from: the exiftool binary or the built-in EXIF reader")
    parser.add_argument('--verbose', action='store_true', help='Enable verbose output')
    return parser


# ------------------------------------------------------------
# core logic
# ------------------------------------------------------------

def run(folder: str, *, reader, dry_run: bool, summary: RunSummary) -> None:
    plan = RenamePlanner(folder, reader).plan()

    summary.inc('found', len(plan.reserved))
    summary.inc('kept', len(plan.kept) - len(plan.unavailable))
    summary.inc('unavailable', len(plan.unavailable))
    summary.inc('renamed', len(plan.photo_entries))
    summary.inc('sidecars', len(plan.sidecar_entries))

    if not plan.entries:
        logging.info("Nothing to rename.", extra={'target': os.path.basename(folder)})
        return
    execute_plan(plan.entries, folder, dry_run=dry_run)


# ------------------------------------------------------------
# CLI
# ------------------------------------------------------------

def main(argv=None):
    args = build_parser().parse_args(argv)

    configure_logging(args.verbose)
    logging.debug("Args: %s", vars(args), extra={'target': os.path.basename(args.folder)})

    s = RunSummary()
    s.set('dry_run', bool(args.dry_run))
    s.set('reader', args.reader)

    try:
        reader = make_reader(args.reader)
        run(args.folder, reader=reader, dry_run=args.dry_run, summary=s)
    except (RenameAbort, OSError) as e:
        logging.error("Aborting: %s", e, extra={'target': os.path.basename(args.folder)})
        sys.exit(1)
    except Exception:
        logging.exception("Unexpected error, aborting.", extra={'target': os.path.basename(args.folder)})
        sys.exit(1)

    verb = "Would rename" if s['dry_run'] else "Renamed"
    s.emit_lines([
        f"{verb} {s['renamed']}/{s['found']} photos and {s['sidecars']} sidecars in {s.duration_hms}.",
        f"Kept {s['kept']} already formatted, {s['unavailable']} without a usable date. Reader: {s['reader']}.",
    ])


if __name__ == "__main__":
    main()
