import logging
import os
from typing import Callable, Iterable

from photorename import RenameAbort
from photorename.planner import PlanInvariantError, RenamePlanEntry


class TargetExists(RenameAbort):
    """The target name showed up on disk after planning."""


def process_rename(
    entry: RenamePlanEntry,
    directory: str,
    *,
    dry_run: bool = False,
    exists: Callable[[str], bool] = os.path.exists,
) -> None:
    if not entry.new_name:
        raise PlanInvariantError(f"Invalid rename {entry!r}")

    old_path = os.path.join(directory, entry.original_name)
    new_path = os.path.join(directory, entry.new_name)

    if exists(new_path):
        raise TargetExists(f"Renamed file '{new_path}' already exists")

    if dry_run:
        logging.info("DRY RUN: Would be renaming %s to %s", old_path, new_path, extra={'target': entry.original_name})
    else:
        logging.info("Renaming %s to %s", old_path, new_path, extra={'target': entry.original_name})
        os.rename(old_path, new_path)


def execute_plan(entries: Iterable[RenamePlanEntry], directory: str, *, dry_run: bool = False) -> int:
    """
    Apply the renames strictly in order. Stops at the first failure, nothing is undone.
    A dry run checks targets against the directory as the earlier renames would have left it.
    """
    freed = set()
    taken = set()

    def simulated_exists(path: str) -> bool:
        name = os.path.basename(path)
        if name in taken:
            return True
        return name not in freed and os.path.exists(path)

    exists = simulated_exists if dry_run else os.path.exists
    done = 0
    for entry in entries:
        process_rename(entry, directory, dry_run=dry_run, exists=exists)
        freed.add(entry.original_name)
        freed.discard(entry.new_name)
        taken.add(entry.new_name)
        taken.discard(entry.original_name)
        done += 1
    return done
