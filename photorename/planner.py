import datetime
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from photorename import RenameAbort, SIDECAR_EXTENSION, is_photo_file
from photorename.metadata import MetadataUnavailable
from photorename.naming import format_filename, is_already_canonical, split_extension, stem
from photorename.timestamps import NoParseMatch, parse_capture_time


class PlanInvariantError(RenameAbort):
    """A plan entry reached a state the planner never produces."""


class SidecarConflict(RenameAbort):
    """A sidecar cannot follow its photo without clobbering another file."""


KEPT_CANONICAL = "already canonical"
KEPT_NO_METADATA = "metadata unavailable"


@dataclass
class RenamePlanEntry:
    original_name: str
    capture_time: datetime.datetime
    new_name: Optional[str] = None

    def assign(self, new_name: str) -> None:
        if self.new_name is not None:
            raise PlanInvariantError(
                f"'{self.original_name}' already assigned '{self.new_name}', refusing '{new_name}'"
            )
        self.new_name = new_name


@dataclass
class RenamePlan:
    entries: list = field(default_factory=list)
    reserved: set = field(default_factory=set)
    kept: dict = field(default_factory=dict)
    unavailable: list = field(default_factory=list)

    @property
    def photo_entries(self) -> list:
        return [e for e in self.entries if is_photo_file(e.original_name)]

    @property
    def sidecar_entries(self) -> list:
        return [e for e in self.entries if not is_photo_file(e.original_name)]


def list_files(directory: str) -> list[str]:
    """Names of the regular files directly inside directory, sorted by name."""
    with os.scandir(directory) as it:
        return sorted(entry.name for entry in it if entry.is_file())


def resolve_collisions(pending: Iterable[RenamePlanEntry], reserved: set) -> None:
    """
    Give every pending entry the first free canonical name, in order.
    Names already in reserved (kept files, earlier entries) are never reused.
    """
    for entry in pending:
        _, extension = split_extension(entry.original_name)
        index = 0
        candidate = format_filename(entry.capture_time, extension, index)
        while candidate in reserved:
            index += 1
            candidate = format_filename(entry.capture_time, extension, index)
        reserved.add(candidate)
        entry.assign(candidate)
        logging.info("Planned rename -> %s", candidate, extra={'target': entry.original_name})


class RenamePlanner:
    """
    Builds the full rename plan for one directory without touching it.

    reader: callable(path) -> raw date string, raising MetadataUnavailable.
    listdir / exists: filesystem collaborators, replaceable in tests.
    """

    def __init__(
        self,
        directory: str,
        reader: Callable[[str], str],
        *,
        listdir: Callable[[str], list] = list_files,
        exists: Callable[[str], bool] = os.path.exists,
    ):
        self.directory = directory
        self.reader = reader
        self.listdir = listdir
        self.exists = exists

    def _path(self, name: str) -> str:
        return os.path.join(self.directory, name)

    def capture_time(self, name: str) -> datetime.datetime:
        raw = self.reader(self._path(name))
        logging.debug("Trying to parse create date %s", raw, extra={'target': name})
        return parse_capture_time(raw)

    def classify(self, names: Iterable[str], plan: RenamePlan) -> list[RenamePlanEntry]:
        """Sort names into kept (reserved as is) and pending renames, in discovery order."""
        pending = []
        for name in names:
            if not is_photo_file(name):
                logging.debug("Skipping non-photo file", extra={'target': name})
                continue

            logging.debug("Processing %s", self._path(name), extra={'target': name})
            try:
                captured = self.capture_time(name)
            except (MetadataUnavailable, NoParseMatch) as e:
                logging.warning("Failed to get capture time, keeping name: %s", e, extra={'target': name})
                plan.reserved.add(name)
                plan.kept[name] = KEPT_NO_METADATA
                plan.unavailable.append(name)
                continue

            if is_already_canonical(name, captured):
                logging.info("Already formatted, keeping name.", extra={'target': name})
                plan.reserved.add(name)
                plan.kept[name] = KEPT_CANONICAL
                continue

            pending.append(RenamePlanEntry(name, captured))
        return pending

    def extend_sidecars(self, renames: Iterable[RenamePlanEntry]) -> list[RenamePlanEntry]:
        """
        Queue '<stem>.xmp' next to every renamed photo so it follows the photo.
        Raises SidecarConflict if any sidecar target is already taken.
        """
        sidecar_renames = []
        claimed = {}
        targets = set()
        for rename in renames:
            sidecar = stem(rename.original_name) + SIDECAR_EXTENSION
            if not self.exists(self._path(sidecar)):
                continue
            target = stem(rename.new_name) + SIDECAR_EXTENSION

            if sidecar in claimed:
                if claimed[sidecar] == target:
                    logging.debug("Sidecar already queued -> %s", target, extra={'target': sidecar})
                    continue
                raise SidecarConflict(
                    f"Sidecar {sidecar} would follow both {claimed[sidecar]} and {target}"
                )
            if target in targets:
                raise SidecarConflict(f"Sidecar target {target} is claimed twice")
            if self.exists(self._path(target)):
                raise SidecarConflict(f"Metadata {self._path(target)} already exists")

            entry = RenamePlanEntry(sidecar, rename.capture_time)
            entry.assign(target)
            claimed[sidecar] = target
            targets.add(target)
            sidecar_renames.append(entry)
            logging.info("Planned sidecar rename -> %s", target, extra={'target': sidecar})
        return sidecar_renames

    def plan(self) -> RenamePlan:
        logging.info("Looking for files in directory: %s", self.directory, extra={'target': os.path.basename(self.directory)})
        names = self.listdir(self.directory)
        plan = RenamePlan()
        pending = self.classify(names, plan)
        resolve_collisions(pending, plan.reserved)
        plan.entries = pending + self.extend_sidecars(pending)
        return plan
