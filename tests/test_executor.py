import datetime
import logging
import os

import pytest

from photorename.executor import TargetExists, execute_plan, process_rename
from photorename.planner import PlanInvariantError, RenamePlanEntry

TS = datetime.datetime(2021, 5, 1, 10, 0, 0, tzinfo=datetime.timezone.utc)


def entry(old, new):
    e = RenamePlanEntry(old, TS)
    if new is not None:
        e.assign(new)
    return e


def test_renames_in_plan_order(make_files):
    folder = make_files("IMG_0001.jpg", "IMG_0001.xmp")
    done = execute_plan(
        [entry("IMG_0001.jpg", "2021-05-01_10-00-00.jpg"), entry("IMG_0001.xmp", "2021-05-01_10-00-00.xmp")],
        str(folder),
    )
    assert done == 2
    assert sorted(os.listdir(folder)) == ["2021-05-01_10-00-00.jpg", "2021-05-01_10-00-00.xmp"]
    assert (folder / "2021-05-01_10-00-00.jpg").read_text() == "IMG_0001.jpg"


def test_dry_run_touches_nothing_and_logs_every_entry(make_files, caplog):
    folder = make_files("a.jpg", "b.jpg")
    plan = [entry("a.jpg", "2021-05-01_10-00-00.jpg"), entry("b.jpg", "2021-05-01_10-00-00-.jpg")]

    with caplog.at_level(logging.INFO):
        done = execute_plan(plan, str(folder), dry_run=True)

    assert done == 2
    assert sorted(os.listdir(folder)) == ["a.jpg", "b.jpg"]
    dry = [r.getMessage() for r in caplog.records if r.getMessage().startswith("DRY RUN")]
    assert len(dry) == 2
    assert dry[1].endswith("2021-05-01_10-00-00-.jpg")


@pytest.mark.parametrize("new_name", [None, ""])
def test_missing_new_name_is_an_invariant_violation(make_files, new_name):
    folder = make_files("a.jpg")
    e = RenamePlanEntry("a.jpg", TS, new_name)
    with pytest.raises(PlanInvariantError):
        process_rename(e, str(folder))
    assert os.listdir(folder) == ["a.jpg"]


def test_existing_target_aborts_without_rollback(make_files):
    folder = make_files("a.jpg", "b.jpg", "2021-05-01_10-00-00-.jpg")
    plan = [entry("a.jpg", "2021-05-01_10-00-00.jpg"), entry("b.jpg", "2021-05-01_10-00-00-.jpg")]

    with pytest.raises(TargetExists):
        execute_plan(plan, str(folder))

    # first rename stays done
    assert sorted(os.listdir(folder)) == ["2021-05-01_10-00-00-.jpg", "2021-05-01_10-00-00.jpg", "b.jpg"]


def test_existing_target_aborts_in_dry_run_too(make_files):
    folder = make_files("a.jpg", "2021-05-01_10-00-00.jpg")
    with pytest.raises(TargetExists):
        execute_plan([entry("a.jpg", "2021-05-01_10-00-00.jpg")], str(folder), dry_run=True)


def test_missing_source_propagates_os_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        execute_plan([entry("gone.jpg", "2021-05-01_10-00-00.jpg")], str(tmp_path))


def test_dry_run_sees_names_freed_by_earlier_entries(make_files):
    folder = make_files("2021-05-01_10-00-00.jpg", "IMG_0001.jpg")
    plan = [
        entry("2021-05-01_10-00-00.jpg", "2020-01-01_00-00-00.jpg"),
        entry("IMG_0001.jpg", "2021-05-01_10-00-00.jpg"),
    ]

    assert execute_plan(plan, str(folder), dry_run=True) == 2
    assert sorted(os.listdir(folder)) == ["2021-05-01_10-00-00.jpg", "IMG_0001.jpg"]

    assert execute_plan(plan, str(folder)) == 2
    assert sorted(os.listdir(folder)) == ["2020-01-01_00-00-00.jpg", "2021-05-01_10-00-00.jpg"]


def test_dry_run_sees_names_taken_by_earlier_entries(make_files):
    folder = make_files("a.jpg", "b.jpg")
    plan = [entry("a.jpg", "2021-05-01_10-00-00.jpg"), entry("b.jpg", "2021-05-01_10-00-00.jpg")]
    with pytest.raises(TargetExists):
        execute_plan(plan, str(folder), dry_run=True)
    assert sorted(os.listdir(folder)) == ["a.jpg", "b.jpg"]
