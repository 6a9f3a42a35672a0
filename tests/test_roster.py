"""Roster reconciliation: parsing, idempotence, vendor resolution, deactivation sweep."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from scan2go.core.exceptions import ValidationError
from scan2go.domain.student import Student
from scan2go.domain.vendor import Vendor
from scan2go.repositories.student import StudentRepository
from scan2go.services.roster import RosterReconciler, parse_roster, resolve_columns
from tests.factories import make_student, make_vendor, roster_csv

pytestmark = pytest.mark.anyio


async def _import(session_factory, content: bytes):
    async with session_factory() as s:
        return await RosterReconciler(s).reconcile(parse_roster(content).rows)


async def _students(session_factory) -> dict[str, Student]:
    async with session_factory() as s:
        rows = (await s.execute(select(Student))).scalars().all()
    return {st.email: st for st in rows}


async def _vendor_count(session_factory) -> int:
    async with session_factory() as s:
        return (await s.execute(select(func.count()).select_from(Vendor))).scalar_one()


JANE = ("Jane Doe", "jane@inst.edu", "2024002", "Cafeteria B", "H1")
JOHN = ("John Roe", "john@inst.edu", "2024003", "Cafeteria A", "H2")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def test_header_aliases_pick_first_match():
    columns = resolve_columns(["Name", "email", "Roll Number", "vendor_name", "Hostel"])
    assert columns == {
        "name": "Name",
        "email": "email",
        "roll_number": "Roll Number",
        "vendor": "vendor_name",
        "location": "Hostel",
    }


def test_missing_required_column_aborts():
    with pytest.raises(ValidationError) as exc:
        parse_roster(b"Full Name,Email Address\nJane,jane@inst.edu\n")
    assert "Batch" in exc.value.message


def test_empty_file_is_rejected():
    with pytest.raises(ValidationError):
        parse_roster(b"\n\n")


def test_parse_keeps_line_numbers_and_skips_blank_lines():
    parsed = parse_roster(roster_csv(JANE) + b"\n" + b",".join(x.encode() for x in JOHN) + b"\n")
    assert [r.line for r in parsed.rows] == [2, 4]
    assert parsed.rows[0].location == "H1"


def test_utf8_bom_is_tolerated():
    parsed = parse_roster(b"\xef\xbb\xbf" + roster_csv(JANE))
    assert parsed.columns["name"] == "Full Name"
    assert parsed.rows[0].name == "Jane Doe"


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------

async def test_import_creates_student_and_vendor(session_factory):
    report = await _import(session_factory, roster_csv(JANE))

    assert report.created == 1 and report.updated == 0 and report.errors == 0
    assert report.vendors_created == ["Cafeteria B"]
    students = await _students(session_factory)
    jane = students["jane@inst.edu"]
    assert jane.is_active is True
    assert jane.roll_number == "2024002"
    assert jane.vendor.name == "Cafeteria B"
    assert jane.qr_code


async def test_empty_roster_never_deactivates(session_factory):
    await _import(session_factory, roster_csv(JANE))

    report = await _import(session_factory, roster_csv())

    assert report.deactivation_skipped is True
    assert report.deactivated_count == 0
    assert (await _students(session_factory))["jane@inst.edu"].is_active is True


async def test_reimport_is_idempotent(session_factory):
    first = await _import(session_factory, roster_csv(JANE, JOHN))
    before = {e: (s.vendor_id, s.is_active, s.qr_code) for e, s in (await _students(session_factory)).items()}

    second = await _import(session_factory, roster_csv(JANE, JOHN))
    after = {e: (s.vendor_id, s.is_active, s.qr_code) for e, s in (await _students(session_factory)).items()}

    assert first.created == 2
    assert second.created == 0 and second.updated == 2
    assert second.vendors_created == []
    assert second.deactivated_count == 0
    assert before == after
    assert await _vendor_count(session_factory) == 2


async def test_vendor_names_differing_in_case_and_whitespace_share_one_vendor(session_factory):
    report = await _import(
        session_factory,
        roster_csv(
            ("A One", "a1@inst.edu", "R1", "Uniworld ", ""),
            ("A Two", "a2@inst.edu", "R2", "uniworld", ""),
            ("A Three", "a3@inst.edu", "R3", "  UNIWORLD", ""),
        ),
    )

    assert report.created == 3
    assert report.vendors_created == ["Uniworld"]
    assert await _vendor_count(session_factory) == 1
    vendor_ids = {s.vendor_id for s in (await _students(session_factory)).values()}
    assert len(vendor_ids) == 1


async def test_existing_vendor_matched_by_name_fragment(session_factory):
    vendor = await make_vendor(session_factory, "Uniworld Food Court")

    report = await _import(session_factory, roster_csv(("Ann", "ann@inst.edu", "R9", "uniworld", "")))

    assert report.vendors_created == []
    assert (await _students(session_factory))["ann@inst.edu"].vendor_id == vendor.id


async def test_auto_created_vendor_uses_row_location_or_placeholder(session_factory):
    await _import(
        session_factory,
        roster_csv(
            ("Ann", "ann@inst.edu", "R1", "North Mess", "Hostel 4"),
            ("Ben", "ben@inst.edu", "R2", "South Mess", ""),
        ),
    )
    async with session_factory() as s:
        locations = dict((await s.execute(select(Vendor.name, Vendor.location))).all())
    assert locations == {"North Mess": "Hostel 4", "South Mess": "TBD"}


async def test_students_missing_from_roster_are_deactivated(session_factory):
    await _import(session_factory, roster_csv(JANE, JOHN))

    report = await _import(session_factory, roster_csv(JANE))

    assert report.deactivated_count == 1
    assert report.total_active_students == 1
    assert report.total_inactive_students == 1
    students = await _students(session_factory)
    assert students["john@inst.edu"].is_active is False
    assert students["jane@inst.edu"].is_active is True


async def test_reimport_reactivates_and_reassigns(session_factory):
    await _import(session_factory, roster_csv(JANE, JOHN))
    await _import(session_factory, roster_csv(JANE))
    qr_before = (await _students(session_factory))["john@inst.edu"].qr_code

    report = await _import(session_factory, roster_csv(JANE, ("John Roe", "john@inst.edu", "2024003", "Cafeteria B", "")))

    john = (await _students(session_factory))["john@inst.edu"]
    assert report.updated == 2
    assert john.is_active is True
    assert john.vendor.name == "Cafeteria B"
    assert john.qr_code == qr_before


async def test_bad_rows_are_reported_without_blocking_the_batch(session_factory):
    report = await _import(
        session_factory,
        roster_csv(
            JANE,
            ("Eve", "eve@gmail.com", "R7", "Cafeteria B", ""),
            ("", "nobody@inst.edu", "R8", "Cafeteria B", ""),
            JOHN,
        ),
    )

    assert report.created == 2
    assert report.errors == 2
    assert report.error_details == [
        "Row 3: Invalid email domain for eve@gmail.com",
        "Row 4: Missing required fields",
    ]
    assert set(await _students(session_factory)) == {"jane@inst.edu", "john@inst.edu"}


async def test_row_that_fails_to_save_is_discarded_alone(session_factory, monkeypatch):
    real_create = StudentRepository.create

    async def flaky_create(self, **kwargs):
        if kwargs.get("email") == "flaky@inst.edu":
            # the row's new vendor is already flushed inside the savepoint
            raise IntegrityError("INSERT INTO students", {}, Exception("disk hiccup"))
        return await real_create(self, **kwargs)

    monkeypatch.setattr(StudentRepository, "create", flaky_create)
    report = await _import(
        session_factory,
        roster_csv(
            JANE,
            ("Flaky Person", "flaky@inst.edu", "R9", "Cafeteria Z", ""),
            ("Zed Moss", "zed@inst.edu", "R10", "Cafeteria Z", ""),
        ),
    )

    assert report.created == 2
    assert report.errors == 1
    assert report.error_details == ["Row 3: could not be saved (IntegrityError)"]
    assert report.vendors_created == ["Cafeteria B", "Cafeteria Z"]

    students = await _students(session_factory)
    assert set(students) == {"jane@inst.edu", "zed@inst.edu"}
    async with session_factory() as s:
        zs = (await s.execute(select(Vendor).where(Vendor.name == "Cafeteria Z"))).scalars().all()
    assert len(zs) == 1
    assert students["zed@inst.edu"].vendor_id == zs[0].id


async def test_conflicting_identifiers_are_rejected(session_factory):
    vendor = await make_vendor(session_factory, "Cafeteria A")
    await make_student(session_factory, name="Ann", email="ann@inst.edu", roll_number="R1", vendor_id=vendor.id)
    await make_student(session_factory, name="Ben", email="ben@inst.edu", roll_number="R2", vendor_id=vendor.id)

    report = await _import(
        session_factory,
        roster_csv(
            ("Ann", "ann@inst.edu", "R2", "Cafeteria A", ""),  # email -> Ann, roll -> Ben
            ("Cat", "cat@inst.edu", "R1", "Cafeteria A", ""),  # roll already Ann's
            ("Ben", "ben@inst.edu", "R2", "Cafeteria A", ""),
        ),
    )

    assert report.errors == 2
    assert all("Conflicting identifiers" in e for e in report.error_details)
    students = await _students(session_factory)
    assert students["ann@inst.edu"].roll_number == "R1"
    assert "cat@inst.edu" not in students
    assert report.updated == 1


async def test_roll_number_change_for_known_email_is_an_update(session_factory):
    await _import(session_factory, roster_csv(JANE))

    report = await _import(session_factory, roster_csv(("Jane Doe", "JANE@inst.edu", "2025001", "Cafeteria B", "")))

    assert report.updated == 1 and report.errors == 0
    assert (await _students(session_factory))["jane@inst.edu"].roll_number == "2025001"


async def test_error_preview_is_capped(session_factory):
    rows = [(f"S{i}", f"s{i}@other.org", f"R{i}", "Cafeteria A", "") for i in range(15)]
    async with session_factory() as s:
        report = await RosterReconciler(s, preview_size=5).reconcile(parse_roster(roster_csv(*rows)).rows)

    assert report.errors == 15
    assert len(report.error_details) == 5
    # every row failed validation, but their emails still protect existing students
    assert report.deactivation_skipped is False
