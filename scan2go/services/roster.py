"""Roster reconciliation: bring the Student Registry in line with an uploaded CSV.

Two phases, each its own transaction:

  1. create/update: every row is applied in input order inside a SAVEPOINT, so
     a bad row is discarded on its own while the rest of the batch commits
     together. Vendors auto-created by earlier rows are visible to later ones
     through a lookup table that lives only for this run.
  2. deactivation sweep: after phase 1 commits, every active student whose
     email is absent from the roster is deactivated. The sweep is skipped
     outright when the roster yielded no emails at all.

Between the two commits a reader can briefly see students that are about to
be deactivated still marked active; no other intermediate state is visible.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from scan2go.core.config import settings
from scan2go.core.exceptions import ValidationError
from scan2go.domain.student import new_qr_token
from scan2go.repositories.student import StudentRepository
from scan2go.repositories.vendor import (
    VendorRepository,
    compact_vendor_name,
    normalize_vendor_name,
)
from scan2go.schemas.roster import ProcessedStudent, ReconciliationReport

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Header aliases, checked in order and case-sensitively; first match wins
# ---------------------------------------------------------------------------

HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("Full Name", "Name", "name", "full_name", "FullName"),
    "email": ("Email Address", "Email", "email", "EmailAddress", "email_address"),
    "roll_number": ("Batch", "batch", "Roll Number", "roll_number", "RollNumber"),
    "vendor": ("Vendor", "vendor", "Vendor Name", "vendor_name"),
    "location": ("Hostel :", "Hostel", "hostel", "Location", "location"),
}
REQUIRED_FIELDS: tuple[str, ...] = ("name", "email", "roll_number", "vendor")

DEFAULT_VENDOR_LOCATION = "TBD"


@dataclass(frozen=True)
class RosterRow:
    """One data row of a roster, with the CSV line it came from."""

    line: int
    name: str
    email: str
    roll_number: str
    vendor: str
    location: str | None = None


@dataclass
class ParsedRoster:
    headers: list[str]
    columns: dict[str, str | None]
    rows: list[RosterRow]


class RowRejected(Exception):
    """A roster row that cannot be applied; recorded in the report, never fatal."""


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def resolve_columns(headers: Sequence[str]) -> dict[str, str | None]:
    """Map each logical field to the first accepted header present.

    Raises ValidationError when a required column cannot be located, which
    aborts the import before anything is written.
    """
    present = set(headers)
    columns: dict[str, str | None] = {}
    for field_name, aliases in HEADER_ALIASES.items():
        columns[field_name] = next((a for a in aliases if a in present), None)

    missing = [f for f in REQUIRED_FIELDS if columns[f] is None]
    if missing:
        expected = "; ".join(f"{f}: {', '.join(HEADER_ALIASES[f])}" for f in missing)
        raise ValidationError(
            f"CSV is missing required column(s). Accepted headers: {expected}. "
            f"Found: {', '.join(headers) or '(none)'}"
        )
    return columns


def parse_roster(content: bytes) -> ParsedRoster:
    """Parse CSV bytes into roster rows, preserving order and line numbers."""
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("CSV file must be UTF-8 encoded")

    reader = csv.reader(io.StringIO(text))
    headers: list[str] | None = None
    raw_rows: list[tuple[int, list[str]]] = []
    for record in reader:
        cells = [c.strip() for c in record]
        if not any(cells):
            continue  # blank line
        if headers is None:
            headers = cells
        else:
            raw_rows.append((reader.line_num, cells))

    if headers is None:
        raise ValidationError("CSV file is empty")

    columns = resolve_columns(headers)
    positions = {f: headers.index(h) for f, h in columns.items() if h is not None}

    def cell(cells: list[str], field_name: str) -> str:
        pos = positions.get(field_name)
        if pos is None or pos >= len(cells):
            return ""
        return cells[pos]

    rows = [
        RosterRow(
            line=line,
            name=cell(cells, "name"),
            email=cell(cells, "email"),
            roll_number=cell(cells, "roll_number"),
            vendor=cell(cells, "vendor"),
            location=cell(cells, "location") or None,
        )
        for line, cells in raw_rows
    ]
    logger.info("Parsed roster: %d rows, columns=%s", len(rows), columns)
    return ParsedRoster(headers=headers, columns=columns, rows=rows)


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------

@dataclass
class _RunState:
    created: int = 0
    updated: int = 0
    errors: list[str] = field(default_factory=list)
    vendors_created: list[str] = field(default_factory=list)
    processed: list[ProcessedStudent] = field(default_factory=list)

    def fail(self, row: RosterRow, reason: str) -> None:
        message = f"Row {row.line}: {reason}"
        self.errors.append(message)
        logger.warning("Roster import: %s", message)


class RosterReconciler:
    """Applies one roster snapshot to the registry. Instantiate per import run."""

    def __init__(self, session: AsyncSession, preview_size: int | None = None):
        self._session = session
        self._students = StudentRepository(session)
        self._vendors = VendorRepository(session)
        self._preview = preview_size if preview_size is not None else settings.import_error_preview

    async def reconcile(self, rows: Sequence[RosterRow]) -> ReconciliationReport:
        state = _RunState()
        vendor_index = await self._vendors.name_index()

        # Phase 1: create / update, committed as one unit
        for row in rows:
            await self._apply_row(row, vendor_index, state)
        await self._session.commit()

        # Phase 2: deactivation sweep over the committed registry
        keep_emails = {r.email.strip().lower() for r in rows if r.email.strip()}
        deactivated = 0
        if keep_emails:
            deactivated = await self._students.deactivate_missing(keep_emails)
            await self._session.commit()
        else:
            logger.warning("Roster produced no emails; skipping deactivation sweep")

        total_active = await self._students.count({"is_active": True})
        total_inactive = await self._students.count({"is_active": False})
        processed = state.created + state.updated

        logger.info(
            "Roster import complete: rows=%d processed=%d (created=%d updated=%d) "
            "errors=%d vendors_created=%d deactivated=%d",
            len(rows), processed, state.created, state.updated,
            len(state.errors), len(state.vendors_created), deactivated,
        )
        return ReconciliationReport(
            message="CSV processed successfully",
            total_rows=len(rows),
            processed=processed,
            created=state.created,
            updated=state.updated,
            errors=len(state.errors),
            error_details=state.errors[: self._preview],
            vendors_created=state.vendors_created,
            deactivated_count=deactivated,
            deactivation_skipped=not keep_emails,
            total_active_students=total_active,
            total_inactive_students=total_inactive,
            processed_students=state.processed[: self._preview],
        )

    # ------------------------------------------------------------------
    # Per-row work
    # ------------------------------------------------------------------

    def _validate(self, row: RosterRow) -> str | None:
        if not (row.name and row.email and row.roll_number and row.vendor):
            return "Missing required fields"
        if not settings.is_institutional_email(row.email):
            return f"Invalid email domain for {row.email}"
        return None

    async def _apply_row(self, row: RosterRow, vendor_index: dict[str, str], state: _RunState) -> None:
        problem = self._validate(row)
        if problem:
            state.fail(row, problem)
            return

        try:
            async with self._session.begin_nested():
                vendor_id, new_vendor = await self._resolve_vendor(row, vendor_index)
                status = await self._upsert_student(row, vendor_id)
        except RowRejected as exc:
            state.fail(row, str(exc))
            return
        except SQLAlchemyError as exc:
            state.fail(row, f"could not be saved ({exc.__class__.__name__})")
            return

        # Only remember vendors whose savepoint actually committed
        vendor_index[normalize_vendor_name(row.vendor)] = vendor_id
        if new_vendor:
            vendor_index.setdefault(compact_vendor_name(row.vendor), vendor_id)
            state.vendors_created.append(new_vendor)

        if status == "created":
            state.created += 1
        else:
            state.updated += 1
        state.processed.append(
            ProcessedStudent(
                name=row.name,
                email=row.email.strip().lower(),
                roll_number=row.roll_number,
                vendor=row.vendor.strip(),
                status=status,
            )
        )

    async def _resolve_vendor(self, row: RosterRow, vendor_index: dict[str, str]) -> tuple[str, str | None]:
        """Return (vendor_id, name-if-newly-created)."""
        clean = row.vendor.strip()
        vendor_id = vendor_index.get(normalize_vendor_name(clean)) or vendor_index.get(
            compact_vendor_name(clean)
        )
        if vendor_id:
            return vendor_id, None

        existing = await self._vendors.find_by_name_fragment(clean)
        if existing:
            logger.debug("Vendor %r matched existing %r by name fragment", clean, existing.name)
            return existing.id, None

        vendor = await self._vendors.create(
            name=clean,
            location=row.location or DEFAULT_VENDOR_LOCATION,
            description="Auto-created from CSV import",
        )
        logger.info("Created vendor %r during roster import", clean)
        return vendor.id, clean

    async def _upsert_student(self, row: RosterRow, vendor_id: str) -> str:
        email = row.email.strip().lower()
        roll = row.roll_number.strip()

        by_email = await self._students.get_by_email(email)
        by_roll = await self._students.get_by_roll_number(roll)

        if by_email and by_roll and by_email.id != by_roll.id:
            raise RowRejected(
                f"Conflicting identifiers: {email} belongs to roll number "
                f"{by_email.roll_number} but roll number {roll} belongs to {by_roll.email}"
            )
        if by_email is None and by_roll is not None:
            raise RowRejected(
                f"Conflicting identifiers: roll number {roll} is already assigned to {by_roll.email}"
            )

        location = row.location or DEFAULT_VENDOR_LOCATION
        if by_email is not None:
            by_email.name = row.name.strip()
            by_email.roll_number = roll
            by_email.vendor_id = vendor_id
            by_email.vendor_location = location
            by_email.is_active = True
            await self._session.flush()
            return "updated"

        await self._students.create(
            name=row.name.strip(),
            email=email,
            roll_number=roll,
            vendor_id=vendor_id,
            vendor_location=location,
            is_active=True,
            qr_code=new_qr_token(),
        )
        return "created"
