"""Repository for bookings, their attendees and calendar references.

Uses SQLite (via TursoClient) for persistence. Calendar references of a
booking are only ever replaced as a whole, inside one transaction.
"""

import json
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from roundrobin.db.turso import TursoClient, rows_as_dicts
from roundrobin.models import Attendee, Booking, CalendarReference
from roundrobin.reassignment.ports import AttendeePatch, BookingPatch
from roundrobin.repositories.user_repo import UserRepository

BOOKING_COLUMNS = (
    "id, uid, title, description, start_time, end_time, location, user_id, "
    "user_primary_email, event_type_id, responses, custom_inputs"
)
REFERENCE_COLUMNS = (
    "type, uid, meeting_id, meeting_password, meeting_url, "
    "external_calendar_id, credential_id"
)


class BookingNotFoundError(LookupError):
    """Raised when updating a booking that doesn't exist."""


class BookingRepository:
    """Repository for bookings.

    Bookings are read with their organizer, attendees (in insertion order)
    and current calendar references.
    """

    def __init__(self, db_client: TursoClient, users: UserRepository):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
            users: Repository used to load organizers
        """
        self._db = db_client
        self._users = users

    async def initialize(self) -> None:
        """Create booking tables if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS bookings (
                id INTEGER PRIMARY KEY,
                uid TEXT NOT NULL UNIQUE,
                title TEXT NOT NULL,
                description TEXT,
                start_time TEXT NOT NULL,
                end_time TEXT NOT NULL,
                location TEXT,
                user_id INTEGER,
                user_primary_email TEXT,
                event_type_id INTEGER,
                responses TEXT,
                custom_inputs TEXT,
                updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS attendees (
                id INTEGER PRIMARY KEY,
                booking_id INTEGER NOT NULL,
                name TEXT NOT NULL DEFAULT '',
                email TEXT NOT NULL,
                time_zone TEXT NOT NULL DEFAULT 'UTC',
                locale TEXT,
                phone_number TEXT
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS booking_references (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                booking_id INTEGER NOT NULL,
                type TEXT NOT NULL,
                uid TEXT NOT NULL,
                meeting_id TEXT,
                meeting_password TEXT,
                meeting_url TEXT,
                external_calendar_id TEXT,
                credential_id INTEGER
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_attendees_booking
            ON attendees(booking_id)
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_references_booking
            ON booking_references(booking_id)
            """,
            ]
        )

    async def create_booking(self, booking: Booking) -> Booking:
        """Insert a booking with its attendees and references."""
        statements: list[tuple[str, list[Any]]] = [
            (
                f"INSERT INTO bookings ({BOOKING_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    booking.id,
                    booking.uid,
                    booking.title,
                    booking.description,
                    booking.start_time.isoformat(),
                    booking.end_time.isoformat(),
                    booking.location,
                    booking.user_id if booking.user is None else booking.user.id,
                    booking.user_primary_email,
                    booking.event_type_id,
                    json.dumps(booking.responses),
                    json.dumps(booking.custom_inputs)
                    if booking.custom_inputs is not None
                    else None,
                ],
            )
        ]
        for attendee in booking.attendees:
            statements.append(
                (
                    """
                    INSERT INTO attendees
                        (id, booking_id, name, email, time_zone, locale, phone_number)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        attendee.id,
                        booking.id,
                        attendee.name,
                        attendee.email,
                        attendee.time_zone,
                        attendee.locale,
                        attendee.phone_number,
                    ],
                )
            )
        statements.extend(self._reference_inserts(booking.id, booking.references))
        await self._db.execute_transaction(statements)
        return await self.get_booking(booking.id)

    async def get_booking(self, booking_id: int) -> Booking | None:
        """Load a booking with organizer, attendees and references.

        Args:
            booking_id: Booking identifier

        Returns:
            Booking or None if not found
        """
        result = await self._db.execute(
            f"SELECT {BOOKING_COLUMNS} FROM bookings WHERE id = ?", [booking_id]
        )
        rows = rows_as_dicts(result)
        if not rows:
            return None
        row = rows[0]

        attendees = await self._attendees(booking_id)
        references = await self._references("booking_id = ?", [booking_id])
        user = await self._users.get_user(row["user_id"]) if row["user_id"] else None

        return Booking(
            id=row["id"],
            uid=row["uid"],
            title=row["title"],
            description=row["description"],
            start_time=datetime.fromisoformat(row["start_time"]),
            end_time=datetime.fromisoformat(row["end_time"]),
            location=row["location"],
            user_id=row["user_id"],
            user=user,
            user_primary_email=row["user_primary_email"],
            event_type_id=row["event_type_id"],
            attendees=attendees,
            references=references,
            responses=json.loads(row["responses"]) if row["responses"] else {},
            custom_inputs=json.loads(row["custom_inputs"]) if row["custom_inputs"] else None,
        )

    async def update_booking(self, booking_id: int, patch: BookingPatch) -> Booking:
        """Apply ``patch`` and return the booking as re-read from the database.

        Raises:
            BookingNotFoundError: If the booking doesn't exist
        """
        changes = patch.model_dump(exclude_unset=True)
        if changes:
            assignments = ", ".join(f"{column} = ?" for column in changes)
            result = await self._db.execute(
                f"""
                UPDATE bookings
                SET {assignments}, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                [*changes.values(), booking_id],
            )
            if result.rows_affected == 0:
                raise BookingNotFoundError(f"Booking {booking_id} not found")
        booking = await self.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(f"Booking {booking_id} not found")
        return booking

    async def update_attendee(self, attendee_id: int, patch: AttendeePatch) -> None:
        """Overwrite an attendee's identity fields."""
        result = await self._db.execute(
            """
            UPDATE attendees
            SET name = ?, email = ?, time_zone = ?, locale = ?
            WHERE id = ?
            """,
            [patch.name, patch.email, patch.time_zone, patch.locale, attendee_id],
        )
        if result.rows_affected == 0:
            raise LookupError(f"Attendee {attendee_id} not found")

    async def replace_references(
        self,
        booking_id: int,
        references: Sequence[CalendarReference],
    ) -> None:
        """Replace every reference of a booking with ``references`` atomically."""
        statements: list[tuple[str, list[Any]]] = [
            ("DELETE FROM booking_references WHERE booking_id = ?", [booking_id])
        ]
        statements.extend(self._reference_inserts(booking_id, references))
        await self._db.execute_transaction(statements)

    async def find_references_by_uid(self, booking_uid: str) -> list[CalendarReference]:
        return await self._references(
            "booking_id = (SELECT id FROM bookings WHERE uid = ?)", [booking_uid]
        )

    async def _attendees(self, booking_id: int) -> list[Attendee]:
        result = await self._db.execute(
            """
            SELECT id, name, email, time_zone, locale, phone_number
            FROM attendees
            WHERE booking_id = ?
            ORDER BY id
            """,
            [booking_id],
        )
        return [Attendee(**row) for row in rows_as_dicts(result)]

    async def _references(self, where: str, params: list[Any]) -> list[CalendarReference]:
        result = await self._db.execute(
            f"SELECT {REFERENCE_COLUMNS} FROM booking_references WHERE {where} ORDER BY id",
            params,
        )
        return [CalendarReference(**row) for row in rows_as_dicts(result)]

    def _reference_inserts(
        self,
        booking_id: int,
        references: Sequence[CalendarReference],
    ) -> list[tuple[str, list[Any]]]:
        return [
            (
                f"INSERT INTO booking_references (booking_id, {REFERENCE_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    booking_id,
                    ref.type,
                    ref.uid,
                    ref.meeting_id,
                    ref.meeting_password,
                    ref.meeting_url,
                    ref.external_calendar_id,
                    ref.credential_id,
                ],
            )
            for ref in references
        ]
