"""Repository for event types and their hosts.

Locations, booking fields and metadata are stored as JSON documents; hosts
and plain users are stored relationally so they join against users.
"""

import json
from typing import Any

from roundrobin.db.turso import TursoClient, rows_as_dicts
from roundrobin.models import BookingField, EventType, EventTypeOwner, Host, User
from roundrobin.repositories.user_repo import USER_COLUMNS, UserRepository, user_from_row


def _prefixed(columns: str, alias: str) -> str:
    return ", ".join(f"{alias}.{c.strip()}" for c in columns.split(","))


class EventTypeRepository:
    """Repository for event types (read-mostly booking templates)."""

    def __init__(self, db_client: TursoClient, users: UserRepository):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
            users: Repository for teams, owners and destination calendars
        """
        self._db = db_client
        self._users = users

    async def initialize(self) -> None:
        """Create event type tables if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS event_types (
                id INTEGER PRIMARY KEY,
                slug TEXT NOT NULL,
                title TEXT NOT NULL,
                event_name TEXT,
                description TEXT,
                length INTEGER NOT NULL DEFAULT 30,
                locations TEXT,
                booking_fields TEXT,
                team_id INTEGER,
                owner_id INTEGER,
                metadata TEXT
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS hosts (
                event_type_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                is_fixed INTEGER NOT NULL DEFAULT 0,
                priority INTEGER,
                weight INTEGER,
                weight_adjustment INTEGER,
                schedule_id INTEGER,
                PRIMARY KEY (event_type_id, user_id)
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS event_type_users (
                event_type_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                PRIMARY KEY (event_type_id, user_id)
            )
            """,
            ]
        )

    async def save_event_type(self, event_type: EventType) -> None:
        """Insert or replace an event type with its hosts and users."""
        statements: list[tuple[str, list[Any]]] = [
            (
                """
                INSERT OR REPLACE INTO event_types
                    (id, slug, title, event_name, description, length, locations,
                     booking_fields, team_id, owner_id, metadata)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    event_type.id,
                    event_type.slug,
                    event_type.title,
                    event_type.event_name,
                    event_type.description,
                    event_type.length,
                    json.dumps(event_type.locations),
                    json.dumps([f.model_dump() for f in event_type.booking_fields]),
                    event_type.team_id,
                    event_type.owner.id if event_type.owner else None,
                    json.dumps(event_type.metadata),
                ],
            ),
            ("DELETE FROM hosts WHERE event_type_id = ?", [event_type.id]),
            ("DELETE FROM event_type_users WHERE event_type_id = ?", [event_type.id]),
        ]
        for host in event_type.hosts:
            statements.append(
                (
                    """
                    INSERT INTO hosts
                        (event_type_id, user_id, is_fixed, priority, weight,
                         weight_adjustment, schedule_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        event_type.id,
                        host.user.id,
                        int(host.is_fixed),
                        host.priority,
                        host.weight,
                        host.weight_adjustment,
                        host.schedule_id,
                    ],
                )
            )
        for user in event_type.users:
            statements.append(
                (
                    "INSERT INTO event_type_users (event_type_id, user_id) VALUES (?, ?)",
                    [event_type.id, user.id],
                )
            )
        await self._db.execute_transaction(statements)

    async def get_event_type(self, event_type_id: int) -> EventType | None:
        """Load an event type with hosts, users, team and destination calendar.

        Args:
            event_type_id: Event type identifier

        Returns:
            EventType or None if not found
        """
        result = await self._db.execute(
            """
            SELECT id, slug, title, event_name, description, length, locations,
                   booking_fields, team_id, owner_id, metadata
            FROM event_types
            WHERE id = ?
            """,
            [event_type_id],
        )
        rows = rows_as_dicts(result)
        if not rows:
            return None
        row = rows[0]

        team = await self._users.get_team(row["team_id"]) if row["team_id"] else None
        owner = None
        if row["owner_id"]:
            owner_user = await self._users.get_user(row["owner_id"])
            owner = EventTypeOwner(
                id=row["owner_id"],
                hide_branding=bool(
                    (owner_user and owner_user.metadata.get("hideBranding"))
                    or (team and team.hide_branding)
                ),
            )

        return EventType(
            id=row["id"],
            slug=row["slug"],
            title=row["title"],
            event_name=row["event_name"],
            description=row["description"],
            length=row["length"],
            locations=json.loads(row["locations"]) if row["locations"] else [],
            booking_fields=[
                BookingField(**f)
                for f in (json.loads(row["booking_fields"]) if row["booking_fields"] else [])
            ],
            team_id=row["team_id"],
            team=team,
            owner=owner,
            hosts=await self._hosts(event_type_id),
            users=await self._plain_users(event_type_id),
            destination_calendar=await self._users.find_event_type_destination_calendar(
                event_type_id
            ),
            metadata=json.loads(row["metadata"]) if row["metadata"] else {},
        )

    async def _hosts(self, event_type_id: int) -> list[Host]:
        result = await self._db.execute(
            f"""
            SELECT {_prefixed(USER_COLUMNS, "u")}, h.is_fixed, h.priority, h.weight,
                   h.weight_adjustment, h.schedule_id
            FROM hosts h
            JOIN users u ON u.id = h.user_id
            WHERE h.event_type_id = ?
            ORDER BY h.rowid
            """,
            [event_type_id],
        )
        return [
            Host(
                user=user_from_row(row),
                is_fixed=bool(row["is_fixed"]),
                priority=row["priority"],
                weight=row["weight"],
                weight_adjustment=row["weight_adjustment"],
                schedule_id=row["schedule_id"],
            )
            for row in rows_as_dicts(result)
        ]

    async def _plain_users(self, event_type_id: int) -> list[User]:
        result = await self._db.execute(
            f"""
            SELECT {_prefixed(USER_COLUMNS, "u")}
            FROM event_type_users e
            JOIN users u ON u.id = e.user_id
            WHERE e.event_type_id = ?
            ORDER BY e.rowid
            """,
            [event_type_id],
        )
        return [user_from_row(row) for row in rows_as_dicts(result)]
