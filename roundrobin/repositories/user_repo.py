"""Repository for users, teams, credentials and destination calendars."""

import json
from typing import Any

from roundrobin.db.turso import TursoClient, rows_as_dicts
from roundrobin.models import Credential, DestinationCalendar, Team, User

USER_COLUMNS = "id, username, name, email, locale, time_zone, time_format, metadata"


def user_from_row(row: dict[str, Any]) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        name=row["name"],
        email=row["email"],
        locale=row["locale"],
        time_zone=row["time_zone"] or "UTC",
        time_format=row["time_format"],
        metadata=json.loads(row["metadata"]) if row["metadata"] else {},
    )


def destination_calendar_from_row(row: dict[str, Any]) -> DestinationCalendar:
    return DestinationCalendar(
        id=row["id"],
        integration=row["integration"],
        external_id=row["external_id"],
        primary_email=row["primary_email"],
        user_id=row["user_id"],
        event_type_id=row["event_type_id"],
        credential_id=row["credential_id"],
    )


class UserRepository:
    """Repository for users and the integrations they own."""

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create user-related tables if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY,
                username TEXT,
                name TEXT,
                email TEXT NOT NULL UNIQUE,
                locale TEXT,
                time_zone TEXT NOT NULL DEFAULT 'UTC',
                time_format INTEGER,
                metadata TEXT
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS teams (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                slug TEXT,
                parent_id INTEGER,
                hide_branding INTEGER NOT NULL DEFAULT 0
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS credentials (
                id INTEGER PRIMARY KEY,
                type TEXT NOT NULL,
                key TEXT,
                user_id INTEGER,
                app_id TEXT,
                invalid INTEGER NOT NULL DEFAULT 0
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS destination_calendars (
                id INTEGER PRIMARY KEY,
                integration TEXT NOT NULL,
                external_id TEXT NOT NULL,
                primary_email TEXT,
                user_id INTEGER UNIQUE,
                event_type_id INTEGER UNIQUE,
                credential_id INTEGER
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_credentials_user
            ON credentials(user_id)
            """,
            ]
        )

    async def save_user(self, user: User) -> None:
        """Insert or replace a user."""
        await self._db.execute(
            f"INSERT OR REPLACE INTO users ({USER_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            [
                user.id,
                user.username,
                user.name,
                user.email,
                user.locale,
                user.time_zone,
                user.time_format,
                json.dumps(user.metadata),
            ],
        )

    async def get_user(self, user_id: int) -> User | None:
        result = await self._db.execute(
            f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", [user_id]
        )
        rows = rows_as_dicts(result)
        return user_from_row(rows[0]) if rows else None

    async def save_team(self, team: Team) -> None:
        await self._db.execute(
            """
            INSERT OR REPLACE INTO teams (id, name, slug, parent_id, hide_branding)
            VALUES (?, ?, ?, ?, ?)
            """,
            [team.id, team.name, team.slug, team.parent_id, int(team.hide_branding)],
        )

    async def get_team(self, team_id: int) -> Team | None:
        result = await self._db.execute(
            "SELECT id, name, slug, parent_id, hide_branding FROM teams WHERE id = ?",
            [team_id],
        )
        rows = rows_as_dicts(result)
        if not rows:
            return None
        row = rows[0]
        return Team(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            parent_id=row["parent_id"],
            hide_branding=bool(row["hide_branding"]),
        )

    async def save_credential(self, credential: Credential) -> None:
        await self._db.execute(
            """
            INSERT OR REPLACE INTO credentials (id, type, key, user_id, app_id, invalid)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                credential.id,
                credential.type,
                json.dumps(credential.key),
                credential.user_id,
                credential.app_id,
                int(credential.invalid),
            ],
        )

    async def _credentials(self, where: str, params: list[Any]) -> list[Credential]:
        result = await self._db.execute(
            f"SELECT id, type, key, user_id, app_id, invalid FROM credentials WHERE {where} ORDER BY id",
            params,
        )
        return [
            Credential(
                id=row["id"],
                type=row["type"],
                key=json.loads(row["key"]) if row["key"] else {},
                user_id=row["user_id"],
                app_id=row["app_id"],
                invalid=bool(row["invalid"]),
            )
            for row in rows_as_dicts(result)
        ]

    async def find_credentials(self, user_id: int) -> list[Credential]:
        """All credentials owned by ``user_id``."""
        return await self._credentials("user_id = ?", [user_id])

    async def get_credential(self, credential_id: int) -> Credential | None:
        found = await self._credentials("id = ?", [credential_id])
        return found[0] if found else None

    async def save_destination_calendar(self, calendar: DestinationCalendar) -> None:
        await self._db.execute(
            """
            INSERT OR REPLACE INTO destination_calendars
                (id, integration, external_id, primary_email, user_id,
                 event_type_id, credential_id)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                calendar.id,
                calendar.integration,
                calendar.external_id,
                calendar.primary_email,
                calendar.user_id,
                calendar.event_type_id,
                calendar.credential_id,
            ],
        )

    async def _destination_calendar(
        self, column: str, value: int
    ) -> DestinationCalendar | None:
        result = await self._db.execute(
            f"""
            SELECT id, integration, external_id, primary_email, user_id,
                   event_type_id, credential_id
            FROM destination_calendars
            WHERE {column} = ?
            LIMIT 1
            """,
            [value],
        )
        rows = rows_as_dicts(result)
        return destination_calendar_from_row(rows[0]) if rows else None

    async def find_destination_calendar(self, user_id: int) -> DestinationCalendar | None:
        """Destination calendar designated by ``user_id``."""
        return await self._destination_calendar("user_id", user_id)

    async def find_event_type_destination_calendar(
        self, event_type_id: int
    ) -> DestinationCalendar | None:
        return await self._destination_calendar("event_type_id", event_type_id)
