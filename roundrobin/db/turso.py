"""libSQL client shared by the booking, event type and workflow repositories."""

import logging
from collections.abc import Sequence
from typing import Any

from libsql_client import Client, ResultSet, Statement, create_client

from roundrobin.config import settings

logger = logging.getLogger(__name__)


class TursoClient:
    """Async libSQL connection.

    ``libsql://`` URLs with a token connect to Turso; anything else (usually
    ``file:...``) opens a local SQLite database.
    """

    def __init__(
        self,
        url: str | None = None,
        auth_token: str | None = None,
    ):
        """Initialize client with connection parameters.

        Args:
            url: Database URL. Defaults to settings, then ``file:roundrobin.db``.
            auth_token: Turso auth token. Defaults to settings.
        """
        self.url = url or settings.turso_database_url or "file:roundrobin.db"
        self.auth_token = auth_token or settings.turso_auth_token
        self._client: Client | None = None

    async def connect(self) -> None:
        if self._client is not None:
            return
        remote = bool(self.auth_token) and self.url.startswith("libsql://")
        self._client = (
            create_client(url=self.url, auth_token=self.auth_token)
            if remote
            else create_client(url=self.url)
        )
        logger.info(f"Connected to {'Turso' if remote else 'local'} database: {self.url}")

    def _connected(self) -> Client:
        if self._client is None:
            raise RuntimeError("TursoClient.connect() has not been called")
        return self._client

    async def execute(self, sql: str, params: list[Any] | None = None) -> ResultSet:
        """Run one statement with ``?`` placeholders."""
        return await self._connected().execute(sql, params or [])

    async def execute_batch(self, statements: list[str]) -> None:
        """Run parameterless DDL statements, used to create the schema."""
        await self._connected().batch(statements)

    async def execute_transaction(
        self,
        statements: Sequence[tuple[str, list[Any]]],
    ) -> list[ResultSet]:
        """Apply ``(sql, params)`` pairs atomically.

        libSQL runs a batch inside one transaction, so a failing statement
        rolls back the whole group.

        Returns:
            One ResultSet per statement
        """
        return await self._connected().batch(
            [Statement(sql, params) for sql, params in statements]
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
            logger.info("Database connection closed")

    async def is_healthy(self) -> bool:
        """Whether a trivial query succeeds on the open connection."""
        if self._client is None:
            return False
        try:
            result = await self._client.execute("SELECT 1")
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False
        return len(result.rows) == 1


def rows_as_dicts(result: ResultSet) -> list[dict[str, Any]]:
    """Map result rows to dicts keyed by column name."""
    return [
        {column: row[i] for i, column in enumerate(result.columns)}
        for row in result.rows
    ]
