"""
Base repository class for database access.

Wraps a Supabase client and one table, and turns client failures into board
exceptions: PostgREST errors mean the database refused the request, transport
errors mean it could not be reached.
"""

from typing import Callable, TypeVar, Generic

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from .exceptions import ExternalServiceError


T = TypeVar("T")
R = TypeVar("R")


class BaseRepository(Generic[T]):
    """
    Base class for all repositories.

    Provides common functionality for database operations:
    - Supabase client access via self._db
    - Query builders for the repository's table via self._query()
    - Error mapping via self._run()

    Subclasses override rejected()/unavailable() to raise their own
    exception types.

    Example:
        class SupabaseListingFeed(BaseRepository[dict[str, Any]]):
            async def delete(self, listing_id: str) -> None:
                self._run("delete", lambda: self._query().delete().eq("id", listing_id).execute())
    """

    service_name = "supabase"

    def __init__(self, db: Client, table: str) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Supabase client instance for database operations.
            table: Name of the table this repository reads and writes.
        """
        self._db = db
        self._table = table

    @property
    def table(self) -> str:
        return self._table

    def _query(self, table: str | None = None):
        """Query builder for table (defaults to the repository's own)."""
        return self._db.table(table or self._table)

    def _run(self, operation: str, call: Callable[[], R]) -> R:
        """Execute a Supabase call, mapping client errors to board exceptions."""
        try:
            return call()
        except APIError as e:
            raise self.rejected(operation, e.message or str(e)) from e
        except (httpx.HTTPError, OSError) as e:
            raise self.unavailable(operation, str(e)) from e

    def rejected(self, operation: str, reason: str) -> Exception:
        return ExternalServiceError(
            f"{self.service_name} rejected {operation}: {reason}",
            service=self.service_name,
            details={"operation": operation, "table": self._table},
        )

    def unavailable(self, operation: str, reason: str) -> Exception:
        return ExternalServiceError(
            f"{self.service_name} unavailable during {operation}: {reason}",
            service=self.service_name,
            details={"operation": operation, "table": self._table},
            retryable=True,
        )
