"""Short random identifiers with bounded collision retry."""

from __future__ import annotations

import asyncio
import secrets
import string
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy.exc import IntegrityError

from clubhouse.exceptions import ExhaustedRetriesError
from clubhouse.storage.database import is_unique_violation

if TYPE_CHECKING:
    from sqlmodel import SQLModel
    from sqlmodel.ext.asyncio.session import AsyncSession

logger = structlog.get_logger(__name__)

ALPHABET = string.ascii_letters + string.digits


def random_token(length: int) -> str:
    """Return a cryptographically random alphanumeric string."""
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


class IdentifierAllocator:
    """Inserts a row under a freshly generated short id, retrying on collision.

    Each attempt runs in its own SAVEPOINT so a collision leaves the
    enclosing transaction usable. Only uniqueness violations are retried.
    """

    def __init__(
        self,
        length: int = 6,
        max_attempts: int = 5,
        backoff_ms: int = 50,
        generate: Callable[[int], str] = random_token,
    ) -> None:
        self._length = length
        self._max_attempts = max_attempts
        self._backoff = backoff_ms / 1000
        self._generate = generate

    async def allocate(
        self, session: AsyncSession, model: type[SQLModel], **attributes: Any
    ) -> str:
        """Insert ``model(id=<new id>, **attributes)`` and return the id."""
        for attempt in range(1, self._max_attempts + 1):
            candidate = self._generate(self._length)
            try:
                async with session.begin_nested():
                    session.add(model(id=candidate, **attributes))
                    await session.flush()
            except IntegrityError as exc:
                if not is_unique_violation(exc):
                    raise
                logger.warning(
                    "id_collision",
                    table=model.__tablename__,
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                )
                if attempt < self._max_attempts:
                    await asyncio.sleep(self._backoff)
                continue
            return candidate

        logger.error(
            "id_allocation_exhausted",
            table=model.__tablename__,
            attempts=self._max_attempts,
        )
        msg = f"Could not allocate a unique id for {model.__tablename__}"
        raise ExhaustedRetriesError(msg)
