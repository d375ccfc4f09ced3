import asyncio
import json
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Protocol

import asyncpg

from src.api.models.ticket import Ticket

logger = logging.getLogger(__name__)

FIRST_TICKET_ID = 1001


class TicketRepo(Protocol):
    async def create_ticket(self, ticket: Ticket) -> Ticket: ...

    async def list_by_store(self, store_id: str) -> List[Ticket]: ...

    async def get_ticket(self, store_id: str, ticket_id: int) -> Optional[Ticket]: ...


class InMemoryTicketRepo:
    """
    Process-local ticket sink used when no DATABASE_URL is configured.
    Ids are sequential from 1001; listings are newest first.
    """

    def __init__(self) -> None:
        self._tickets: List[Ticket] = []
        self._next_id = FIRST_TICKET_ID
        self._lock = asyncio.Lock()

    async def create_ticket(self, ticket: Ticket) -> Ticket:
        async with self._lock:
            ticket.id = self._next_id
            self._next_id += 1
            self._tickets.insert(0, ticket)
        logger.info("ticket %s created for store %s", ticket.id, ticket.store_id)
        return ticket

    async def list_by_store(self, store_id: str) -> List[Ticket]:
        return [t for t in self._tickets if t.store_id == store_id]

    async def get_ticket(self, store_id: str, ticket_id: int) -> Optional[Ticket]:
        for t in self._tickets:
            if t.store_id == store_id and t.id == ticket_id:
                return t
        return None


_CREATE_SQL = """
CREATE TABLE IF NOT EXISTS {schema}.tickets (
    ticket_id   BIGSERIAL PRIMARY KEY,
    store_id    TEXT NOT NULL,
    session_id  TEXT NOT NULL,
    order_type  TEXT,
    address     TEXT,
    items       JSONB NOT NULL,
    subtotal    NUMERIC(10, 2) NOT NULL,
    tax         NUMERIC(10, 2) NOT NULL,
    total       NUMERIC(10, 2) NOT NULL,
    currency    TEXT NOT NULL,
    payload     JSONB NOT NULL,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now()
);
ALTER SEQUENCE IF EXISTS {schema}.tickets_ticket_id_seq RESTART WITH {first};
"""


class PostgresTicketRepo:
    def __init__(self, pool: asyncpg.Pool, schema: str = "public") -> None:
        self.pool = pool
        self.schema = schema

    async def ensure_schema(self) -> None:
        async with self.pool.acquire() as con:
            exists = await con.fetchval(
                "SELECT to_regclass($1)",
                f"{self.schema}.tickets",
            )
            if exists:
                return
            await con.execute(_CREATE_SQL.format(schema=self.schema, first=FIRST_TICKET_ID))
            logger.info("created %s.tickets", self.schema)

    async def create_ticket(self, ticket: Ticket) -> Ticket:
        async with self.pool.acquire() as con:
            row = await con.fetchrow(
                f"""
                INSERT INTO {self.schema}.tickets
                    (store_id, session_id, order_type, address, items, subtotal, tax, total, currency, payload)
                VALUES ($1, $2, $3, $4, $5::jsonb, $6, $7, $8, $9, $10::jsonb)
                RETURNING ticket_id
                """,
                ticket.store_id,
                ticket.session_id,
                ticket.order_type,
                ticket.address,
                json.dumps(ticket.items),
                Decimal(str(ticket.subtotal)),
                Decimal(str(ticket.tax)),
                Decimal(str(ticket.total)),
                ticket.currency,
                json.dumps(ticket.to_dict()),
            )
        ticket.id = int(row["ticket_id"])
        logger.info("ticket %s created for store %s", ticket.id, ticket.store_id)
        return ticket

    async def list_by_store(self, store_id: str) -> List[Ticket]:
        async with self.pool.acquire() as con:
            rows = await con.fetch(
                f"""
                SELECT ticket_id, payload
                FROM {self.schema}.tickets
                WHERE store_id = $1
                ORDER BY ticket_id DESC
                """,
                store_id,
            )
        return [_row_to_ticket(r) for r in rows]

    async def get_ticket(self, store_id: str, ticket_id: int) -> Optional[Ticket]:
        async with self.pool.acquire() as con:
            row = await con.fetchrow(
                f"""
                SELECT ticket_id, payload
                FROM {self.schema}.tickets
                WHERE store_id = $1 AND ticket_id = $2
                """,
                store_id,
                int(ticket_id),
            )
        return _row_to_ticket(row) if row else None


def _row_to_ticket(row) -> Ticket:
    payload = row["payload"]
    data: Dict = json.loads(payload) if isinstance(payload, str) else dict(payload)
    t = Ticket.from_dict(data)
    t.id = int(row["ticket_id"])
    return t


async def create_ticket_repo(database_url: str, schema: str = "public") -> TicketRepo:
    """Postgres when a DATABASE_URL is configured, in-memory otherwise."""
    if not database_url:
        logger.info("DATABASE_URL not set; tickets are kept in memory")
        return InMemoryTicketRepo()

    pool = await asyncpg.create_pool(database_url, min_size=1, max_size=5)
    repo = PostgresTicketRepo(pool, schema=schema)
    await repo.ensure_schema()
    logger.info("tickets stored in Postgres (%s.tickets)", schema)
    return repo
