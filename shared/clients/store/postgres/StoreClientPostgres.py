from collections.abc import AsyncIterator

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from shared.catalog.errors import NotFoundError, PersistenceError
from shared.catalog.models.CatalogRecord import CatalogRecord
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

# table column → CatalogRecord field, in insert order
_COLUMNS: dict[str, str] = {
    "category": "category",
    "productdescription": "description",
    "picture": "picture_ref",
    "wcohscode": "hs_code",
    "country": "country",
    "nationaltariffcode": "tariff_code",
    "explanationsheet": "explanation_sheet",
    "vote": "vote",
}

_CREATE_TABLE = """CREATE TABLE IF NOT EXISTS {table} (ID SERIAL PRIMARY KEY NOT NULL,
                                                       Date timestamp DEFAULT CURRENT_TIMESTAMP,
                                                       Category text,
                                                       ProductDescription text,
                                                       Picture text,
                                                       WCOHSCode text,
                                                       Country text,
                                                       NationalTariffCode text,
                                                       ExplanationSheet text,
                                                       Vote text)"""

SCAN_CURSOR_NAME = "catalog_scan"
SCAN_FETCH_SIZE = 1000


class StoreClientPostgres(StoreClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._dsn = self.get_config_val("DSN", default=None, val_type="string")
        self._table_name = self.get_config_val("TABLE", default="products", val_type="string")
        self._table = sql.Identifier(self._table_name)
        self._conn: psycopg.AsyncConnection | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Postgres"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="DSN", val_type="string", default=None),
            EnvConfig(env_key="TABLE", val_type="string", default="products"),
        ]

    ##########################################
    ############# LIFECYCLE ##################
    ##########################################

    async def boot(self) -> None:
        """Open the shared autocommit connection used for inserts and point lookups."""
        try:
            self._conn = await psycopg.AsyncConnection.connect(
                self._dsn, autocommit=True, row_factory=dict_row, connect_timeout=int(self.timeout)
            )
        except psycopg.Error as exc:
            raise PersistenceError(f"Could not connect to Postgres: {exc}") from exc

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    async def do_healthcheck(self) -> bool:
        try:
            async with self._connection().cursor() as cur:
                await cur.execute("SELECT 1")
                return (await cur.fetchone()) is not None
        except psycopg.Error as exc:
            self.logging.error("Postgres healthcheck failed: %s", exc)
            return False

    def _connection(self) -> psycopg.AsyncConnection:
        if self._conn is None:
            raise PersistenceError("Postgres connection not initialised. Call boot() before making requests.")
        return self._conn

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_ensure_schema(self) -> None:
        await self._execute(sql.SQL(_CREATE_TABLE).format(table=self._table), (), "creating table")

    async def do_insert(self, record: CatalogRecord) -> CatalogRecord:
        query = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values}) RETURNING *").format(
            table=self._table,
            columns=sql.SQL(", ").join(sql.Identifier(c) for c in _COLUMNS),
            values=sql.SQL(", ").join(sql.Placeholder() * len(_COLUMNS)),
        )
        row = await self._fetch_one(query, self._values(record), "inserting record")
        return self._row_to_record(row)

    async def do_insert_with_id(self, record_id: int, record: CatalogRecord) -> CatalogRecord:
        query = sql.SQL("INSERT INTO {table} (id, {columns}) VALUES (%s, {values}) RETURNING *").format(
            table=self._table,
            columns=sql.SQL(", ").join(sql.Identifier(c) for c in _COLUMNS),
            values=sql.SQL(", ").join(sql.Placeholder() * len(_COLUMNS)),
        )
        row = await self._fetch_one(query, (record_id, *self._values(record)), f"inserting record {record_id}")
        # the serial sequence only ever moves forward, past every explicit id
        await self._execute(
            sql.SQL(
                "SELECT setval(seq, GREATEST(%s, COALESCE(pg_sequence_last_value(seq), 0))) "
                "FROM (SELECT pg_get_serial_sequence(%s, 'id')::regclass AS seq) AS s"
            ),
            (record_id, self._table_name),
            "advancing id sequence",
        )
        return self._row_to_record(row)

    async def do_get_by_id(self, record_id: int) -> CatalogRecord:
        query = sql.SQL("SELECT * FROM {table} WHERE id = %s").format(table=self._table)
        row = await self._fetch_one(query, (record_id,), f"fetching record {record_id}")
        if row is None:
            raise NotFoundError(record_id)
        return self._row_to_record(row)

    async def do_scan_all(self) -> AsyncIterator[CatalogRecord]:
        # a dedicated connection keeps the server-side cursor's transaction away from the shared one
        query = sql.SQL("SELECT * FROM {table} ORDER BY id").format(table=self._table)
        try:
            async with await psycopg.AsyncConnection.connect(self._dsn, row_factory=dict_row) as conn:
                async with conn.cursor(name=SCAN_CURSOR_NAME) as cur:
                    cur.itersize = SCAN_FETCH_SIZE
                    await cur.execute(query)
                    async for row in cur:
                        yield self._row_to_record(row)
        except psycopg.Error as exc:
            raise PersistenceError(f"Error scanning records: {exc}") from exc

    async def do_delete_all(self) -> None:
        await self._execute(sql.SQL("DELETE FROM {table}").format(table=self._table), (), "deleting all records")

    async def do_count(self) -> int:
        row = await self._fetch_one(sql.SQL("SELECT COUNT(*) AS n FROM {table}").format(table=self._table), (), "counting records")
        return int(row["n"])

    async def do_get_id_high_water(self) -> int:
        # pg_sequence_last_value is NULL until the sequence has been used
        query = sql.SQL(
            "SELECT GREATEST(COALESCE(pg_sequence_last_value(pg_get_serial_sequence(%s, 'id')::regclass), 0), "
            "(SELECT COALESCE(MAX(id), 0) FROM {table})) AS n"
        ).format(table=self._table)
        row = await self._fetch_one(query, (self._table_name,), "reading id high-water mark")
        return int(row["n"])

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _execute(self, query: sql.Composable, params: tuple, action: str) -> None:
        try:
            async with self._connection().cursor() as cur:
                await cur.execute(query, params)
        except psycopg.Error as exc:
            self.logging.error("Error %s: %s", action, exc)
            raise PersistenceError(f"Error {action}: {exc}") from exc

    async def _fetch_one(self, query: sql.Composable, params: tuple, action: str) -> dict | None:
        try:
            async with self._connection().cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchone()
        except psycopg.Error as exc:
            self.logging.error("Error %s: %s", action, exc)
            raise PersistenceError(f"Error {action}: {exc}") from exc

    @staticmethod
    def _values(record: CatalogRecord) -> tuple:
        return tuple(getattr(record, field) for field in _COLUMNS.values())

    @staticmethod
    def _row_to_record(row: dict) -> CatalogRecord:
        return CatalogRecord(
            id=row["id"],
            created_at=row.get("date"),
            **{field: row.get(column) or "" for column, field in _COLUMNS.items()},
        )
