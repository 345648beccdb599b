"""Builder terminals and execution through a Database."""

from __future__ import annotations

import pytest

from fluentsql.compile.context import CompilationContext
from fluentsql.compile.postgres import PostgresDialect
from fluentsql.database import Database
from fluentsql.errors import ConfigurationError, ExecutionError, ValidationError
from fluentsql.query.builders import SelectQuery
from tests.fixtures import RecordingDriver


class TestTerminals:
    @pytest.mark.asyncio
    async def test_get_returns_rows(self, db, driver):
        rows = await db.table("users").where("id", 1).get()
        assert rows == [{"id": 1, "name": "Ada"}]
        assert driver.statements == [('SELECT * FROM "users" WHERE "id" = $1', [1])]

    @pytest.mark.asyncio
    async def test_select_factory_with_columns(self, db, driver):
        await db.select("id", "name").from_("users").get()
        assert driver.sql == ['SELECT "id", "name" FROM "users"']

    @pytest.mark.asyncio
    async def test_first_adds_limit_one(self, db, driver):
        q = db.table("users").order_by("name")
        row = await q.first()
        assert row == {"id": 1, "name": "Ada"}
        assert driver.sql == ['SELECT * FROM "users" ORDER BY "name" ASC LIMIT 1']
        # the builder's own state is not changed by first()
        assert q.statement.limit is None

    @pytest.mark.asyncio
    async def test_first_without_rows(self):
        db = Database(PostgresDialect(), RecordingDriver(rows=[]))
        assert await db.table("users").first() is None

    @pytest.mark.asyncio
    async def test_count(self):
        driver = RecordingDriver(rows=[{"count": 7}])
        db = Database(PostgresDialect(), driver)
        total = await db.table("users").where("active", True).limit(3).count()
        assert total == 7
        assert driver.statements == [
            ('SELECT COUNT(*) AS "count" FROM "users" WHERE "active" = $1', [True])
        ]

    @pytest.mark.asyncio
    async def test_count_without_rows_is_zero(self):
        db = Database(PostgresDialect(), RecordingDriver(rows=[]))
        assert await db.table("users").count("id") == 0

    @pytest.mark.asyncio
    async def test_insert_returning(self, db, driver):
        rows = await db.insert({"name": "Ada"}).into("users").returning("id").execute()
        assert rows == [{"id": 1, "name": "Ada"}]
        assert driver.statements == [
            ('INSERT INTO "users" ("name") VALUES ($1) RETURNING "id"', ["Ada"])
        ]

    @pytest.mark.asyncio
    async def test_update_and_delete_factories(self, db, driver):
        await db.update("users").set({"name": "Bob"}).where("id", 2).execute()
        await db.delete("users").where_in("id", [3, 4]).execute()
        assert driver.statements == [
            ('UPDATE "users" SET "name" = $1 WHERE "id" = $2', ["Bob", 2]),
            ('DELETE FROM "users" WHERE "id" IN ($1, $2)', [3, 4]),
        ]

    @pytest.mark.asyncio
    async def test_upsert_factory(self, db, driver):
        await db.upsert({"id": 1, "name": "Ada"}).into("users").on_conflict("id").merge("name").execute()
        assert driver.statements == [
            (
                'INSERT INTO "users" ("id", "name") VALUES ($1, $2) '
                'ON CONFLICT ("id") DO UPDATE SET "name" = $3',
                [1, "Ada", "Ada"],
            )
        ]

    @pytest.mark.asyncio
    async def test_sqlite_dialect_reaches_driver(self, sqlite_db, driver):
        await sqlite_db.table("users").where("id", 1).where_ilike("name", "a%").get()
        assert driver.statements == [
            ('SELECT * FROM "users" WHERE "id" = ? AND LOWER("name") LIKE LOWER(?)', [1, "a%"])
        ]


class TestSealing:
    @pytest.mark.asyncio
    async def test_mutation_after_execute_is_rejected(self, db):
        q = db.table("users")
        await q.get()
        with pytest.raises(ConfigurationError, match="already executed"):
            q.where("id", 1)
        with pytest.raises(ConfigurationError):
            q.limit(5)

    @pytest.mark.asyncio
    async def test_raw_still_works_after_execute(self, db):
        q = db.table("users").where("id", 1)
        await q.get()
        assert q.raw().params == [1]

    @pytest.mark.asyncio
    async def test_no_executor(self):
        q = SelectQuery(CompilationContext(PostgresDialect())).from_("users")
        with pytest.raises(ConfigurationError) as exc_info:
            await q.get()
        assert exc_info.value.missing == ["executor"]

    @pytest.mark.asyncio
    async def test_precondition_error_reaches_caller_before_driver(self, db, driver):
        with pytest.raises(ConfigurationError):
            await db.update("users").execute()
        assert driver.statements == []


class TestErrors:
    @pytest.mark.asyncio
    async def test_driver_error_is_wrapped(self):
        driver = RecordingDriver(fail_on="users")
        db = Database(PostgresDialect(), driver)
        with pytest.raises(ExecutionError) as exc_info:
            await db.table("users").where("id", 1).get()
        err = exc_info.value
        assert isinstance(err.__cause__, RuntimeError)
        assert err.sql == 'SELECT * FROM "users" WHERE "id" = $1'
        assert err.params == [1]

    def test_negative_limit(self, db):
        with pytest.raises(ValidationError) as exc_info:
            db.table("users").limit(-1)
        assert exc_info.value.code == "INVALID_CLAUSE"

    def test_non_integer_offset(self, db):
        with pytest.raises(ValidationError):
            db.table("users").offset("10")

    def test_bad_direction(self, db):
        with pytest.raises(ValidationError):
            db.table("users").order_by("name", "sideways")

    def test_bad_table(self, db):
        with pytest.raises(ValidationError):
            db.table("users; DROP TABLE users")


class TestRawAndIntrospection:
    @pytest.mark.asyncio
    async def test_raw_renumbers_for_postgres(self, db, driver):
        await db.raw("SELECT * FROM users WHERE a = ? AND b = ?", [1, 2])
        assert driver.statements == [("SELECT * FROM users WHERE a = $1 AND b = $2", [1, 2])]

    @pytest.mark.asyncio
    async def test_raw_keeps_markers_for_sqlite(self, sqlite_db, driver):
        await sqlite_db.raw("SELECT * FROM users WHERE a = ?", [1])
        assert driver.statements == [("SELECT * FROM users WHERE a = ?", [1])]

    @pytest.mark.asyncio
    async def test_raw_marker_mismatch(self, db, driver):
        with pytest.raises(ValidationError):
            await db.raw("SELECT ?", [])
        assert driver.statements == []

    @pytest.mark.asyncio
    async def test_has_table(self, db, driver):
        assert await db.has_table("users") is True
        sql, params = driver.statements[0]
        assert "information_schema.tables" in sql
        assert params == ["public", "users"]

    @pytest.mark.asyncio
    async def test_has_table_missing(self, sqlite_db, driver):
        driver.rows = []
        assert await sqlite_db.has_table("ghosts") is False
        assert driver.statements[0][1] == ["ghosts"]

    @pytest.mark.asyncio
    async def test_drop_and_truncate(self, db, driver):
        await db.drop_table("users", cascade=True)
        await db.truncate("users")
        assert driver.sql == ['DROP TABLE IF EXISTS "users" CASCADE', 'TRUNCATE TABLE "users"']

    @pytest.mark.asyncio
    async def test_drop_rejects_bad_name(self, db, driver):
        with pytest.raises(ValidationError):
            await db.drop_table("users--")
        assert driver.statements == []


class TestExists:
    @pytest.mark.asyncio
    async def test_exists_with_rows(self, db, driver):
        assert await db.table("users").where("id", 1).exists() is True
        assert driver.statements == [('SELECT * FROM "users" WHERE "id" = $1 LIMIT 1', [1])]

    @pytest.mark.asyncio
    async def test_exists_without_rows(self):
        db = Database(PostgresDialect(), RecordingDriver(rows=[]))
        assert await db.table("users").where("id", 99).exists() is False


class TestRawNumberedText:
    @pytest.mark.asyncio
    async def test_numbered_sql_passes_through_on_postgres(self, db, driver):
        await db.raw("SELECT * FROM users WHERE a = $1 AND b = $2", [1, 2])
        assert driver.statements == [("SELECT * FROM users WHERE a = $1 AND b = $2", [1, 2])]

    @pytest.mark.asyncio
    async def test_numbered_sql_is_rejected_on_sqlite(self, sqlite_db, driver):
        with pytest.raises(ValidationError) as exc_info:
            await sqlite_db.raw("SELECT $1", [5])
        assert exc_info.value.code == "PARAM_COUNT_MISMATCH"
        assert driver.statements == []
