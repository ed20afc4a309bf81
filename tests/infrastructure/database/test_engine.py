"""Tests for database engine setup and initialization."""

from pathlib import Path

from sqlalchemy import inspect, text

from bootctl.infrastructure.database.engine import DB_FILENAME, create_db_engine, init_database


class TestCreateDbEngine:
    def test_wal_mode_enabled(self, tmp_path: Path) -> None:
        engine = create_db_engine(tmp_path / "test.db")
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"
        engine.dispose()

    def test_foreign_keys_enabled(self, tmp_path: Path) -> None:
        engine = create_db_engine(tmp_path / "test.db")
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
        engine.dispose()

    def test_in_memory_is_shared_across_connections(self) -> None:
        engine = create_db_engine(None)
        with engine.begin() as conn:
            conn.execute(text("CREATE TABLE t (x INTEGER)"))
            conn.execute(text("INSERT INTO t VALUES (1)"))
        with engine.connect() as conn:
            assert conn.execute(text("SELECT x FROM t")).scalar() == 1


class TestInitDatabase:
    def test_creates_state_directory(self, tmp_path: Path) -> None:
        state = tmp_path / ".bootctl"
        init_database(state).dispose()
        assert state.is_dir()
        assert (state / "plugins").is_dir()
        assert (state / DB_FILENAME).exists()

    def test_creates_all_tables(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path / ".bootctl")
        names = set(inspect(engine).get_table_names())
        assert {"sessions", "device_identities", "identity_failures"} <= names
        engine.dispose()

    def test_idempotent(self, tmp_path: Path) -> None:
        init_database(tmp_path / ".bootctl").dispose()
        engine = init_database(tmp_path / ".bootctl")
        assert "sessions" in inspect(engine).get_table_names()
        engine.dispose()

    def test_in_memory(self) -> None:
        engine = init_database(None)
        assert "device_identities" in inspect(engine).get_table_names()
