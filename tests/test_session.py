"""Tests for clawdebate_core.db.session engine construction."""

from sqlalchemy import text
from sqlalchemy.pool import StaticPool

from clawdebate_core.db.session import make_engine


class TestMakeEngine:
    def test_in_memory_sqlite_shares_one_connection(self):
        engine = make_engine("sqlite://")
        assert isinstance(engine.pool, StaticPool)
        with engine.begin() as conn:
            conn.execute(text("CREATE TABLE ledger (id INTEGER)"))
        with engine.connect() as conn:
            assert conn.execute(text("SELECT count(*) FROM ledger")).scalar() == 0
        engine.dispose()

    def test_file_sqlite_uses_regular_pool(self, tmp_path):
        engine = make_engine(f"sqlite:///{tmp_path / 'debates.db'}")
        assert not isinstance(engine.pool, StaticPool)
        assert engine.url.get_backend_name() == "sqlite"
        engine.dispose()
