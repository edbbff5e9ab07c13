# tests/test_db.py
from sqlalchemy import text
from sqlalchemy.pool import StaticPool

from sayhi.db import Base, make_engine, make_session_factory
from sayhi.models import User


def test_memory_sqlite_shares_one_connection():
    engine = make_engine("sqlite://")
    assert isinstance(engine.pool, StaticPool)

    Base.metadata.create_all(bind=engine)
    factory = make_session_factory(engine)
    with factory() as first:
        first.add(User(userid="u1", email="a@example.com", username="username", password="x"))
        first.commit()
    # 另一个 session 能看到同一个内存库
    with factory() as second:
        assert second.execute(text("SELECT count(*) FROM sayhi_user")).scalar_one() == 1
    engine.dispose()


def test_file_sqlite_uses_default_pool(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'sayhi.db'}")
    assert not isinstance(engine.pool, StaticPool)
    engine.dispose()


def test_explicit_kwargs_win():
    engine = make_engine("sqlite://", connect_args={}, echo=True)
    assert engine.echo is True
    engine.dispose()
