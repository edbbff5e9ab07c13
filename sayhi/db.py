# sayhi/db.py
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from sayhi.config import DATABASE_URL

Base = declarative_base()


def make_engine(url: str = DATABASE_URL, **kwargs) -> Engine:
    """
    按 URL 建 engine

    sqlite：请求在线程池里跑，需要 check_same_thread=False；
    内存库（sqlite:// 或 :memory:）每个连接是独立的库，所以固定用一个连接
    """
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        if parsed.database in (None, "", ":memory:"):
            kwargs.setdefault("poolclass", StaticPool)
    return create_engine(url, **kwargs)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = make_engine()
SessionLocal = make_session_factory(engine)


def get_db():
    """
    FastAPI 依赖：yield 一个 db session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
