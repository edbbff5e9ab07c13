# sayhi/session_store.py
"""
session token 存储，按 userid 存 token 和过期时间（毫秒）
"""
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sayhi import errors
from sayhi.errors import StorageError
from sayhi.models import SessionToken


class SessionStore:
    def get_token(self, userid: str) -> Optional[str]:
        raise NotImplementedError

    def get_expiry(self, userid: str) -> Optional[int]:
        raise NotImplementedError

    def set_token(self, userid: str, token: str, expire: int) -> None:
        raise NotImplementedError

    def set_expiry(self, userid: str, expire: int) -> None:
        raise NotImplementedError

    def clear(self, userid: str) -> None:
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    def __init__(self):
        self.tokens: Dict[str, Optional[str]] = {}
        self.expiries: Dict[str, Optional[int]] = {}

    def get_token(self, userid):
        return self.tokens.get(userid)

    def get_expiry(self, userid):
        return self.expiries.get(userid)

    def set_token(self, userid, token, expire):
        self.tokens[userid] = token
        self.expiries[userid] = expire

    def set_expiry(self, userid, expire):
        self.expiries[userid] = expire

    def clear(self, userid):
        self.tokens[userid] = None
        self.expiries[userid] = None


class SqlSessionStore(SessionStore):
    def __init__(self, db: Session):
        self.db = db

    def _row(self, userid: str) -> Optional[SessionToken]:
        try:
            return self.db.get(SessionToken, userid)
        except SQLAlchemyError as e:
            raise StorageError(f"[SqlSessionStore] DB: fail to read session, {e}", errno=errors.QUERY_FAILED) from e

    def _write(self, row: SessionToken) -> None:
        try:
            self.db.merge(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"[SqlSessionStore] DB: fail to write session, {e}", errno=errors.UPDATE_FAILED) from e

    def get_token(self, userid):
        row = self._row(userid)
        return row.token if row else None

    def get_expiry(self, userid):
        row = self._row(userid)
        return row.expire if row else None

    def set_token(self, userid, token, expire):
        self._write(SessionToken(userid=userid, token=token, expire=expire))

    def set_expiry(self, userid, expire):
        row = self._row(userid)
        self._write(SessionToken(userid=userid, token=row.token if row else None, expire=expire))

    def clear(self, userid):
        self._write(SessionToken(userid=userid, token=None, expire=None))
