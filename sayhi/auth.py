# sayhi/auth.py
import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from sayhi.clock import now_ms
from sayhi.config import TOKEN_EXPIRE_MS
from sayhi.db import get_db
from sayhi.session_store import SessionStore, SqlSessionStore

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_token() -> str:
    return secrets.token_urlsafe(24)


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expire: int


class TokenAuthority:
    """
    按 userid 签发 / 续期 / 校验 / 吊销 token

    每次续期过期时间都重置为 now + lifetime_ms
    """

    def __init__(
        self,
        store: SessionStore,
        lifetime_ms: int = TOKEN_EXPIRE_MS,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.lifetime_ms = lifetime_ms
        self.clock = clock

    def issue_or_renew(self, userid: str) -> IssuedToken:
        expire = self.clock() + self.lifetime_ms
        token = self.store.get_token(userid)
        if token:
            # 续期：token 不变，只延长过期时间
            self.store.set_expiry(userid, expire)
        else:
            token = create_token()
            self.store.set_token(userid, token, expire)
        return IssuedToken(token=token, expire=expire)

    def validate(self, userid: Optional[str], token: Optional[str], request_timestamp) -> bool:
        if not userid or not token or request_timestamp in (None, ""):
            return False
        try:
            timestamp = int(request_timestamp)
        except (TypeError, ValueError):
            return False

        stored_token = self.store.get_token(userid)
        stored_expire = self.store.get_expiry(userid)
        if not stored_token or stored_expire is None:
            return False
        if not hmac.compare_digest(stored_token.encode(), token.encode()):
            return False
        return timestamp <= int(stored_expire)

    def revoke(self, userid: str) -> None:
        self.store.clear(userid)


def get_session_store(db: Session = Depends(get_db)) -> SessionStore:
    return SqlSessionStore(db)


def get_authority(store: SessionStore = Depends(get_session_store)) -> TokenAuthority:
    return TokenAuthority(store)
