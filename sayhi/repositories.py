# sayhi/repositories.py
"""
每张表一个 repository，每种查询一个方法；SQLAlchemy 异常回滚后包装成 StorageError
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import asc, desc, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from sayhi import errors
from sayhi.errors import DuplicateEmailError, DuplicateIdError, StorageError, ValidationError
from sayhi.models import Message, User
from sayhi.schemas import MAX_INT

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = ("create_time", "edit_time", "id")


@dataclass(frozen=True)
class Page:
    """客户端传的 start/end 区间，end 不包含"""

    start: int = 0
    end: int = 10
    sort: str = "create_time"
    order: str = "ASC"

    def __post_init__(self):
        if self.start < 0 or self.end <= self.start or self.end > MAX_INT:
            raise ValidationError(f"invalid range start={self.start} end={self.end}")
        if self.sort not in SORTABLE_COLUMNS:
            raise ValidationError(f"cannot sort by {self.sort}")
        if self.order.upper() not in ("ASC", "DESC"):
            raise ValidationError(f"invalid sort order {self.order}")

    @property
    def offset(self) -> int:
        return self.start

    @property
    def limit(self) -> int:
        return self.end - self.start

    @property
    def descending(self) -> bool:
        return self.order.upper() == "DESC"


@dataclass(frozen=True)
class MessageFilter:
    userid: Optional[str] = None
    receiver_userid: Optional[str] = None

    def conditions(self):
        conds = []
        if self.userid is not None:
            conds.append(Message.userid == self.userid)
        if self.receiver_userid is not None:
            conds.append(Message.receiver_userid == self.receiver_userid)
        return conds


@dataclass(frozen=True)
class MarkReadOnFetch:
    """查询返回的每一行都写入 retrieve_time，和查询在同一个事务里"""

    retrieve_time: str


@contextmanager
def _storage(db: Session, where: str, errno: int):
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("[%s] DB failure", where)
        raise StorageError(f"[{where}] DB: {e}", errno=errno) from e


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_userid(self, userid: str) -> Optional[User]:
        with _storage(self.db, "UserRepository.find_by_userid", errors.QUERY_FAILED):
            return self.db.scalar(select(User).where(User.userid == userid))

    def find_by_email(self, email: str) -> Optional[User]:
        with _storage(self.db, "UserRepository.find_by_email", errors.QUERY_FAILED):
            return self.db.scalar(select(User).where(User.email == email))

    def find_all_by_username(self, username: str) -> List[User]:
        # username 不唯一
        with _storage(self.db, "UserRepository.find_all_by_username", errors.QUERY_FAILED):
            return list(
                self.db.scalars(select(User).where(User.username == username).order_by(User.id)).all()
            )

    def count(self) -> int:
        with _storage(self.db, "UserRepository.count", errors.QUERY_FAILED):
            return self.db.scalar(select(func.count()).select_from(User)) or 0

    def list(self, page: Page) -> Tuple[List[User], int]:
        column = getattr(User, page.sort)
        direction = desc if page.descending else asc
        with _storage(self.db, "UserRepository.list", errors.QUERY_FAILED):
            rows = self.db.scalars(
                select(User)
                .order_by(direction(column), direction(User.id))
                .offset(page.offset)
                .limit(page.limit)
            ).all()
        return list(rows), self.count()

    def insert(self, user: User) -> User:
        with _storage(self.db, "UserRepository.insert", errors.INSERT_FAILED):
            try:
                self.db.add(user)
                self.db.commit()
            except IntegrityError:
                # email 唯一约束
                self.db.rollback()
                raise DuplicateEmailError()
            self.db.refresh(user)
        return user

    def save(self, user: User) -> User:
        with _storage(self.db, "UserRepository.save", errors.UPDATE_FAILED):
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                raise DuplicateEmailError()
            self.db.refresh(user)
        return user

    def delete(self, user: User) -> None:
        with _storage(self.db, "UserRepository.delete", errors.DELETE_FAILED):
            self.db.delete(user)
            self.db.commit()


class MessageRepository:
    def __init__(self, db: Session):
        self.db = db

    def exists(self, message_id: int) -> bool:
        with _storage(self.db, "MessageRepository.exists", errors.QUERY_FAILED):
            return self.db.get(Message, message_id) is not None

    def find_owned(
        self,
        message_id: int,
        *,
        userid: Optional[str] = None,
        receiver_userid: Optional[str] = None,
    ) -> Optional[Message]:
        """按 id 查，且必须属于给定的发送方或接收方"""
        if userid is None and receiver_userid is None:
            return None
        criteria = MessageFilter(userid=userid, receiver_userid=receiver_userid)
        with _storage(self.db, "MessageRepository.find_owned", errors.QUERY_FAILED):
            return self.db.scalar(
                select(Message).where(Message.id == message_id, *criteria.conditions())
            )

    def next_id(self) -> int:
        with _storage(self.db, "MessageRepository.next_id", errors.QUERY_FAILED):
            return (self.db.scalar(select(func.max(Message.id))) or 0) + 1

    def insert_unique(self, message: Message) -> Message:
        with _storage(self.db, "MessageRepository.insert_unique", errors.INSERT_FAILED):
            try:
                self.db.add(message)
                self.db.commit()
            except IntegrityError:
                # 并发下 check-then-insert 不是原子的，以主键冲突为准
                self.db.rollback()
                raise DuplicateIdError()
            self.db.refresh(message)
        return message

    def fetch(
        self,
        criteria: MessageFilter,
        page: Page,
        mark_read: Optional[MarkReadOnFetch] = None,
    ) -> Tuple[List[Message], int]:
        conds = criteria.conditions()
        column = getattr(Message, page.sort)
        direction = desc if page.descending else asc
        with _storage(self.db, "MessageRepository.fetch", errors.QUERY_FAILED):
            rows = list(
                self.db.scalars(
                    select(Message)
                    .where(*conds)
                    .order_by(direction(column), direction(Message.id))
                    .offset(page.offset)
                    .limit(page.limit)
                ).all()
            )
            count = self.db.scalar(select(func.count()).select_from(Message).where(*conds)) or 0

        if mark_read is not None and rows:
            with _storage(self.db, "MessageRepository.fetch", errors.UPDATE_FAILED):
                self.db.execute(
                    update(Message)
                    .where(Message.id.in_([row.id for row in rows]))
                    .values(retrieve_time=mark_read.retrieve_time)
                )
                self.db.commit()
        return rows, count

    def save(self, message: Message) -> Message:
        with _storage(self.db, "MessageRepository.save", errors.UPDATE_FAILED):
            self.db.commit()
            self.db.refresh(message)
        return message

    def delete(self, message: Message) -> None:
        with _storage(self.db, "MessageRepository.delete", errors.DELETE_FAILED):
            self.db.delete(message)
            self.db.commit()
