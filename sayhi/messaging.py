# sayhi/messaging.py
"""
消息收发与已读回执

retrieve_time 为 "" 表示未读；查询返回给查看者时写入查询时间，之后每次查询覆盖，记录的是最近一次读取时间。
发送方查看自己的发件箱也会写 retrieve_time，保持和老客户端一致。
"""
import enum
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from sayhi.clock import now_ms
from sayhi.db import get_db
from sayhi.errors import DuplicateIdError, NotFoundError, SelfMessageError
from sayhi.models import Message
from sayhi.repositories import MarkReadOnFetch, MessageFilter, MessageRepository, Page
from sayhi.schemas import MessageOut

logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    SENDER = "sender"
    RECEIVER = "receiver"


@dataclass
class QueryResult:
    items: List[Message]
    count: int


class MessageExchange:
    def __init__(self, repo: MessageRepository, clock: Callable[[], int] = now_ms):
        self.repo = repo
        self.clock = clock

    def send(self, sender_id: str, receiver_id: str, text: str, message_id: Optional[int] = None) -> Message:
        if sender_id == receiver_id:
            raise SelfMessageError()

        if message_id is None:
            message_id = self.repo.next_id()
        elif self.repo.exists(message_id):
            raise DuplicateIdError()

        now = self.clock()
        message = self.repo.insert_unique(
            Message(
                id=message_id,
                userid=sender_id,
                receiver_userid=receiver_id,
                message=text,
                create_time=now,
                edit_time=now,
                retrieve_time="",
            )
        )
        logger.info("[messaging.send] %s -> %s id=%s", sender_id, receiver_id, message_id)
        return message

    def _query(self, criteria: MessageFilter, page: Page) -> QueryResult:
        mark = MarkReadOnFetch(retrieve_time=str(self.clock()))
        items, count = self.repo.fetch(criteria, page, mark_read=mark)
        return QueryResult(items=items, count=count)

    def query_as_sender(self, sender_id: str, receiver_id: Optional[str] = None, page: Optional[Page] = None) -> QueryResult:
        page = page or Page(order="ASC")
        return self._query(MessageFilter(userid=sender_id, receiver_userid=receiver_id), page)

    def query_as_receiver(self, receiver_id: str, sender_id: Optional[str] = None, page: Optional[Page] = None) -> QueryResult:
        page = page or Page(order="DESC")
        return self._query(MessageFilter(userid=sender_id, receiver_userid=receiver_id), page)

    def query_latest(self, role: Role, viewer_id: str) -> QueryResult:
        page = Page(start=0, end=1, sort="create_time", order="DESC")
        if role is Role.SENDER:
            return self.query_as_sender(viewer_id, page=page)
        return self.query_as_receiver(viewer_id, page=page)

    def update(self, message_id: int, owner_id: str, text: str) -> Message:
        message = self.repo.find_owned(message_id, userid=owner_id)
        if message is None:
            raise NotFoundError("fail to find the item when updating")
        message.message = text
        message.edit_time = self.clock()
        return self.repo.save(message)

    def mark_retrieved(self, message_id: int, receiver_id: str, retrieve_time: str) -> Message:
        message = self.repo.find_owned(message_id, receiver_userid=receiver_id)
        if message is None:
            raise NotFoundError("fail to find the item when updating")
        message.retrieve_time = retrieve_time
        message.edit_time = self.clock()
        return self.repo.save(message)

    def delete(self, message_id: int, role: Role, owner_id: str) -> MessageOut:
        if role is Role.SENDER:
            message = self.repo.find_owned(message_id, userid=owner_id)
        else:
            message = self.repo.find_owned(message_id, receiver_userid=owner_id)
        if message is None:
            raise NotFoundError("fail to find the item when deleting")

        snapshot = MessageOut.model_validate(message)
        self.repo.delete(message)
        logger.info("[messaging.delete] id=%s as %s %s", message_id, role.value, owner_id)
        return snapshot


def get_exchange(db: Session = Depends(get_db)) -> MessageExchange:
    return MessageExchange(MessageRepository(db))
