# sayhi/models.py
from sqlalchemy import BigInteger, Column, Integer, String, Text

from sayhi.clock import now_ms
from sayhi.config import TABLE_PREFIX
from sayhi.db import Base


class User(Base):
    __tablename__ = TABLE_PREFIX + "user"

    id = Column(Integer, primary_key=True, index=True)
    userid = Column(String(64), unique=True, index=True, nullable=False)
    username = Column(String(64), nullable=False, default="username")
    realname = Column(String(64), nullable=False, default="")
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    age = Column(Integer, nullable=False, default=0)
    gender = Column(String(16), nullable=False, default="unknown")
    avatar = Column(String(512), nullable=False, default="")
    status = Column(String(16), nullable=False, default="ACTIVE")

    create_time = Column(BigInteger, default=now_ms, nullable=False)
    edit_time = Column(BigInteger, default=now_ms, nullable=False)


class SessionToken(Base):
    __tablename__ = TABLE_PREFIX + "session"

    userid = Column(String(64), primary_key=True)
    # 删号时置空，而不是删除行
    token = Column(String(128), nullable=True)
    expire = Column(BigInteger, nullable=True)


class Message(Base):
    __tablename__ = TABLE_PREFIX + "message"

    # 由调用方提供，主键唯一约束兜底重复插入
    id = Column(Integer, primary_key=True, autoincrement=False)
    userid = Column(String(64), index=True, nullable=False)
    receiver_userid = Column(String(64), index=True, nullable=False)

    message = Column(Text, nullable=False)

    create_time = Column(BigInteger, default=now_ms, nullable=False)
    edit_time = Column(BigInteger, default=now_ms, nullable=False)
    # "" 表示未读，否则是最近一次读取的毫秒时间戳
    retrieve_time = Column(String(32), default="", nullable=False)
