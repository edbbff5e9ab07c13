# sayhi/schemas.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# 数据库 INTEGER 上限，id 与分页参数都不能超过
MAX_INT = 2**31 - 1


class LoginRequest(BaseModel):
    username: Optional[str] = Field(None, max_length=64)
    email: Optional[str] = Field(None, max_length=255)
    password: str = Field(..., min_length=1, max_length=255)


class CheckAuthRequest(BaseModel):
    userid: Optional[str] = None
    token: Optional[str] = None


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=255)
    realname: str = Field(..., max_length=64)
    username: str = Field("username", max_length=64)
    age: int = Field(0, ge=0, le=200)
    gender: str = Field("unknown", max_length=16)
    avatar: str = Field("", max_length=512)


class UpdateProfileRequest(BaseModel):
    # 空值不覆盖原字段
    username: Optional[str] = Field(None, max_length=64)
    realname: Optional[str] = Field(None, max_length=64)
    email: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = Field(None, max_length=255)
    gender: Optional[str] = Field(None, max_length=16)
    age: Optional[int] = Field(None, ge=0, le=200)
    avatar: Optional[str] = Field(None, max_length=512)
    status: Optional[str] = Field(None, max_length=16)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    userid: str
    username: str
    realname: str
    email: str
    age: int
    gender: str
    avatar: str
    status: str
    create_time: int
    edit_time: int


class SendMessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    receiver_userid: str = Field(..., min_length=1, max_length=64)
    id: Optional[int] = Field(None, ge=1, le=MAX_INT)


class EditMessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)


class AcknowledgeRequest(BaseModel):
    retrieve_time: str = Field(..., min_length=1, max_length=32)


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    userid: str
    receiver_userid: str
    message: str
    create_time: int
    edit_time: int
    retrieve_time: str
