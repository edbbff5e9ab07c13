# sayhi/errors.py
"""
错误类型：每个子类带 errno 和 HTTP 状态码，main.py 统一渲染成 {success, errno, errmsg}
"""

INVALID_PARAMETERS = 9999

INVALID_TOKEN = 2000
LOGIN_MISMATCH = 2001
DUPLICATE_EMAIL = 2002
DUPLICATE_MESSAGE_ID = 2003
SELF_MESSAGE = 2004

QUERY_FAILED = 1001
INSERT_FAILED = 1002
UPDATE_FAILED = 1003
DELETE_FAILED = 1004
TARGET_NOT_FOUND = 1005


class SayHiError(Exception):
    errno = QUERY_FAILED
    errmsg = "unexpected error"
    status_code = 500

    def __init__(self, errmsg: str | None = None, errno: int | None = None):
        if errmsg is not None:
            self.errmsg = errmsg
        if errno is not None:
            self.errno = errno
        super().__init__(self.errmsg)

    def to_body(self) -> dict:
        return {"success": False, "errno": self.errno, "errmsg": self.errmsg}


class ValidationError(SayHiError):
    errno = INVALID_PARAMETERS
    errmsg = "Invalid Parameters"
    status_code = 422


class AuthError(SayHiError):
    errno = INVALID_TOKEN
    errmsg = "fail to validate token"
    status_code = 401


class CredentialsError(SayHiError):
    errno = LOGIN_MISMATCH
    errmsg = "fail to login, mismatched username and password"
    status_code = 401


class ConflictError(SayHiError):
    status_code = 409


class DuplicateEmailError(ConflictError):
    errno = DUPLICATE_EMAIL
    errmsg = "fail to register, duplicate email"


class DuplicateIdError(ConflictError):
    errno = DUPLICATE_MESSAGE_ID
    errmsg = "duplicate inserting"


class SelfMessageError(ConflictError):
    errno = SELF_MESSAGE
    errmsg = "cannot send message to yourself"


class NotFoundError(SayHiError):
    errno = TARGET_NOT_FOUND
    errmsg = "fail to find the item"
    status_code = 404


class StorageError(SayHiError):
    """数据库异常，errmsg 带上出错的 repository 方法"""

    status_code = 500
