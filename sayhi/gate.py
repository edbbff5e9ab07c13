# sayhi/gate.py
"""
鉴权：require_session 作为全局依赖，在路由依赖和 body 解析之前执行，校验失败 handler 不会被调用
"""
import logging
from typing import Dict, FrozenSet, Iterable, Mapping

from fastapi import Depends, Request

from sayhi.auth import TokenAuthority, get_authority
from sayhi.errors import AuthError

logger = logging.getLogger(__name__)

# 老客户端接口：任何 method 都要校验
LEGACY_PATHS = ("/checkUserAuth", "/sendMessage", "/queryHistoryMessage", "/randomPickUsers")

RESOURCE_METHODS = {
    # POST /api/v1/users 是注册，不需要 token
    "/api/v1/users": ("GET", "PUT", "PATCH", "DELETE"),
    "/api/v1/messages": ("GET", "POST", "PUT", "PATCH", "DELETE"),
    "/api/v1/notifications": ("GET", "POST", "PUT", "PATCH", "DELETE"),
}


def path_under(path: str, prefix: str) -> bool:
    """按路径段匹配前缀，/api/v1/messages 不会匹配 /api/v1/messagesarchive"""
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


class AccessPolicy:
    def __init__(
        self,
        exact_paths: Iterable[str] = LEGACY_PATHS,
        resources: Mapping[str, Iterable[str]] = RESOURCE_METHODS,
    ):
        self.exact_paths: FrozenSet[str] = frozenset(exact_paths)
        self.resources: Dict[str, FrozenSet[str]] = {
            prefix: frozenset(m.upper() for m in methods) for prefix, methods in resources.items()
        }

    def requires_auth(self, method: str, path: str) -> bool:
        if path in self.exact_paths:
            return True
        method = method.upper()
        return any(
            method in methods and path_under(path, prefix)
            for prefix, methods in self.resources.items()
        )


default_policy = AccessPolicy()


def get_policy() -> AccessPolicy:
    return default_policy


def require_session(
    request: Request,
    policy: AccessPolicy = Depends(get_policy),
    authority: TokenAuthority = Depends(get_authority),
) -> None:
    if not policy.requires_auth(request.method, request.url.path):
        return

    headers = request.headers
    userid = headers.get("x-userid")
    if not authority.validate(userid, headers.get("x-token"), headers.get("x-token-timestamp")):
        logger.warning("[auth] validate fail %s %s userid=%s", request.method, request.url.path, userid)
        raise AuthError()
