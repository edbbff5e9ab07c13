# sayhi/main.py
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse

from sayhi import models  # noqa: F401 关键：确保 ORM 模型被加载
from sayhi.config import CORS_ORIGINS, LOG_LEVEL, SAYHI_ENV
from sayhi.db import Base, engine
from sayhi.errors import INVALID_PARAMETERS, QUERY_FAILED, SayHiError
from sayhi.gate import require_session
from sayhi.routes.auth_routes import router as auth_router
from sayhi.routes.message_routes import router as message_router
from sayhi.routes.notification_routes import router as notification_router
from sayhi.routes.user_routes import router as user_router

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger(__name__)

# =========================
# App 基本信息
# =========================
# require_session 作为全局依赖：校验失败时 handler 不会被调用
app = FastAPI(
    title="SayHi Backend",
    version="0.1.0",
    description="Meet and chat backend: token sessions, messages and read acknowledgment",
    dependencies=[Depends(require_session)],
)

# =========================
# 中间件
# =========================
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "PUT", "POST", "DELETE", "PATCH"],
    allow_headers=["*"],
    expose_headers=["x-total-count"],
)


# =========================
# 错误处理：统一返回 {success, errno, errmsg}
# =========================
def _sanitize(status_code: int, message: str) -> str:
    # prod 下 500 不回显内部信息
    if status_code >= 500 and SAYHI_ENV == "prod":
        return "Internal Server Error"
    return message


@app.exception_handler(SayHiError)
def handle_sayhi_error(request: Request, exc: SayHiError):
    if exc.status_code >= 500:
        logger.error("[error] %s %s: %s", request.method, request.url.path, exc.errmsg)
    body = exc.to_body()
    body["errmsg"] = _sanitize(exc.status_code, exc.errmsg)
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "errno": INVALID_PARAMETERS,
            "errmsg": "Invalid Parameters",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("[error] %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "errno": QUERY_FAILED, "errmsg": _sanitize(500, str(exc))},
    )


# =========================
# 启动时建表
# =========================
@app.on_event("startup")
def on_startup() -> None:
    Base.metadata.create_all(bind=engine)


# =========================
# Health Check
# =========================
@app.get("/health", tags=["default"])
def health():
    return {"status": "ok"}


# =========================
# 路由注册
# =========================
app.include_router(auth_router, tags=["auth"])
app.include_router(user_router, prefix="/api/v1/users", tags=["users"])
app.include_router(message_router, prefix="/api/v1/messages", tags=["messages"])
app.include_router(notification_router, prefix="/api/v1/notifications", tags=["notifications"])


# =========================
# Swagger Authorize（x-userid / x-token / x-token-timestamp）
# =========================
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )

    # 三个 header 一起才算一次合法请求
    openapi_schema.setdefault("components", {})
    openapi_schema["components"]["securitySchemes"] = {
        name: {"type": "apiKey", "in": "header", "name": header}
        for name, header in (
            ("UserId", "x-userid"),
            ("Token", "x-token"),
            ("TokenTimestamp", "x-token-timestamp"),
        )
    }
    openapi_schema["security"] = [{"UserId": [], "Token": [], "TokenTimestamp": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi
