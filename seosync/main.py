"""
应用入口：
- FastAPI 初始化、路由挂载
- 启动时执行 Alembic 迁移，按配置启动定时索引检查
"""
from __future__ import annotations

import logging
import os
import sys
import time
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .database import SessionLocal, ensure_database_schema
from .indexing.runner import IndexingScheduler
from .routers import google as google_router
from .routers import indexing as indexing_router
from .routers import sitemap as sitemap_router


def _apply_timezone() -> None:
    """根据 .env 中的 TIMEZONE 应用进程时区（影响日志切割的本地午夜）。"""
    try:
        if settings.TIMEZONE:
            os.environ["TZ"] = str(settings.TIMEZONE)
            # 某些平台（Linux/Unix）可即时生效；Windows 可能不支持
            if hasattr(time, "tzset"):
                time.tzset()
    except Exception:  # noqa: BLE001
        logging.getLogger(__name__).warning("无法应用时区设置：%s", settings.TIMEZONE)


def _configure_logging() -> None:
    log_dir = Path(settings.LOG_DIR or "logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "seosync.log"
    root = logging.getLogger()

    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    # 确保文件日志处理器存在（幂等），按本地午夜切割
    file_handler = None
    for h in root.handlers:
        if isinstance(h, (RotatingFileHandler, TimedRotatingFileHandler)) and getattr(h, "baseFilename", None) == str(log_file.resolve()):
            file_handler = h
            break
    if file_handler is None:
        file_handler = TimedRotatingFileHandler(
            filename=log_file,
            when="midnight",
            interval=1,
            backupCount=14,
            encoding="utf-8",
            utc=False,
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # uvicorn.access 传播到 root，由 root 的处理器统一输出
    ua_logger = logging.getLogger("uvicorn.access")
    ua_logger.setLevel(logging.INFO)
    ua_logger.disabled = False
    ua_logger.propagate = True
    if any(not isinstance(h, (RotatingFileHandler, TimedRotatingFileHandler)) for h in ua_logger.handlers):
        ua_logger.handlers.clear()

    has_console = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler) for h in root.handlers
    )
    if not has_console:
        console = logging.StreamHandler(stream=sys.stdout)
        console.setFormatter(formatter)
        root.addHandler(console)

    if root.level == logging.NOTSET or root.level > logging.INFO:
        root.setLevel(logging.INFO)


_apply_timezone()
_configure_logging()
app = FastAPI(title=settings.SITE_NAME, version="0.1.0")

cors_origins = settings.FRONTEND_ORIGINS or ["http://localhost:3000"]
configured_origins = ["*"] if "*" in cors_origins else cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=configured_origins,
    allow_credentials="*" not in configured_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


class _AccessLogASGI:
    """应用层访问日志兜底（ASGI 包裹器）。

    日志写入 logger `uvicorn.access`，经 root 统一输出到控制台与文件。
    """

    def __init__(self, app):
        self.app = app
        self.logger = logging.getLogger("uvicorn.access")

    async def __call__(self, scope, receive, send):
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        client = scope.get("client")
        addr = f"{client[0]}:{client[1]}" if client else "-"
        raw_headers = scope.get("headers") or []
        hdrs = {k.decode("latin1").lower(): v.decode("latin1") for k, v in raw_headers}
        xff = hdrs.get("x-forwarded-for")
        if xff:
            addr = xff.split(",")[0].strip()
        method = scope.get("method", "-")
        path = scope.get("path", "/")
        qs = scope.get("query_string", b"")
        if qs:
            qs_str = qs.decode("utf-8", errors="ignore")
            if qs_str:
                path = f"{path}?{qs_str}"
        http_version = scope.get("http_version", "1.1")
        status_code = 500

        async def _send(message):
            nonlocal status_code
            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 200))
            return await send(message)

        try:
            return await self.app(scope, receive, _send)
        finally:
            self.logger.info('%s - "%s %s HTTP/%s" %s', addr, method, path, http_version, status_code)


def _run_alembic_upgrade_head() -> None:
    """执行 Alembic 升级；缺少 alembic.ini 时按 ORM 直接建表。"""
    root = Path(__file__).resolve().parent.parent
    ini_path = root / "alembic.ini"
    if not ini_path.exists():
        ensure_database_schema()
        return
    try:
        from alembic import command
        from alembic.config import Config

        cfg = Config(str(ini_path))
        cfg.set_main_option("script_location", str(root / "migrations"))
        cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
        command.upgrade(cfg, "head")
    except Exception as exc:  # noqa: BLE001
        logging.getLogger(__name__).warning("alembic upgrade 失败，改为按 ORM 建表：%s", exc)
        ensure_database_schema()


scheduler = IndexingScheduler(SessionLocal, settings.INDEXING_SCHEDULE_MINUTES)


@app.on_event("startup")
def on_startup():
    _run_alembic_upgrade_head()
    # 迁移执行可能修改了 logging（alembic.ini），此处重新校准日志到控制台+文件
    _configure_logging()
    scheduler.start()
    logging.getLogger("seosync.boot").info(
        "应用启动完成（定时检查间隔=%s 分钟）",
        settings.INDEXING_SCHEDULE_MINUTES,
    )


@app.on_event("shutdown")
def on_shutdown():
    scheduler.stop()


@app.get("/health")
def healthcheck():
    """返回应用健康状态，用于本地/容器探活"""
    return {"status": "ok"}


app.include_router(indexing_router.router)
app.include_router(google_router.router)
app.include_router(sitemap_router.router)


_enable_app_access_log = str(getattr(settings, "APP_ACCESS_LOG", "true")).strip().lower()
_asgi_app = _AccessLogASGI(app) if _enable_app_access_log in {"1", "true", "yes", "on"} else app


def get_app():
    return _asgi_app
