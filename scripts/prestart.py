"""
容器启动前置脚本：等待数据库就绪并执行 Alembic 迁移

- 读取环境变量/应用配置的 DATABASE_URL；
- 等待数据库可连接（重试直到超时）；
- 运行 Alembic upgrade head，失败时按 ORM 建表兜底。
"""
from __future__ import annotations

import os
import sys
import time
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, text

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))


def get_database_url() -> str:
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url
    from seosync.config import settings

    return str(settings.DATABASE_URL)


def wait_for_db(url: str, timeout: float = 60.0) -> bool:
    deadline = time.time() + max(1.0, timeout)
    last_err: Optional[Exception] = None
    engine = create_engine(url)
    try:
        while time.time() < deadline:
            try:
                with engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
                return True
            except Exception as exc:  # noqa: BLE001
                last_err = exc
                time.sleep(1.0)
    finally:
        engine.dispose()
    print(f"[prestart] 数据库等待超时：{last_err}", file=sys.stderr)
    return False


def run_alembic(url: str) -> None:
    from alembic import command
    from alembic.config import Config

    cfg = Config(str(ROOT_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT_DIR / "migrations"))
    cfg.set_main_option("sqlalchemy.url", url)
    command.upgrade(cfg, "head")
    print("[prestart] Alembic upgrade head 完成")


def main() -> None:
    url = get_database_url()
    print(f"[prestart] 使用数据库：{url}")
    if not wait_for_db(url, timeout=float(os.getenv("DB_WAIT_TIMEOUT", "60"))):
        sys.exit(1)
    try:
        run_alembic(url)
    except Exception as exc:  # noqa: BLE001
        print(f"[prestart] 迁移失败，改为按 ORM 建表：{exc}", file=sys.stderr)
        from seosync.database import ensure_database_schema

        ensure_database_schema()
        print("[prestart] ensure_database_schema 完成")


if __name__ == "__main__":
    main()
