"""
命令行触发索引同步（供 cron 等外部调度使用，与后台接口共用同一套逻辑）。

使用方式（在项目根目录执行）：
  uv run scripts/run_indexing.py refresh                 # 仅刷新 access token
  uv run scripts/run_indexing.py inspect                 # 全量检查站点 URL 的索引状态
  uv run scripts/run_indexing.py submit URL [URL ...]    # 请求 Google 收录指定 URL
  uv run scripts/run_indexing.py health                  # 连接诊断
  uv run scripts/run_indexing.py sitemap                 # 向 Search Console 提交站点地图

退出码：0 成功；1 配置/认证错误；2 批处理中存在失败的 URL 或诊断未通过。
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from seosync.database import SessionLocal
from seosync.errors import IndexingError
from seosync.indexing.health import check_connection
from seosync.indexing.runner import run_full_inspection, run_submission, run_token_refresh, submit_sitemap
from seosync.indexing.types import RunResult


def _print_run(run: RunResult) -> int:
    for item in run.results:
        mark = "OK " if item.success else "ERR"
        detail = item.verdict if item.success else f"[{item.classification}] {item.error}"
        print(f"{mark} {item.url} {detail}")
    print(f"\n共 {run.total} 个 URL：成功 {run.success_count}，失败 {run.error_count}")
    return 0 if run.error_count == 0 else 2


def main() -> None:
    parser = argparse.ArgumentParser(description="Google 索引同步")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("refresh", help="仅刷新 access token")
    sub.add_parser("inspect", help="全量检查索引状态")
    submit = sub.add_parser("submit", help="请求收录指定 URL")
    submit.add_argument("urls", nargs="+")
    sub.add_parser("health", help="连接诊断")
    sub.add_parser("sitemap", help="提交站点地图")
    args = parser.parse_args()

    with SessionLocal() as session:
        try:
            if args.command == "refresh":
                credential = run_token_refresh(session)
                print(f"token 已刷新，有效期至 {credential.token_expires_at}")
                code = 0
            elif args.command == "inspect":
                code = _print_run(run_full_inspection(session))
            elif args.command == "submit":
                code = _print_run(run_submission(session, args.urls))
            elif args.command == "sitemap":
                submission = submit_sitemap(session)
                if submission is None:
                    print("站点地图自动提交已关闭，未提交")
                else:
                    print(f"站点地图已提交：{submission.sitemap_url}（{submission.submitted_at}）")
                code = 0
            else:
                report = check_connection(session)
                print(f"凭据存在：{report.credentials_present}")
                print(f"token 可刷新：{report.token_refreshable}")
                print(f"接口可访问：{report.api_reachable}")
                print(f"授权范围完整：{report.scopes_present}")
                for problem in report.problems:
                    print(f"- {problem}")
                code = 0 if report.healthy else 2
        except IndexingError as exc:
            print(f"[run_indexing] {exc.message}", file=sys.stderr)
            code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
