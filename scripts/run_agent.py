#!/usr/bin/env python3
"""
urlmap-agent와 동일한 진입점. pip install 없이 실행 가능.

  python scripts/run_agent.py ./target/app.war
  python scripts/run_agent.py ./target/app.war --source-root ./src/main/java
  python scripts/run_agent.py https://repo.example.com/app.war -o ./out
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# 프로젝트 루트에서 실행 시 src 로드 (pip install 없이 실행 가능)
_ROOT = Path(__file__).resolve().parent.parent
_SRC = _ROOT / "src"
if _SRC.exists() and str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))


def main() -> int:
    parser = argparse.ArgumentParser(
        description="WAR 분석 → 엔드포인트별 URL 매핑 리포트(JSON + MD) 생성",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
예시:
  python scripts/run_agent.py ./target/app.war
  python scripts/run_agent.py ./target/app.war -s ./src/main/java -o ./out
        """.strip(),
    )
    parser.add_argument("archive", help="WAR 파일 경로 또는 http(s) URL")
    parser.add_argument("--source-root", "-s", action="append", default=[], help="Java 소스 루트 (반복 가능)")
    parser.add_argument("--out-dir", "-o", default=None, help="리포트 출력 디렉터리")
    parser.add_argument("--verbose", "-v", action="store_true", help="진단 로그 출력")

    args = parser.parse_args()

    from rich.logging import RichHandler
    from urlmap_agent.errors import ArchiveError
    from urlmap_agent.run import run_urlmap

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )

    try:
        run_urlmap(
            args.archive,
            out_dir=Path(args.out_dir) if args.out_dir else None,
            source_roots=[Path(p) for p in args.source_root],
        )
    except ArchiveError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
