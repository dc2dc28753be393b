"""
WAR URL 매핑 CLI.
- urlmap-agent scan ARCHIVE: 엔드포인트별 실제 URL 매핑 결정 후 리포트 출력
- urlmap-agent watch ARCHIVE: 아카이브가 다시 빌드될 때마다 재실행
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from urlmap_agent.archive import prepare_archive
from urlmap_agent.config import settings
from urlmap_agent.errors import ArchiveError
from urlmap_agent.run import build_report, run_urlmap, scan_archive
from urlmap_agent.writer import write_report

app = typer.Typer(
    name="urlmap-agent",
    add_completion=False,
    help="WAR 안의 JAX-RS/Swagger 엔드포인트가 실제로 서비스되는 URL 매핑을 찾는다.",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.command()
def scan(
    archive: str = typer.Argument(..., help="WAR 파일 경로 또는 http(s) URL"),
    source_root: Optional[List[Path]] = typer.Option(
        None, "--source-root", "-s", help="WAR에 소스가 없을 때 참조할 Java 소스 루트 (반복 가능)"
    ),
    out_dir: Optional[Path] = typer.Option(None, "--out-dir", "-o", help="리포트 출력 디렉터리"),
    as_json: bool = typer.Option(False, "--json", help="리포트 JSON을 stdout으로 출력"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="진단 로그 출력"),
):
    """아카이브를 분석해 URL 매핑 리포트(JSON + MD)를 생성."""
    _setup_logging(verbose)
    roots = source_root or []
    try:
        if as_json:
            path = prepare_archive(archive)
            report = build_report(scan_archive(path, roots))
            write_report(report, out_dir or settings.output_dir)
            typer.echo(report.model_dump_json(indent=2))
        else:
            run_urlmap(archive, out_dir=out_dir, source_roots=roots)
    except ArchiveError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)


@app.command()
def watch(
    archive: Path = typer.Argument(..., help="감시할 로컬 WAR 파일"),
    source_root: Optional[List[Path]] = typer.Option(None, "--source-root", "-s"),
    out_dir: Optional[Path] = typer.Option(None, "--out-dir", "-o"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """아카이브 변경 시마다 scan 재실행."""
    from urlmap_agent.watch import watch_archive

    _setup_logging(verbose)
    if not archive.exists():
        raise typer.BadParameter("watch는 로컬 파일에서 사용하세요.")
    watch_archive(archive, out_dir=out_dir, source_roots=source_root or [])


if __name__ == "__main__":
    app()
