"""URL 매핑 리포트 → JSON / Markdown 출력."""
from __future__ import annotations
from pathlib import Path
from typing import Optional
from urlmap_agent.models import UrlMappingReport


def join_url(url_mapping: Optional[str], operation_path: str) -> Optional[str]:
    """'/sample1/*' + '/items' -> '/sample1/items'"""
    if url_mapping is None:
        return None
    base = url_mapping
    if base.endswith("/*"):
        base = base[:-2]
    base = base.rstrip("/")
    if not operation_path.startswith("/"):
        operation_path = "/" + operation_path
    return base + operation_path


def to_markdown(report: UrlMappingReport) -> str:
    lines: list[str] = []
    lines.append("# URL Mapping\n")
    lines.append(f"- Archive: `{report.archive}`")
    lines.append(f"- Status: **{report.status}**")
    lines.append(f"- Endpoint classes: {len(report.endpoints)}")
    lines.append(f"- Application classes: {len(report.mounts)}\n")

    if report.status == "single":
        mapping = "(unknown)" if report.url_mapping is None else f"`{report.url_mapping or '/'}`"
        lines.append(f"**URL mapping:** {mapping}\n")
        if report.skipped_units:
            lines.append(f"_Mapping ignores {len(report.skipped_units)} units that could not be loaded._\n")
    elif report.status == "unresolved" and report.conflict:
        owners = " and ".join(f"`{m}`" for m in report.conflict.mounts)
        lines.append(
            f"**Unresolved:** operation path `{report.conflict.operation_path}` is served by {owners}.\n"
        )
    else:
        lines.append("| Operation path | URL mapping |")
        lines.append("|----------------|-------------|")
        for op, mapping in sorted(report.operations.items()):
            lines.append(f"| `{op}` | `{mapping or '/'}` |")
        lines.append("")

    if report.mounts:
        lines.append("## Applications\n")
        for m in report.mounts:
            mapping = "-" if m.url_mapping is None else f"`{m.url_mapping or '/'}`"
            lines.append(f"### {m.name}")
            lines.append(f"**URL mapping:** {mapping}\n")
            if m.error:
                lines.append(f"_Not introspected: {m.error}_\n")
            for e in m.endpoints:
                lines.append(f"- `{e}`")
            lines.append("")

    if report.endpoints:
        lines.append("## Endpoints\n")
        for ep in sorted(report.endpoints, key=lambda e: e.name):
            lines.append(f"### {ep.name}")
            for op in ep.operation_paths:
                lines.append(f"- `{op}`")
            if ep.urls:
                lines.append("")
                lines.append("URLs: " + ", ".join(f"`{u}`" for u in ep.urls))
            lines.append("")

    if report.skipped_units:
        lines.append("## Skipped units\n")
        for n in report.skipped_units:
            lines.append(f"- `{n}`")
        lines.append("")

    return "\n".join(lines)


def write_report(report: UrlMappingReport, out_dir: Path, stem: str = "urlmap") -> tuple[Path, Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    json_path = out_dir / f"{stem}.json"
    md_path = out_dir / f"{stem}.md"
    json_path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    md_path.write_text(to_markdown(report), encoding="utf-8")
    return json_path, md_path
