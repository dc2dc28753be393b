"""Archive scan: 엔트리 열거 → unit 로드/분류 → web.xml 파싱 → URL 매핑 결정 → 리포트 출력."""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from rich.console import Console

from urlmap_agent.archive import prepare_archive, read_archive
from urlmap_agent.config import settings
from urlmap_agent.descriptor import Descriptor, parse_descriptor
from urlmap_agent.errors import DescriptorError, MountInstantiationError
from urlmap_agent.introspector import ApplicationIntrospector
from urlmap_agent.model import (
    Classification,
    OperationMapping,
    ProgramUnit,
    ResolutionResult,
    SingleMapping,
    Unresolved,
)
from urlmap_agent.models import ConflictModel, EndpointModel, MountModel, UrlMappingReport
from urlmap_agent.parsers.jaxrs_java import JavaSourceLoader
from urlmap_agent.resolver import UrlMappingResolver
from urlmap_agent.scanner import classify, load_units
from urlmap_agent.writer import join_url, write_report

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    archive: Path
    units: Dict[str, ProgramUnit]
    classification: Classification
    descriptor: Optional[Descriptor]
    result: ResolutionResult
    skipped_units: List[str] = field(default_factory=list)


def scan_archive(
    archive: Path,
    source_roots: Sequence[Path] = (),
    log: Optional[logging.Logger] = None,
) -> ScanResult:
    log = log or logger
    contents = read_archive(archive)

    loader = JavaSourceLoader(contents.sources, source_roots, known_units=contents.unit_names)
    units = load_units(contents.unit_names, loader)
    skipped = [n for n in contents.unit_names if n not in units]
    classification = classify(units)

    descriptor = None
    if contents.descriptor is not None:
        try:
            descriptor = parse_descriptor(contents.descriptor)
        except DescriptorError as e:
            log.warning("Ignoring deployment descriptor of %s: %s", archive, e)

    resolver = UrlMappingResolver(ApplicationIntrospector(units, log=log), log=log)
    result = resolver.resolve(classification.endpoint_units, classification.mount_units, descriptor)
    return ScanResult(
        archive=archive,
        units=units,
        classification=classification,
        descriptor=descriptor,
        result=result,
        skipped_units=skipped,
    )


def build_report(scan: ScanResult) -> UrlMappingReport:
    result = scan.result
    report = UrlMappingReport(archive=str(scan.archive), status="single", skipped_units=scan.skipped_units)
    if isinstance(result, SingleMapping):
        report.url_mapping = result.url_mapping
    elif isinstance(result, OperationMapping):
        report.status = "table"
        report.operations = dict(result.table)
    elif isinstance(result, Unresolved):
        report.status = "unresolved"
        report.conflict = ConflictModel(operation_path=result.operation_path, mounts=list(result.mounts))

    for unit in scan.classification.endpoint_units:
        ops = sorted(unit.operation_paths)
        urls: list[str] = []
        for op in ops:
            if isinstance(result, SingleMapping):
                url = join_url(result.url_mapping, op)
            elif isinstance(result, OperationMapping):
                url = join_url(result.table.get(op), op)
            else:
                url = None
            if url is not None:
                urls.append(url)
        report.endpoints.append(EndpointModel(name=unit.name, operation_paths=ops, urls=urls))

    resolver = UrlMappingResolver(log=logging.getLogger("urlmap_agent.report"))
    introspector = ApplicationIntrospector(scan.units)
    for mount in scan.classification.mount_units:
        m = MountModel(name=mount.name, url_mapping=resolver.mount_mapping(mount, scan.descriptor))
        try:
            m.endpoints = [u.name for u in introspector.registered_endpoints(mount)]
        except MountInstantiationError as e:
            m.error = e.reason
        report.mounts.append(m)
    return report


def run_urlmap(
    location: str,
    out_dir: Path | None = None,
    source_roots: Sequence[Path] = (),
) -> UrlMappingReport:
    archive = prepare_archive(location)
    base = out_dir or settings.output_dir
    console.print(f"[bold]Archive:[/bold] {archive}")

    scan = scan_archive(archive, source_roots)
    c = scan.classification
    console.print(
        f"Loaded [green]{len(scan.units)}[/green] units "
        f"([green]{len(c.endpoint_units)}[/green] endpoint, [green]{len(c.mount_units)}[/green] application)"
    )
    if scan.skipped_units:
        console.print(f"[yellow]Skipped {len(scan.skipped_units)} units without loadable source[/yellow]")

    report = build_report(scan)
    if report.status == "single":
        shown = "(unknown)" if report.url_mapping is None else (report.url_mapping or "/")
        console.print(f"[bold]URL mapping:[/bold] {shown}")
        if report.skipped_units:
            # a skipped unit may be an Application class that would change the answer
            console.print(f"[yellow]Mapping ignores {len(report.skipped_units)} skipped units[/yellow]")
    elif report.status == "table":
        console.print(f"[bold]URL mappings:[/bold] {len(report.operations)} operation paths")
    else:
        console.print(
            f"[bold red]Unresolved:[/bold red] {report.conflict.operation_path} "
            f"is served by {' and '.join(report.conflict.mounts)}"
        )

    json_path, md_path = write_report(report, base)
    console.print(f"[bold green]JSON:[/bold green] {json_path}")
    console.print(f"[bold green]MD:[/bold green]   {md_path}")
    return report
