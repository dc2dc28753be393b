from __future__ import annotations

import hashlib
import logging
import tempfile
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
from urllib.error import URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from urlmap_agent.config import settings
from urlmap_agent.errors import ArchiveError

logger = logging.getLogger(__name__)


@dataclass
class ArchiveContents:
    unit_names: List[str] = field(default_factory=list)
    sources: Dict[str, str] = field(default_factory=dict)  # "com/acme/Foo.java" -> text
    descriptor: Optional[bytes] = None


def is_url(s: str) -> bool:
    return s.startswith("http://") or s.startswith("https://")


def _cached_name(url: str) -> str:
    h = hashlib.sha1(url.encode("utf-8")).hexdigest()[:12]
    name = Path(urlparse(url).path).name or "archive.war"
    return f"{h}-{name}"


def _writable_cache_root() -> Path:
    """
    cache_dir가 상대경로/점(.) 시작이면 임시 디렉터리 아래로 둔다.
    """
    raw = str(settings.cache_dir) if getattr(settings, "cache_dir", None) else ".cache"
    p = Path(raw)
    if raw.startswith(".") or not p.is_absolute():
        return Path(tempfile.gettempdir()) / "urlmap-agent-cache"
    return p


def _download(url: str, dest: Path, token: str | None = None) -> None:
    headers = {"User-Agent": "urlmap-agent", "Accept": "application/octet-stream"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    req = Request(url, headers=headers)
    with urlopen(req, timeout=60) as resp:
        dest.write_bytes(resp.read())


def prepare_archive(location: str) -> Path:
    """
    location이 로컬 경로면 그대로 반환.
    http(s) URL이면 cache_dir 아래로 한 번만 다운로드 후 경로 반환.
    """
    p = Path(location).expanduser()
    if p.exists():
        return p.resolve()

    if not is_url(location):
        raise ArchiveError(f"archive not found: {location}")

    cache_root = _writable_cache_root()
    cache_root.mkdir(parents=True, exist_ok=True)
    target = cache_root / _cached_name(location)
    if target.exists():
        return target.resolve()

    tmp = target.with_suffix(target.suffix + ".tmp")
    try:
        _download(location, tmp, token=settings.http_token)
    except (URLError, OSError) as e:
        tmp.unlink(missing_ok=True)
        raise ArchiveError(f"download failed: {location}: {e}") from e
    tmp.replace(target)
    return target.resolve()


def unit_name_for(entry_name: str, classes_root: str) -> Optional[str]:
    """WEB-INF/classes/com/acme/Foo.class -> com.acme.Foo"""
    if not entry_name.startswith(classes_root):
        return None
    rel = entry_name[len(classes_root):]
    for ext in (".class", ".java"):
        if rel.endswith(ext):
            return rel[: -len(ext)].replace("/", ".")
    return None


def read_archive(path: Path, classes_root: str | None = None, descriptor_entry: str | None = None) -> ArchiveContents:
    classes_root = classes_root or settings.classes_root
    descriptor_entry = descriptor_entry or settings.descriptor_entry
    contents = ArchiveContents()
    seen: set[str] = set()

    try:
        zf = zipfile.ZipFile(path, "r")
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveError(f"not a readable archive: {path}: {e}") from e

    with zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            ename = info.filename
            name = unit_name_for(ename, classes_root)
            if name is not None and name not in seen:
                seen.add(name)
                contents.unit_names.append(name)
            if ename.endswith(".java"):
                rel = ename[len(classes_root):] if ename.startswith(classes_root) else ename
                contents.sources.setdefault(rel, zf.read(info).decode("utf-8", errors="ignore"))
            if ename == descriptor_entry:
                contents.descriptor = zf.read(info)

    logger.debug("%s: %d units, %d sources, descriptor=%s",
                 path, len(contents.unit_names), len(contents.sources), contents.descriptor is not None)
    return contents
