"""Deployment descriptor (WEB-INF/web.xml): parsing and mount lookups."""
from __future__ import annotations
import logging
import xml.etree.ElementTree as ET
from typing import Dict, Iterable, List, Optional, Tuple

from urlmap_agent.errors import DescriptorError
from urlmap_agent.model import MountEntry

logger = logging.getLogger(__name__)

# Init params naming the Application subclass a servlet serves
APPLICATION_INIT_PARAMS = ("javax.ws.rs.Application", "jakarta.ws.rs.Application")


class Descriptor:
    """Immutable view over the mount entries of a deployment descriptor."""

    def __init__(self, entries: Iterable[MountEntry]):
        self._entries: Tuple[MountEntry, ...] = tuple(entries)
        self._by_name: Dict[str, MountEntry] = {}
        for e in self._entries:
            if e.name in self._by_name:
                raise DescriptorError(f"duplicate servlet name: {e.name}")
            self._by_name[e.name] = e

    @property
    def entries(self) -> Tuple[MountEntry, ...]:
        return self._entries

    def find_mount_by_bound_name(self, name: str) -> Optional[MountEntry]:
        return self._by_name.get(name)

    def find_mount_matching(self, unit_class_name: str) -> Optional[MountEntry]:
        """First entry whose servlet-class, or Application init-param, names the unit."""
        for e in self._entries:
            if e.declared_unit_class is not None and e.declared_unit_class == unit_class_name:
                logger.debug("Found servlet using servlet-class: %s", e.name)
                return e
            for key in APPLICATION_INIT_PARAMS:
                if e.init_params.get(key) == unit_class_name:
                    logger.debug("Found servlet using init-param: %s", e.name)
                    return e
        return None

    def url_pattern_for(self, mount_name: str) -> Optional[str]:
        e = self._by_name.get(mount_name)
        if e is None or not e.url_patterns:
            return None
        return e.url_patterns[0]

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Descriptor({[e.name for e in self._entries]!r})"


def _local(tag: str) -> str:
    # web.xml may or may not carry the javaee / jakartaee namespace
    return tag.rsplit("}", 1)[-1]


def _children(el: ET.Element, name: str) -> List[ET.Element]:
    return [c for c in el if _local(c.tag) == name]


def _text(el: ET.Element, name: str) -> Optional[str]:
    for c in _children(el, name):
        if c.text and c.text.strip():
            return c.text.strip()
    return None


def parse_descriptor(data: bytes) -> Descriptor:
    """Parse web.xml bytes into a Descriptor.

    Every <servlet> becomes an entry; <servlet-mapping> url patterns are attached
    by servlet-name. A mapping whose name has no <servlet> element still becomes
    an entry (the JAX-RS pluggability case where the name is the Application class).
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise DescriptorError(f"malformed deployment descriptor: {e}") from e

    if _local(root.tag) != "web-app":
        raise DescriptorError(f"unexpected root element <{_local(root.tag)}>")

    patterns: Dict[str, List[str]] = {}
    for m in _children(root, "servlet-mapping"):
        name = _text(m, "servlet-name")
        if not name:
            continue
        for up in _children(m, "url-pattern"):
            if up.text and up.text.strip():
                patterns.setdefault(name, []).append(up.text.strip())

    entries: List[MountEntry] = []
    seen: set[str] = set()
    for s in _children(root, "servlet"):
        name = _text(s, "servlet-name")
        if not name:
            continue
        if name in seen:
            raise DescriptorError(f"duplicate servlet name: {name}")
        seen.add(name)
        servlet_class = _text(s, "servlet-class")
        params: Dict[str, str] = {}
        for ip in _children(s, "init-param"):
            k = _text(ip, "param-name")
            if k:
                params[k] = _text(ip, "param-value") or ""
        entries.append(MountEntry(
            name=name,
            bound_unit_name=name if servlet_class is None else None,
            declared_unit_class=servlet_class,
            init_params=params,
            url_patterns=tuple(patterns.get(name, ())),
        ))

    for name, ups in patterns.items():
        if name not in seen:
            seen.add(name)
            entries.append(MountEntry(name=name, bound_unit_name=name, url_patterns=tuple(ups)))

    return Descriptor(entries)
