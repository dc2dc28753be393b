"""URL mapping resolution.

Given the endpoint and Application units of one archive and its (optional)
deployment descriptor, work out the base URL mapping the endpoints are served
under:

* no Application subclass: the mapping web.xml declares for the built-in
  ``javax.ws.rs.core.Application`` servlet;
* one Application subclass: its web.xml mapping, else its ``@ApplicationPath``;
* several: a table from operation path to the owning application's mapping.
  Operation paths must be disjoint across applications; a path claimed twice
  makes the whole archive :class:`Unresolved`.

Resolution is pure: no I/O, and the same inputs always give the same result.
"""
from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Sequence
import logging

from urlmap_agent.descriptor import Descriptor
from urlmap_agent.errors import MountInstantiationError
from urlmap_agent.introspector import ApplicationIntrospector
from urlmap_agent.model import (
    OperationMapping,
    ProgramUnit,
    ResolutionResult,
    SingleMapping,
    Unresolved,
)

logger = logging.getLogger(__name__)

# Servlet names of the runtime's implicit Application
DEFAULT_MOUNT_NAMES = ("javax.ws.rs.core.Application", "jakarta.ws.rs.core.Application")


def normalize_application_path(value: Optional[str]) -> str:
    """``@ApplicationPath`` value -> url mapping; root-mounted is ''."""
    if value is None or value == "" or value == "/":
        return ""
    if not value.startswith("/"):
        value = "/" + value
    return value


def _ordered(units: Iterable[ProgramUnit]) -> List[ProgramUnit]:
    # sets carry no discovery order; sort them so repeated runs agree
    if isinstance(units, (set, frozenset)):
        return sorted(units, key=lambda u: u.name)
    out: List[ProgramUnit] = []
    seen = set()
    for u in units:
        if u.name not in seen:
            seen.add(u.name)
            out.append(u)
    return out


class UrlMappingResolver:
    def __init__(
        self,
        introspector: Optional[ApplicationIntrospector] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.introspector = introspector
        self.log = log or logger

    def resolve(
        self,
        endpoint_units: Iterable[ProgramUnit],
        mount_units: Iterable[ProgramUnit],
        descriptor: Optional[Descriptor],
    ) -> ResolutionResult:
        endpoints = _ordered(endpoint_units)
        mounts = _ordered(mount_units)

        if not mounts:
            return SingleMapping(self._default_mount_mapping(descriptor))
        if len(mounts) == 1:
            return SingleMapping(self.mount_mapping(mounts[0], descriptor))

        introspector = self.introspector
        if introspector is None:
            known = {u.name: u for u in endpoints + mounts}
            introspector = ApplicationIntrospector(known, log=self.log)
        return self._resolve_many(mounts, descriptor, introspector)

    def _default_mount_mapping(self, descriptor: Optional[Descriptor]) -> Optional[str]:
        if descriptor is None:
            return None
        for name in DEFAULT_MOUNT_NAMES:
            pattern = descriptor.url_pattern_for(name)
            if pattern is not None:
                return pattern
        return None

    def mount_mapping(self, mount: ProgramUnit, descriptor: Optional[Descriptor]) -> Optional[str]:
        """web.xml servlet mapping for the application, else its @ApplicationPath."""
        pattern = self._descriptor_mapping(mount.name, descriptor)
        if pattern is not None:
            return pattern
        if mount.application_path is not None:
            return normalize_application_path(mount.application_path)
        self.log.debug("Didn't find @ApplicationPath in Application class %s", mount.name)
        return None

    def _descriptor_mapping(self, class_name: str, descriptor: Optional[Descriptor]) -> Optional[str]:
        if descriptor is None:
            return None
        entry = descriptor.find_mount_by_bound_name(class_name)
        if entry is not None:
            self.log.debug("Found servlet using servlet-name: %s", class_name)
            pattern = descriptor.url_pattern_for(entry.name)
            if pattern is not None:
                return pattern
        entry = descriptor.find_mount_matching(class_name)
        if entry is not None:
            pattern = descriptor.url_pattern_for(entry.name)
            if pattern is not None:
                return pattern
        self.log.debug("Didn't find servlet mapping in web.xml for %s", class_name)
        return None

    def _resolve_many(
        self,
        mounts: Sequence[ProgramUnit],
        descriptor: Optional[Descriptor],
        introspector: ApplicationIntrospector,
    ) -> ResolutionResult:
        table: Dict[str, str] = {}
        owner: Dict[str, str] = {}
        for mount in mounts:
            url_mapping = self.mount_mapping(mount, descriptor)
            if url_mapping is None:
                self.log.debug("Skipping %s: no url mapping", mount.name)
                continue
            try:
                registered = introspector.registered_endpoints(mount)
            except MountInstantiationError as e:
                self.log.debug("%s", e)
                continue

            paths = set()
            for endpoint in registered:
                paths |= endpoint.operation_paths
            for path in sorted(paths):
                if path in owner:
                    # Only a 1-n mapping between urls and operation paths is supported
                    self.log.warning(
                        "Operation path %s is served by both %s and %s; url mapping left unresolved",
                        path, owner[path], mount.name,
                    )
                    return Unresolved(operation_path=path, mounts=(owner[path], mount.name))
                owner[path] = mount.name
                table[path] = url_mapping
        return OperationMapping(table=table)


def resolve(
    endpoint_units: Iterable[ProgramUnit],
    mount_units: Iterable[ProgramUnit],
    descriptor: Optional[Descriptor] = None,
    log: Optional[logging.Logger] = None,
) -> ResolutionResult:
    return UrlMappingResolver(log=log).resolve(endpoint_units, mount_units, descriptor)
