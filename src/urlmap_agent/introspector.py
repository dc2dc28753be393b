"""Registered-endpoint discovery for Application subclasses."""
from __future__ import annotations
from typing import List, Mapping, Optional, Tuple
import logging

from urlmap_agent.errors import MountInstantiationError
from urlmap_agent.model import ProgramUnit

logger = logging.getLogger(__name__)


class ApplicationIntrospector:
    """Answers which endpoint units an Application subclass registers.

    The registration lists are read from ``getClasses()`` and ``getSingletons()``;
    a unit that does not declare one inherits it from its loaded superclass.
    """

    def __init__(self, units: Mapping[str, ProgramUnit], log: Optional[logging.Logger] = None):
        self.units = units
        self.log = log or logger

    def registered_endpoints(self, mount: ProgramUnit) -> Tuple[ProgramUnit, ...]:
        if mount.abstract:
            raise MountInstantiationError(mount.name, "class is abstract")
        if not mount.instantiable:
            raise MountInstantiationError(mount.name, "no public no-argument constructor")

        classes = self._inherited(mount, "registered_classes")
        instances = self._inherited(mount, "registered_instances")

        names: List[str] = []
        for n in classes + instances:
            if n not in names:
                names.append(n)

        out: List[ProgramUnit] = []
        for n in names:
            unit = self.units.get(n)
            if unit is None:
                self.log.debug("%s registers %s, which is not in the archive", mount.name, n)
                continue
            out.append(unit)
        return tuple(out)

    def _inherited(self, mount: ProgramUnit, attr: str) -> Tuple[str, ...]:
        unit: Optional[ProgramUnit] = mount
        seen = set()
        while unit is not None and unit.name not in seen:
            seen.add(unit.name)
            value = getattr(unit, attr)
            if value is not None:
                return value
            unit = self.units.get(unit.superclass) if unit.superclass else None
        # Application.getClasses() / getSingletons() default to empty sets
        return ()
