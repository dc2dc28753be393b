from __future__ import annotations
from typing import Dict, Iterable, List, Mapping, Optional
import logging

from urlmap_agent.errors import UnitLoadError
from urlmap_agent.model import Classification, ProgramUnit
from urlmap_agent.parsers.base import UnitLoader

logger = logging.getLogger(__name__)

# Documentation / resource annotations that make a unit an endpoint
ENDPOINT_ANNOTATIONS = frozenset({"Api", "SwaggerDefinition", "Path"})

APPLICATION_BASES = frozenset({"javax.ws.rs.core.Application", "jakarta.ws.rs.core.Application"})


def load_units(names: Iterable[str], loader: UnitLoader) -> Dict[str, ProgramUnit]:
    """Load every unit, keeping discovery order; failures are logged and skipped."""
    units: Dict[str, ProgramUnit] = {}
    for name in names:
        try:
            units[name] = loader.load(name)
        except UnitLoadError as e:
            logger.debug("Skipping unit %s: %s", e.unit_name, e.reason)
    return units


def is_endpoint(unit: ProgramUnit) -> bool:
    return bool(unit.annotations & ENDPOINT_ANNOTATIONS)


def is_application(unit: ProgramUnit, units: Mapping[str, ProgramUnit]) -> bool:
    """True if the unit extends Application, directly or through loaded superclasses."""
    seen = {unit.name}
    sup: Optional[str] = unit.superclass
    while sup is not None:
        if sup in APPLICATION_BASES:
            return True
        parent = units.get(sup)
        if parent is None or parent.name in seen:
            return False
        seen.add(parent.name)
        sup = parent.superclass
    return False


def classify(units: Mapping[str, ProgramUnit]) -> Classification:
    """
    로드된 unit을 역할별로 나눈다.
      - endpoint: @Api / @SwaggerDefinition / @Path
      - mount: Application 하위 클래스
    한 unit이 두 역할을 모두 가질 수 있다. 순서는 발견 순서를 따른다.
    """
    endpoints: List[ProgramUnit] = []
    mounts: List[ProgramUnit] = []
    for unit in units.values():
        if is_endpoint(unit):
            endpoints.append(unit)
        if is_application(unit, units):
            mounts.append(unit)
    logger.debug("Classified %d endpoint units, %d application units", len(endpoints), len(mounts))
    return Classification(endpoint_units=tuple(endpoints), mount_units=tuple(mounts))
