from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Tuple, Union

@dataclass(frozen=True)
class ProgramUnit:
    """A loaded class, with everything the resolver needs computed at load time."""
    name: str                                   # fully-qualified, nested units use '$'
    annotations: FrozenSet[str] = frozenset()   # simple annotation names on the type
    superclass: Optional[str] = None            # qualified where the imports allow it
    abstract: bool = False
    instantiable: bool = True                   # public no-arg constructor available
    application_path: Optional[str] = None      # @ApplicationPath value, None if absent
    registered_classes: Optional[Tuple[str, ...]] = None    # getClasses(), None if not declared
    registered_instances: Optional[Tuple[str, ...]] = None  # getSingletons(), None if not declared
    operation_paths: FrozenSet[str] = frozenset()

@dataclass(frozen=True)
class MountEntry:
    name: str
    bound_unit_name: Optional[str] = None      # <servlet-name> when it names a class
    declared_unit_class: Optional[str] = None  # <servlet-class>
    init_params: Mapping[str, str] = field(default_factory=dict, hash=False)
    url_patterns: Tuple[str, ...] = ()

    def __post_init__(self):
        # read-only view keeps the frozen entry hashable and unchanged after parsing
        object.__setattr__(self, "init_params", MappingProxyType(dict(self.init_params)))

@dataclass(frozen=True)
class Classification:
    endpoint_units: Tuple[ProgramUnit, ...] = ()
    mount_units: Tuple[ProgramUnit, ...] = ()

@dataclass(frozen=True)
class SingleMapping:
    """Zero or one mount: one base mapping for the whole archive (None if unknown)."""
    url_mapping: Optional[str]

@dataclass(frozen=True)
class OperationMapping:
    """Two or more mounts: operation path -> base mapping of the owning mount."""
    table: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "table", MappingProxyType(dict(self.table)))

@dataclass(frozen=True)
class Unresolved:
    """Two mounts claim the same operation path; no partial mapping is published."""
    operation_path: str
    mounts: Tuple[str, str]

ResolutionResult = Union[SingleMapping, OperationMapping, Unresolved]
