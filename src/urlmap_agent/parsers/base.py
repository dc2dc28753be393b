from __future__ import annotations
from abc import ABC, abstractmethod
from urlmap_agent.model import ProgramUnit

class UnitLoader(ABC):
    @abstractmethod
    def load(self, name: str) -> ProgramUnit:
        """Load one unit by qualified name; raise UnitLoadError if it can't be loaded."""
