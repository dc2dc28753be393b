from urlmap_agent.parsers.base import UnitLoader
from urlmap_agent.parsers.jaxrs_java import JavaSourceLoader, normalize_operation_path

__all__ = ["UnitLoader", "JavaSourceLoader", "normalize_operation_path"]
