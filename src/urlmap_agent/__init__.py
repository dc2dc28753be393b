from urlmap_agent.resolver import UrlMappingResolver, normalize_application_path, resolve
from urlmap_agent.run import run_urlmap, scan_archive

__all__ = ["UrlMappingResolver", "normalize_application_path", "resolve", "run_urlmap", "scan_archive"]
