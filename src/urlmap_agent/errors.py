"""Exceptions raised by the archive scan.

Expected absence (no descriptor, no mapping, no ``@ApplicationPath``) is never
an exception; it surfaces as ``None``.
"""
from __future__ import annotations


class UrlMapError(Exception):
    """Base class for every error raised by urlmap_agent."""


class ArchiveError(UrlMapError):
    """The archive could not be fetched or is not a readable zip file."""


class DescriptorError(UrlMapError):
    """The deployment descriptor is malformed."""


class UnitLoadError(UrlMapError):
    """A program unit could not be loaded.

    Non-fatal: the scan logs it and omits the unit.
    """

    def __init__(self, unit_name: str, reason: str):
        super().__init__(f"{unit_name}: {reason}")
        self.unit_name = unit_name
        self.reason = reason


class MountInstantiationError(UrlMapError):
    """An application mount unit cannot be instantiated."""

    def __init__(self, unit_name: str, reason: str):
        super().__init__(f"Failed to initialize Application: {unit_name}: {reason}")
        self.unit_name = unit_name
        self.reason = reason
