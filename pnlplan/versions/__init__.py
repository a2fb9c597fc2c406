"""Saved statement versions."""

from pnlplan.versions.service import VersionService

__all__ = ["VersionService"]
