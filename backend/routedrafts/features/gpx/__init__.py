"""
GPX file import.

Usage:
    from routedrafts.features.gpx import GPXImportService
"""

from .parser import GPXImportService

__all__ = ["GPXImportService"]
