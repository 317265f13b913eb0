"""
===============================================================================
NATIVEBENCH - Persistence
===============================================================================
Modules:
    json_exporter  -- incremental per-run JSON files
    results_db     -- SQLite results store (schema.sql), pandas queries
    exporters      -- DatabaseExporter hook adapter
===============================================================================
"""

from nativebench.persistence.exporters import DatabaseExporter
from nativebench.persistence.json_exporter import JsonFileExporter
from nativebench.persistence.results_db import ResultsDatabase

__all__ = ["DatabaseExporter", "JsonFileExporter", "ResultsDatabase"]
