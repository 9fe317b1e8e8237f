"""Result models."""

from .results import ContentDiff, ExportResult, ImportResult

__all__ = ["ContentDiff", "ExportResult", "ImportResult"]
