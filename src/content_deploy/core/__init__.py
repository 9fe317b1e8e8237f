"""Core engine - export, import and diff."""

from .diff_generator import DiffGenerator
from .exporter import Exporter
from .importer import Importer

__all__ = ["DiffGenerator", "Exporter", "Importer"]
