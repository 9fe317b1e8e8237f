"""Dumps: model, construction, storage, dumping and restoring."""

from .builder import DumpBuilder
from .dumper import Dumper
from .models import Blob, Dump, DumpDocument
from .restorer import DumpRestorer
from .storage import DumpStorage

__all__ = [
    "Blob",
    "Dump",
    "DumpDocument",
    "DumpBuilder",
    "DumpStorage",
    "Dumper",
    "DumpRestorer",
]
