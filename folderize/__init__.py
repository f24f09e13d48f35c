"""
folderize - Move photos and other files into year/year-month folders.

Files are filed by their embedded capture date when one can be read, and by
their filesystem birth time otherwise. Moves preserve the original
timestamps and never overwrite existing files.

MIT License.
"""

__version__ = "1.0.0"
__copyright__ = "Copyright (c) 2025 folderize contributors"


# Public API
from .cli import main
from .config import Config
from .core import Folderizer
from .file_operations import FileOperations
from .metadata import extract
from .planner import plan
from .timestamps import resolve
from .utils import prune_empty_directories

__all__ = [ "main", "Config", "Folderizer", "FileOperations", "extract", "plan", "resolve",
            "prune_empty_directories" ]
