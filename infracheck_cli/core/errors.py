"""Exceptions surfaced to callers of the analyzer."""

from pathlib import Path
from typing import Union


class InfracheckError(Exception):
    """Base class for analyzer errors"""


class DocumentWriteError(InfracheckError):
    """A requirements document could not be serialized or written"""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to write {self.path}: {reason}")
