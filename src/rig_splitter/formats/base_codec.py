"""
Base Codec Module
Abstract interface for reading and writing scene files.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from rig_splitter.extract.types import SceneGraph


class BaseCodec(ABC):
    """Abstract base class for scene file codecs

    Codecs convert between a file format and :class:`SceneGraph`.
    ``load`` raises SceneImportError and ``save`` raises SceneExportError;
    no other exception type is expected to escape either call.
    """

    extensions: frozenset = frozenset()

    @abstractmethod
    def get_format_name(self) -> str:
        """Return human-readable format name (e.g., 'FBX', 'JSON')"""

    @abstractmethod
    def load(self, path: Path) -> SceneGraph:
        """Read a scene file

        Args:
            path: Scene file to read

        Returns:
            SceneGraph: Imported scene
        """

    @abstractmethod
    def save(self, scene: SceneGraph, path: Path) -> None:
        """Write a scene file

        Args:
            scene: Scene to write
            path: Destination file path
        """

    def close(self) -> None:
        """Release resources held by the codec"""
