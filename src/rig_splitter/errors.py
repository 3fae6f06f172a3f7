class RigSplitterError(RuntimeError):
    """Base class for recoverable and fatal splitting failures."""


class SceneImportError(RigSplitterError):
    """Raised when a scene file cannot be read or is malformed."""


class SceneExportError(RigSplitterError):
    """Raised when an extracted scene cannot be written."""


class DirectoryTraversalError(RigSplitterError):
    """Raised when the input directory cannot be listed."""


__all__ = [
    "RigSplitterError",
    "SceneImportError",
    "SceneExportError",
    "DirectoryTraversalError",
]
