"""
Formats Module
Scene file codecs for the formats the splitter reads and writes (FBX, JSON)
"""

from pathlib import Path

from .base_codec import BaseCodec
from .json_codec import JsonSceneCodec

JSON_EXTENSIONS = JsonSceneCodec.extensions
FBX_EXTENSIONS = frozenset({'.fbx'})
SUPPORTED_EXTENSIONS = JSON_EXTENSIONS | FBX_EXTENSIONS


def create_codec(scene_file):
    """Factory function to create the codec matching a file extension

    Args:
        scene_file: Path (or bare extension such as '.fbx') of a scene file

    Returns:
        BaseCodec: JsonSceneCodec or FbxSceneCodec instance

    Raises:
        ValueError: If the extension is not supported
    """
    text = str(scene_file)
    # a bare '.fbx' has no suffix of its own
    ext = Path(text).suffix.lower() or text.lower()

    if ext in JSON_EXTENSIONS:
        return JsonSceneCodec()
    elif ext in FBX_EXTENSIONS:
        # Lazy import to avoid probing for the FBX SDK when it is not needed
        from .fbx_codec import FbxSceneCodec
        return FbxSceneCodec()
    else:
        raise ValueError(
            f"Unsupported scene format: {ext}\n"
            f"Supported formats: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )


def fbx_available():
    """Report whether the Autodesk FBX Python SDK can be imported"""
    from .fbx_codec import FBX_AVAILABLE
    return FBX_AVAILABLE


__all__ = [
    'BaseCodec',
    'JsonSceneCodec',
    'create_codec',
    'fbx_available',
    'JSON_EXTENSIONS',
    'FBX_EXTENSIONS',
    'SUPPORTED_EXTENSIONS',
]
