"""
Skeleton Extraction

Core system for splitting multi-character scenes into one scene per rig.
Handles skeleton detection, subtree cloning, skinned mesh attachment,
animation transplanting and spatial normalization.
"""

from rig_splitter.extract.orchestrator import SkeletonExtractor, sanitize_name
from rig_splitter.extract.types import ExtractionOptions, ExtractionResult, SceneGraph

__all__ = [
    "SkeletonExtractor",
    "sanitize_name",
    "ExtractionOptions",
    "ExtractionResult",
    "SceneGraph",
]
