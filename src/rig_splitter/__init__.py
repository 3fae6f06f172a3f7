"""
Rig Splitter

Splits scenes holding several character rigs into one scene per skeleton,
each carrying its skinned meshes and animation.
"""

__version__ = "0.1.0"
