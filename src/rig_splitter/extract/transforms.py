"""
Transform evaluation helpers.

Local transforms compose as ``T @ R @ S`` with Euler XYZ rotation order
(X applied first), angles in degrees. Pivots and pre-rotations are not
modelled.
"""

import numpy as np
from scipy.spatial.transform import Rotation as R

from rig_splitter.extract.types import SceneGraph, Vector3


def local_matrix(translation: Vector3, rotation: Vector3, scaling: Vector3) -> np.ndarray:
    """Build the 4x4 local matrix of a node."""
    matrix = np.eye(4)
    rot = R.from_euler("xyz", rotation, degrees=True).as_matrix()
    matrix[:3, :3] = rot @ np.diag(scaling)
    matrix[:3, 3] = translation
    return matrix


def global_matrix(scene: SceneGraph, index: int) -> np.ndarray:
    """Evaluate the global matrix of a node at its static (default) pose."""
    chain = [index, *scene.ancestors(index)]
    matrix = np.eye(4)
    for node_index in reversed(chain):
        node = scene.node(node_index)
        matrix = matrix @ local_matrix(node.translation, node.rotation, node.scaling)
    return matrix


def global_position(scene: SceneGraph, index: int) -> np.ndarray:
    """Global translation of a node at its static pose."""
    return global_matrix(scene, index)[:3, 3]


def heading_degrees(vector) -> float:
    """Heading of ``vector`` around Y, measured from +Z towards +X."""
    return float(np.degrees(np.arctan2(vector[0], vector[2])))
