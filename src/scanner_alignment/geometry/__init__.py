"""
Geometry Module

Integer lattice points and the catalog of 24 axis-aligned rotations.
"""

from .points import (
    Point3D,
    points_to_array,
    array_to_points,
    point_keys,
    translate_points,
    count_overlap,
    read_only,
)
from .rotations import (
    N_ROTATIONS,
    IDENTITY_INDEX,
    ROTATIONS,
    RotationCatalog,
    apply_rotation,
    rotate_points,
    inverse_rotation_index,
    rotation_matrix,
)

__all__ = [
    "Point3D",
    "points_to_array",
    "array_to_points",
    "point_keys",
    "translate_points",
    "count_overlap",
    "read_only",
    "N_ROTATIONS",
    "IDENTITY_INDEX",
    "ROTATIONS",
    "RotationCatalog",
    "apply_rotation",
    "rotate_points",
    "inverse_rotation_index",
    "rotation_matrix",
]
