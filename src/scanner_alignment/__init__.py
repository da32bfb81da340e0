"""
Scanner Alignment Package

A Python package for registering scanners that each report integer beacon
positions in their own local frame into one shared global frame.
Alignment searches the 24 axis-aligned rotations and anchor translations for
scanner pairs sharing at least 12 beacons, growing the set of aligned scanners
from a root scanner until every scanner is placed.
"""

__version__ = "0.1.0"

from .geometry import *
from .alignment import *
from .acceleration import *
from .preprocessing import *
from .analysis import *
from .utils import *

__all__ = [
    "geometry",
    "alignment",
    "acceleration",
    "preprocessing",
    "analysis",
    "utils",
]
