from . import ordering
from . import rank
from . import iter
from . import base
from . import map

from .ordering import Ordering
from .rank import RankGenerator
from .iter import NONE, ZipIterator, MapIterator
from .base import NOT_FOUND, MAX_ENTRIES, ZipTree
from .map import ZipTreeMap

__all__ = [
    "Ordering",
    "RankGenerator",
    "NONE",
    "NOT_FOUND",
    "MAX_ENTRIES",
    "ZipIterator",
    "MapIterator",
    "ZipTree",
    "ZipTreeMap",
]
