from __future__ import annotations

from typing import Tuple, Union

import numpy as np
from numpy.random import default_rng

RANK_SHIFT = 16
TIE_MASK = (1 << RANK_SHIFT) - 1

RngLike = Union[None, int, np.random.Generator]


def rank_limit(size: int) -> int:
    """Exclusive upper bound of the tie-break draw for a tree holding
    `size` nodes: floor(log2(size + 1)) ** 3."""
    log_n = (size + 1).bit_length() - 1
    return log_n * log_n * log_n


def pack_rank(r1: int, r2: int) -> int:
    # r2 is stored off by one so an unset tie-break sorts below every draw
    return (r1 << RANK_SHIFT) | (1 + r2)


def unpack_rank(rank: int) -> Tuple[int, int]:
    """Split a packed rank into (r1, stored tie-break).

    The second component keeps the +1 offset, matching what the tree dump
    shows.
    """
    return (rank >> RANK_SHIFT, rank & TIE_MASK)


class RankGenerator(object):
    """Draws Zip-Zip ranks from an owned numpy random generator."""

    def __init__(self, rng: RngLike = None):
        # default_rng passes an existing Generator through untouched
        self._rng: np.random.Generator = default_rng(rng)

    @property
    def rng(self) -> np.random.Generator:
        return self._rng

    def draw(self, size: int) -> int:
        """Rank for a node joining a tree that currently holds `size` nodes.

        r1 counts the heads before the first tails, so it starts at 0 (half
        of all draws), not 1.
        """
        r1 = int(self._rng.geometric(0.5)) - 1

        r2 = 0
        limit = rank_limit(size)
        if limit > 0:
            r2 = int(self._rng.integers(limit))

        return pack_rank(r1, r2)


def make_rank_generator(rng: Union[RngLike, RankGenerator]) -> RankGenerator:
    if isinstance(rng, RankGenerator):
        return rng
    return RankGenerator(rng)
