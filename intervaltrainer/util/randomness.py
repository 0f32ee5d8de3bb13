from __future__ import annotations

"""Randomness helpers: seeding and the random source handed to generators.

Every draw the engine makes goes through a `random.Random` instance so a
test can substitute a seeded or scripted source.
"""

import os
import random
from typing import Optional


def seed_if_needed() -> Optional[int]:
    """Seed the global RNG if the SEED env var is set; return the seed used."""
    seed = os.environ.get("SEED")
    if seed is None:
        return None
    try:
        s = int(seed)
    except ValueError:
        return None
    random.seed(s)
    return s


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Return an independent random source, seeded when `seed` is given."""
    return random.Random(seed)
