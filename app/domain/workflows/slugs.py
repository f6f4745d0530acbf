"""
Random human-readable names for new workflows (e.g. ``brave-amber-falcon``).
"""
import secrets
from typing import Sequence

ADJECTIVES = (
    "amber", "bold", "brave", "bright", "calm", "clever", "cosmic", "crisp",
    "eager", "fancy", "gentle", "golden", "happy", "hidden", "jolly", "lively",
    "lucky", "mellow", "misty", "noble", "polite", "proud", "quiet", "rapid",
    "shiny", "silent", "silver", "steady", "sunny", "swift", "tidy", "witty",
)

NOUNS = (
    "badger", "beacon", "brook", "canyon", "cedar", "comet", "falcon", "fern",
    "glacier", "harbor", "heron", "island", "lantern", "maple", "meadow", "otter",
    "pebble", "pine", "planet", "raven", "river", "rocket", "sparrow", "summit",
    "thunder", "tiger", "valley", "willow", "wolf", "zephyr",
)


def generate_slug(words: int = 3, separator: str = "-") -> str:
    """Return ``words`` random words: adjectives followed by a single noun."""
    if words < 1:
        raise ValueError("words must be at least 1")
    parts: Sequence[str] = [secrets.choice(ADJECTIVES) for _ in range(words - 1)]
    return separator.join([*parts, secrets.choice(NOUNS)])
