from __future__ import annotations

import random


# (majority word, odd word)
WORD_PAIRS: tuple[tuple[str, str], ...] = (
    ("PIZZA", "BURGER"),
    ("CAT", "ELEPHANT"),
    ("BEACH", "MOUNTAIN"),
    ("COFFEE", "JUICE"),
    ("WINTER", "SUMMER"),
    ("BOOK", "MOVIE"),
    ("CAR", "AIRPLANE"),
    ("DOCTOR", "TEACHER"),
    ("GUITAR", "PIANO"),
    ("APPLE", "STEAK"),
    ("TRAIN", "BICYCLE"),
    ("CASTLE", "TENT"),
    ("RIVER", "DESERT"),
    ("SOCCER", "CHESS"),
)

ALL_WORDS: tuple[str, ...] = tuple(w for pair in WORD_PAIRS for w in pair)


def pick_pair(rng: random.Random | None = None, words: tuple[str, ...] = ALL_WORDS) -> tuple[str, str]:
    """Draw two distinct words, independently and with replacement."""
    r = rng or random
    normal = r.choice(words)
    odd = r.choice(words)
    while odd.lower() == normal.lower():
        odd = r.choice(words)
    return normal, odd
