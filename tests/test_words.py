import random

from oddword.game.words import ALL_WORDS, WORD_PAIRS, pick_pair


def test_catalog_has_enough_words():
    assert len(WORD_PAIRS) >= 2
    assert len({w.lower() for w in ALL_WORDS}) >= 2


def test_pick_pair_always_distinct():
    rng = random.Random(0)
    for _ in range(500):
        normal, odd = pick_pair(rng)
        assert normal != odd
        assert normal.lower() != odd.lower()
        assert normal in ALL_WORDS and odd in ALL_WORDS


def test_pick_pair_retries_on_same_draw():
    class Repeating(random.Random):
        def __init__(self):
            super().__init__(0)
            self.seq = iter(["CAT", "CAT", "cat", "DOG"])

        def choice(self, seq):
            return next(self.seq)

    assert pick_pair(Repeating(), words=("CAT", "DOG")) == ("CAT", "DOG")
