from __future__ import annotations

import random

ADJECTIVES = ["배고픈", "졸린", "신나는", "따뜻한", "용감한", "부지런한"]
ANIMALS = ["수달", "토끼", "고양이", "강아지", "여우", "펭귄"]


def random_nickname(rng: random.Random | None = None) -> str:
    """Anonymous display name such as ``"졸린 수달#421"``."""
    r = rng or random
    adjective = r.choice(ADJECTIVES)
    animal = r.choice(ANIMALS)
    suffix = r.randint(100, 999)
    return f"{adjective} {animal}#{suffix}"
