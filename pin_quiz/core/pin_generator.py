"""Generation of six digit session PINs."""

from __future__ import annotations

import random
from collections.abc import Container

from pin_quiz.constants.quiz_constants import (
    PIN_GENERATION_ATTEMPTS,
    PIN_MAX_VALUE,
    PIN_MIN_VALUE,
)


def generate_pin(rng: random.Random) -> str:
    """Return a random six digit numeric PIN (never starts with zero)."""
    return str(rng.randint(PIN_MIN_VALUE, PIN_MAX_VALUE))


def generate_unique_pin(
    rng: random.Random,
    taken: Container[str],
    attempts: int = PIN_GENERATION_ATTEMPTS,
) -> str:
    """Generate a PIN not present in ``taken``, retrying on collision."""
    for _ in range(attempts):
        pin = generate_pin(rng)
        if pin not in taken:
            return pin
    raise RuntimeError(f"Could not generate a free session PIN after {attempts} attempts.")
