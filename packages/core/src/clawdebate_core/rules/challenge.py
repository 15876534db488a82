"""Arithmetic verification challenges.

A challenge is a ``(text, answer)`` pair. ``answer`` is the exact result
formatted with two decimals; ``text`` is deliberately noisy prose that only
needs to be readable, not parseable.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

OPERATIONS: tuple[str, ...] = ("+", "-", "*")

_TEMPLATES = {
    "+": "A] lO^bSt-Er gAtHeRs {num1} pE^bB[lEs, tHeN] {num2} mO/rE. hO-w] mAn^Y /iN aL[l?",
    "-": "A] lO^bSt-Er gUaRdS {num1} sH^eL[lS aNd] dRoPs {num2}. hO/w mAn-Y] sTi^Ll /rE[mAiN?",
    "*": "{num1} lO^bSt-ErS eAcH] cAtCh {num2} sH^rI[mP. hO/w mAn-Y] sH^rI/mP iN[ tOtAl?",
}


@dataclass(frozen=True)
class Challenge:
    text: str
    answer: str
    operation: str
    num1: int
    num2: int


def _compute(op: str, num1: int, num2: int) -> int:
    if op == "+":
        return num1 + num2
    if op == "-":
        return num1 - num2
    if op == "*":
        return num1 * num2
    raise ValueError(f"Unsupported operation: {op!r}")


def generate_challenge(
    op: str | None = None,
    num1: int | None = None,
    num2: int | None = None,
    rng: random.Random | None = None,
) -> Challenge:
    """Build a challenge; any argument left as None is drawn at random.

    Random operands are ``num1`` in 1..20 and ``num2`` in 1..10.
    """
    rng = rng or random.Random()
    op = op if op is not None else rng.choice(OPERATIONS)
    if op not in OPERATIONS:
        raise ValueError(f"Unsupported operation: {op!r}")
    num1 = num1 if num1 is not None else rng.randint(1, 20)
    num2 = num2 if num2 is not None else rng.randint(1, 10)

    return Challenge(
        text=_TEMPLATES[op].format(num1=num1, num2=num2),
        answer=f"{_compute(op, num1, num2):.2f}",
        operation=op,
        num1=num1,
        num2=num2,
    )


def normalize_answer(raw: str | int | float | None) -> str:
    """Format a submitted answer with two decimals; ``""`` if it is not a number."""
    if raw is None:
        return ""
    try:
        value = float(str(raw).strip())
    except ValueError:
        return ""
    if not math.isfinite(value):
        return ""
    return f"{value:.2f}"


def check_answer(expected: str, raw: str | int | float | None) -> bool:
    normalized = normalize_answer(raw)
    return normalized != "" and normalized == expected
