from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias


Modifier: TypeAlias = Literal["none", "highest", "lowest"]
OperatorSymbol: TypeAlias = Literal["+", "-", "*", "/"]

MODIFIER_SUFFIXES: dict[str, Modifier] = {"!": "highest", "?": "lowest"}


@dataclass(frozen=True)
class IntegerToken:
    text: str
    value: int


@dataclass(frozen=True)
class DiceToken:
    text: str
    count: int
    sides: int
    modifier: Modifier = "none"


@dataclass(frozen=True)
class OperatorToken:
    text: OperatorSymbol


@dataclass(frozen=True)
class LeftParenToken:
    text: str = "("


@dataclass(frozen=True)
class RightParenToken:
    text: str = ")"


Token: TypeAlias = IntegerToken | DiceToken | OperatorToken | LeftParenToken | RightParenToken


@dataclass(frozen=True)
class DiceRoll:
    """Audit record for one resolved dice term."""

    expression: str
    results: tuple[int, ...]


@dataclass(frozen=True)
class EvaluationOutcome:
    value: int
    rolls: tuple[DiceRoll, ...] = ()


@dataclass(frozen=True)
class RollLimits:
    """Optional guard rails on dice terms; None means unlimited."""

    max_count: int | None = None
    max_sides: int | None = None
