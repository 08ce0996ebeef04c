from __future__ import annotations

import logging
import random
import secrets
import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from .errors import DivisionByZeroError, MalformedExpressionError
from .models import (
    DiceRoll,
    DiceToken,
    EvaluationOutcome,
    IntegerToken,
    OperatorToken,
    RollLimits,
    Token,
)
from .parser import parse_expression


logger = logging.getLogger(__name__)


def _now_utc_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _truncating_div(a: int, b: int) -> int:
    if b == 0:
        raise DivisionByZeroError(f"Cannot divide {a} by zero.")
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


_ARITHMETIC: dict[str, Callable[[int, int], int]] = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": _truncating_div,
}


def roll_term(term: DiceToken, rng: random.Random) -> tuple[int, DiceRoll]:
    """Roll every die of `term`; the modifier only changes how they combine."""

    rolls = tuple(rng.randint(1, term.sides) for _ in range(term.count))
    if term.modifier == "highest":
        value = max(rolls)
    elif term.modifier == "lowest":
        value = min(rolls)
    else:
        value = sum(rolls)
    return value, DiceRoll(expression=term.text, results=rolls)


def evaluate_postfix(tokens: list[Token], rng: random.Random | None = None) -> EvaluationOutcome:
    if rng is None:
        rng = secrets.SystemRandom()

    stack: list[int] = []
    rolls: list[DiceRoll] = []

    for tok in tokens:
        if isinstance(tok, DiceToken):
            value, record = roll_term(tok, rng)
            logger.debug("rolled %s: %s -> %d", tok.text, list(record.results), value)
            rolls.append(record)
            stack.append(value)
        elif isinstance(tok, IntegerToken):
            stack.append(tok.value)
        elif isinstance(tok, OperatorToken):
            if len(stack) < 2:
                raise MalformedExpressionError(
                    f"Operator '{tok.text}' is missing an operand. Example: '1d20 + 5'."
                )
            b = stack.pop()
            a = stack.pop()
            stack.append(_ARITHMETIC[tok.text](a, b))
        else:
            raise MalformedExpressionError(f"Unexpected token '{tok.text}' after conversion to postfix.")

    if len(stack) != 1:
        raise MalformedExpressionError(
            "Unable to parse malformed input. Example: '2d6 + 3' or '(1d8 + 2) * 2'."
        )

    return EvaluationOutcome(value=stack[0], rolls=tuple(rolls))


def evaluate(
    expression: str,
    *,
    rng: random.Random | None = None,
    limits: RollLimits | None = None,
) -> EvaluationOutcome:
    """Parse, validate, then roll. Raises EvalError for invalid input."""

    postfix = parse_expression(expression, limits=limits)
    return evaluate_postfix(postfix, rng=rng)


def _describe(outcome: EvaluationOutcome) -> str:
    parts = [f"{r.expression}: rolls {list(r.results)}" for r in outcome.rolls]
    if not parts:
        return f"=> {outcome.value}"
    return "; ".join(parts) + f" => {outcome.value}"


def outcome_payload(expression: str, outcome: EvaluationOutcome, rng_source: str = "secrets.SystemRandom") -> dict[str, Any]:
    return {
        "ok": True,
        "request_id": uuid.uuid4().hex,
        "timestamp": _now_utc_iso(),
        "input": expression,
        "rng": {
            "source": rng_source,
            "nonce": str(uuid.uuid4()),
        },
        "rolls": [
            {"expression": r.expression, "results": list(r.results)}
            for r in outcome.rolls
        ],
        "total": outcome.value,
        "explanation": _describe(outcome),
    }
