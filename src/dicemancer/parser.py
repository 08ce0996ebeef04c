from __future__ import annotations

import logging
import re

from .errors import InvalidTokenError, MismatchedParenError, RangeExceededError
from .models import (
    MODIFIER_SUFFIXES,
    DiceToken,
    IntegerToken,
    LeftParenToken,
    OperatorToken,
    RightParenToken,
    RollLimits,
    Token,
)


logger = logging.getLogger(__name__)

# Dice must come before bare integers so "4d10" is not split into "4", "d", "10".
_TOKEN_RE = re.compile(
    r"(?P<dice>(?P<count>\d+)d(?P<sides>\d+)(?P<modifier>[!?])?)"
    r"|(?P<integer>\d+)"
    r"|(?P<operator>[+\-*/])"
    r"|(?P<lparen>\()"
    r"|(?P<rparen>\))",
    re.ASCII,
)

PRECEDENCE: dict[str, int] = {"+": 1, "-": 1, "*": 2, "/": 2}


def tokenize(text: str) -> list[Token]:
    """Split raw text into tokens. Unrecognised spans are dropped, never rolled."""

    tokens: list[Token] = []
    for m in _TOKEN_RE.finditer(text):
        kind = m.lastgroup
        value = m.group()

        if m.group("dice") is not None:
            count = int(m.group("count"))
            sides = int(m.group("sides"))
            if count < 1 or sides < 1:
                # Leave the span uncovered so validation rejects it.
                continue
            modifier = MODIFIER_SUFFIXES.get(m.group("modifier") or "", "none")
            tokens.append(DiceToken(text=value, count=count, sides=sides, modifier=modifier))
        elif kind == "integer":
            tokens.append(IntegerToken(text=value, value=int(value)))
        elif kind == "operator":
            tokens.append(OperatorToken(text=value))  # type: ignore[arg-type]
        elif kind == "lparen":
            tokens.append(LeftParenToken())
        elif kind == "rparen":
            tokens.append(RightParenToken())

    return tokens


def validate_tokens(text: str, tokens: list[Token]) -> None:
    expected = "".join(text.split())
    covered = "".join(t.text for t in tokens)
    if expected != covered:
        raise InvalidTokenError(
            f"Invalid tokens found in '{text}'. Use integers, dice like '2d20', '4d10!' or '3d6?', + - * / and parentheses."
        )


def to_postfix(tokens: list[Token]) -> list[Token]:
    """Shunting yard: reorder infix tokens into reverse-Polish order."""

    output: list[Token] = []
    stack: list[Token] = []

    for tok in tokens:
        if isinstance(tok, (IntegerToken, DiceToken)):
            output.append(tok)
        elif isinstance(tok, OperatorToken):
            # Left-associative: equal precedence also pops.
            while (
                stack
                and isinstance(stack[-1], OperatorToken)
                and PRECEDENCE[stack[-1].text] >= PRECEDENCE[tok.text]
            ):
                output.append(stack.pop())
            stack.append(tok)
        elif isinstance(tok, LeftParenToken):
            stack.append(tok)
        elif isinstance(tok, RightParenToken):
            while stack and not isinstance(stack[-1], LeftParenToken):
                output.append(stack.pop())
            if not stack:
                raise MismatchedParenError("Unable to parse: found ')' without a matching '('.")
            stack.pop()

    if any(isinstance(t, LeftParenToken) for t in stack):
        raise MismatchedParenError("Unable to parse: found '(' without a matching ')'.")

    while stack:
        output.append(stack.pop())

    return output


def check_limits(tokens: list[Token], limits: RollLimits | None) -> None:
    if limits is None:
        return

    for tok in tokens:
        if not isinstance(tok, DiceToken):
            continue
        if limits.max_count is not None and tok.count > limits.max_count:
            raise RangeExceededError(
                f"'{tok.text}' rolls {tok.count} dice; at most {limits.max_count} are allowed at once."
            )
        if limits.max_sides is not None and tok.sides > limits.max_sides:
            raise RangeExceededError(
                f"'{tok.text}' uses a d{tok.sides}; the largest die allowed is d{limits.max_sides}."
            )


def parse_expression(text: str, limits: RollLimits | None = None) -> list[Token]:
    """Tokenize, validate and convert `text` to postfix. Nothing is rolled."""

    tokens = tokenize(text)
    validate_tokens(text, tokens)
    check_limits(tokens, limits)
    postfix = to_postfix(tokens)
    logger.debug("postfix for %r: %s", text, " ".join(t.text for t in postfix))
    return postfix
