from __future__ import annotations

import random
import string
from typing import Sequence

from .dice import evaluate
from .errors import MacroError
from .models import EvaluationOutcome, RollLimits


PLACEHOLDERS = string.ascii_uppercase
PLACEHOLDER_COUNT = len(PLACEHOLDERS)
MAX_MACRO_NAME_LENGTH = 128


def fill_macro(template: str, args: Sequence[str]) -> str:
    """Substitute argument i for placeholder letter 'A' + i.

    Replacement is plain text, in A, B, C... order, so text inserted for an
    earlier letter is scanned again for later ones. Arguments past 'Z' are
    ignored.
    """

    filled = template
    for letter, value in zip(PLACEHOLDERS, args):
        filled = filled.replace(letter, value)
    return filled


def evaluate_macro(
    template: str,
    args: Sequence[str],
    *,
    rng: random.Random | None = None,
    limits: RollLimits | None = None,
) -> EvaluationOutcome:
    return evaluate(fill_macro(template, args), rng=rng, limits=limits)


def validate_macro(template: str, *, limits: RollLimits | None = None) -> None:
    """Check a template's shape by evaluating it with every placeholder set to 1.

    `limits` apply to dice written literally in the template; they are checked
    before anything is rolled.
    """

    evaluate_macro(template, ["1"] * PLACEHOLDER_COUNT, limits=limits)


def validate_macro_name(name: str) -> None:
    if not 1 <= len(name) <= MAX_MACRO_NAME_LENGTH:
        raise MacroError(
            "INVALID_MACRO_NAME",
            f"Macro name must be between 1 and {MAX_MACRO_NAME_LENGTH} characters long.",
        )
