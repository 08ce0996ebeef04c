import random

import pytest

from dicemancer.errors import (
    EvalError,
    InvalidTokenError,
    MacroError,
    MalformedExpressionError,
    MismatchedParenError,
    RangeExceededError,
)
from dicemancer.macros import evaluate_macro, fill_macro, validate_macro, validate_macro_name
from dicemancer.models import RollLimits


def test_fill_macro_substitutes_placeholders():
    assert fill_macro("A + (B / 2)", ["2d20", "10"]) == "2d20 + (10 / 2)"


def test_fill_macro_replaces_every_occurrence():
    assert fill_macro("A*A + B", ["3", "1d4"]) == "3*3 + 1d4"


def test_fill_macro_leaves_missing_placeholders():
    assert fill_macro("A + B", ["1"]) == "1 + B"


def test_fill_macro_ignores_arguments_past_z():
    args = [str(i) for i in range(30)]
    template = "A + Z"

    assert fill_macro(template, args) == "0 + 25"


def test_fill_macro_rescans_earlier_substitutions():
    # The text given for A introduces a B, which the B argument then replaces.
    assert fill_macro("A", ["B + 1", "2"]) == "2 + 1"


def test_fill_macro_is_not_word_boundary_aware():
    assert fill_macro("MAX(A)", ["5"]) == "M5X(5)"


def test_evaluate_macro_runs_the_pipeline():
    outcome = evaluate_macro("A + (B / 2)", ["2d20", "10"], rng=random.Random(7))

    (roll,) = outcome.rolls
    assert roll.expression == "2d20"
    assert outcome.value == sum(roll.results) + 5


@pytest.mark.parametrize("template", ["A + B", "4 * (A + B)", "Z * 2d6!", "(A - B) / C", "12"])
def test_validate_macro_accepts_well_formed_templates(template):
    validate_macro(template)


@pytest.mark.parametrize(
    ("template", "error"),
    [
        ("A + ", MalformedExpressionError),
        ("(A + B", MismatchedParenError),
        ("A + b", InvalidTokenError),
        ("dA", InvalidTokenError),
    ],
)
def test_validate_macro_rejects_malformed_templates(template, error):
    with pytest.raises(error):
        validate_macro(template)


@pytest.mark.parametrize("template", ["A + B", "A +", "2d6 + C", "x", "(Z)", "A / (B - 1)"])
def test_validate_matches_evaluation_with_ones(template):
    try:
        evaluate_macro(template, ["1"] * 26)
        evaluated = True
    except EvalError:
        evaluated = False

    try:
        validate_macro(template)
        validated = True
    except EvalError:
        validated = False

    assert validated == evaluated


def test_validate_macro_surfaces_division_by_zero():
    with pytest.raises(EvalError) as exc:
        validate_macro("A / (B - 1)")

    assert exc.value.code == "DIVISION_BY_ZERO"


@pytest.mark.parametrize("name", ["a", "fireball", "x" * 128])
def test_macro_names_accepted(name):
    validate_macro_name(name)


@pytest.mark.parametrize("name", ["", "x" * 129])
def test_macro_names_rejected(name):
    with pytest.raises(MacroError) as exc:
        validate_macro_name(name)

    assert exc.value.code == "INVALID_MACRO_NAME"


def test_validate_macro_checks_literal_dice_against_limits():
    limits = RollLimits(max_count=20, max_sides=200)
    validate_macro("20d200 + A", limits=limits)

    with pytest.raises(RangeExceededError):
        validate_macro("A + 21d201", limits=limits)
