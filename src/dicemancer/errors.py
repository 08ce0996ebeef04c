from __future__ import annotations


class EvalError(ValueError):
    """User-facing expression errors (fail-fast, nothing is rolled after one)."""

    code = "EVAL_ERROR"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"[{self.code}] {detail}")


class InvalidTokenError(EvalError):
    code = "INVALID_TOKEN"


class MismatchedParenError(EvalError):
    code = "MISMATCHED_PARENS"


class MalformedExpressionError(EvalError):
    code = "MALFORMED_EXPRESSION"


class DivisionByZeroError(EvalError):
    code = "DIVISION_BY_ZERO"


class RangeExceededError(EvalError):
    code = "RANGE_EXCEEDED"


class MacroError(ValueError):
    """Macro bookkeeping errors raised by the store and name checks."""

    def __init__(self, code: str, detail: str) -> None:
        self.code = code
        self.detail = detail
        super().__init__(f"[{code}] {detail}")


class AccessError(PermissionError):
    def __init__(self, code: str, detail: str) -> None:
        self.code = code
        self.detail = detail
        super().__init__(f"[{code}] {detail}")
