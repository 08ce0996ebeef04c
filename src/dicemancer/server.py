from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from mcp.server.fastmcp import FastMCP

from .access import require_access
from .config import Settings, configure_logging, load_settings
from .dice import evaluate, outcome_payload
from .errors import AccessError, EvalError, MacroError
from .macros import evaluate_macro, fill_macro, validate_macro, validate_macro_name
from .storage import Macro, MacroStore


logger = logging.getLogger(__name__)

HELP_TEXT = """**DiceMancer Available Commands**

Basic usage
roll <expression>
- Example: `roll 4d10 + 5`
- Any arithmetic expression with integers and dice notation, using + - * / and parentheses.
- Dice notation is XdY, where X and Y are positive integers.
- Write ! or ? after a dice term to keep the highest or lowest single die: 4d10! or 4d10?
- You can roll up to d{max_sides} and up to {max_count} dice at once.

Macros
A macro is a reusable expression whose inputs are the uppercase letters A, B, C...
For example `4 * (A + B)` can be rolled with anything substituted for A and B.

make_macro <name> <expression>   create a macro (names are 1-128 characters)
roll_macro <name> <inputs>       roll it; inputs are separated by spaces
list_macros                      list the macros of your server
view_macro <name>                show one macro
edit_macro <name> <expression>   replace a macro's expression
delete_macro <name>              delete a macro

Macros belong to the server they were created in.
"""


def _error_payload(err: EvalError | MacroError | AccessError, **context: Any) -> dict[str, Any]:
    return {"ok": False, "error": {"code": err.code, "message": str(err)}, **context}


def _macro_payload(macro: Macro) -> dict[str, Any]:
    return {"name": macro.name, "expression": macro.expression}


class DiceService:
    """The command layer: access checks, macro bookkeeping and rendering."""

    def __init__(self, settings: Settings, store: MacroStore | None = None) -> None:
        self.settings = settings
        self.store = store if store is not None else MacroStore(settings.database_url)

    def roll(self, group: str, expression: str) -> dict[str, Any]:
        try:
            require_access(group, self.settings.allowlist_path)
            outcome = evaluate(expression, limits=self.settings.limits)
        except (EvalError, AccessError) as e:
            logger.info("Roll error for %r: %s", expression, e)
            return _error_payload(e, input=expression)
        return outcome_payload(expression, outcome)

    def make_macro(self, group: str, name: str, expression: str) -> dict[str, Any]:
        try:
            require_access(group, self.settings.allowlist_path)
            validate_macro_name(name)
            if self.store.find(group, name) is not None:
                raise MacroError("MACRO_EXISTS", f"A macro with the name '{name}' already exists.")
            validate_macro(expression, limits=self.settings.limits)
            macro = self.store.create(group, name, expression)
        except (EvalError, MacroError, AccessError) as e:
            logger.info("Rejected macro %s: %s", name, e)
            return _error_payload(e, name=name)
        return {"ok": True, "macro": _macro_payload(macro)}

    def roll_macro(self, group: str, name: str, inputs: str) -> dict[str, Any]:
        args = inputs.split()
        try:
            require_access(group, self.settings.allowlist_path)
            macro = self.store.find(group, name)
            if macro is None:
                raise MacroError("MACRO_NOT_FOUND", f"No macro with the name '{name}' was found.")
            expression = fill_macro(macro.expression, args)
            outcome = evaluate_macro(macro.expression, args, limits=self.settings.limits)
        except (EvalError, MacroError, AccessError) as e:
            logger.info("Macro roll error for %s: %s", name, e)
            return _error_payload(e, name=name)
        return {**outcome_payload(expression, outcome), "macro": _macro_payload(macro)}

    def list_macros(self, group: str) -> dict[str, Any]:
        try:
            require_access(group, self.settings.allowlist_path)
        except AccessError as e:
            return _error_payload(e)
        return {"ok": True, "macros": [_macro_payload(m) for m in self.store.list_by_group(group)]}

    def view_macro(self, group: str, name: str) -> dict[str, Any]:
        try:
            require_access(group, self.settings.allowlist_path)
            macro = self.store.find(group, name)
            if macro is None:
                raise MacroError("MACRO_NOT_FOUND", f"No macro with the name '{name}' was found.")
        except (MacroError, AccessError) as e:
            return _error_payload(e, name=name)
        return {"ok": True, "macro": _macro_payload(macro)}

    def edit_macro(self, group: str, name: str, expression: str) -> dict[str, Any]:
        try:
            require_access(group, self.settings.allowlist_path)
            validate_macro(expression, limits=self.settings.limits)
            macro = self.store.update(group, name, expression)
        except (EvalError, MacroError, AccessError) as e:
            logger.info("Rejected edit of macro %s: %s", name, e)
            return _error_payload(e, name=name)
        return {"ok": True, "macro": _macro_payload(macro)}

    def delete_macro(self, group: str, name: str) -> dict[str, Any]:
        try:
            require_access(group, self.settings.allowlist_path)
            macro = self.store.delete(group, name)
        except (MacroError, AccessError) as e:
            return _error_payload(e, name=name)
        return {"ok": True, "macro": _macro_payload(macro)}

    def help_text(self) -> str:
        return HELP_TEXT.format(
            max_count=self.settings.max_dice_count,
            max_sides=self.settings.max_dice_sides,
        )


@lru_cache(maxsize=1)
def get_service() -> DiceService:
    return DiceService(load_settings())


mcp = FastMCP("dicemancer")


@mcp.tool()
def roll(group: str, expression: str):
    """Roll an arithmetic expression containing dice notation.

    Input: group (caller's server id), expression (e.g. '2d20! + 5')
    Output: structured JSON with the total, every die rolled, and an explanation
    """

    logger.info("roll from %s: %r", group, expression)
    return get_service().roll(group, expression)


@mcp.tool()
def make_macro(group: str, name: str, expression: str):
    """Create a macro; inputs are written as the uppercase letters A, B, C..."""

    logger.info("make_macro from %s: %s = %r", group, name, expression)
    return get_service().make_macro(group, name, expression)


@mcp.tool()
def roll_macro(group: str, name: str, inputs: str):
    """Roll a saved macro; inputs are separated by spaces and fill A, B, C... in order."""

    logger.info("roll_macro from %s: %s %r", group, name, inputs)
    return get_service().roll_macro(group, name, inputs)


@mcp.tool()
def list_macros(group: str):
    """List all macros available to the server, ordered by name."""

    return get_service().list_macros(group)


@mcp.tool()
def view_macro(group: str, name: str):
    """Show the expression saved under a macro name."""

    return get_service().view_macro(group, name)


@mcp.tool()
def edit_macro(group: str, name: str, expression: str):
    """Replace an existing macro's expression."""

    logger.info("edit_macro from %s: %s = %r", group, name, expression)
    return get_service().edit_macro(group, name, expression)


@mcp.tool()
def delete_macro(group: str, name: str):
    """Delete a saved macro."""

    logger.info("delete_macro from %s: %s", group, name)
    return get_service().delete_macro(group, name)


@mcp.tool()
def help_me_roll() -> str:
    """Show how to use the dice tools."""

    return get_service().help_text()


def run() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    # Default transport is stdio.
    mcp.run()


if __name__ == "__main__":
    run()
