from __future__ import annotations

import json
import logging
from pathlib import Path

from .errors import AccessError


logger = logging.getLogger(__name__)


def load_allowed_groups(path: str | Path) -> list[str]:
    """Read `{"allowedServers": [...]}` from `path`."""

    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise AccessError("ACCESS_LIST_UNAVAILABLE", f"Error reading file: {e}") from e
    except json.JSONDecodeError as e:
        raise AccessError("ACCESS_LIST_UNAVAILABLE", f"Error decoding allowlist: {e}") from e

    allowed = data.get("allowedServers") if isinstance(data, dict) else None
    if not isinstance(allowed, list):
        raise AccessError("ACCESS_LIST_UNAVAILABLE", "Allowlist must contain an 'allowedServers' list.")
    return [str(g) for g in allowed]


def group_has_access(group: str, path: str | Path) -> bool:
    return group in load_allowed_groups(path)


def require_access(group: str, path: str | Path) -> None:
    if not group_has_access(group, path):
        logger.info("Rejected request from group %s", group)
        raise AccessError("ACCESS_DENIED", "Your server does not have access to use the bot.")
