"""Lenient readers for loosely-typed backend payloads."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any


def as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def edges(connection: Any) -> list[dict[str, Any]]:
    """Return the nodes of a ``{edges: [{node}]}`` connection, skipping junk."""

    entries = as_dict(connection).get("edges")
    if not isinstance(entries, list):
        return []
    nodes = []
    for edge in entries:
        node = as_dict(edge).get("node")
        if isinstance(node, dict):
            nodes.append(node)
    return nodes


def parse_money(value: Any) -> Decimal | None:
    """Parse ``{amount}`` objects or bare amounts; ``None`` when unusable."""

    if isinstance(value, dict):
        value = value.get("amount")
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
        else:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return datetime.fromtimestamp(0, UTC)


def int_or_none(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item]
