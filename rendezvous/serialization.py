"""JSON encoding of the values the API returns."""

from __future__ import annotations

import datetime
import enum
from typing import Any

from flask.json.provider import DefaultJSONProvider


class RendezvousJSONProvider(DefaultJSONProvider):
    """Encode timestamps as ISO 8601 strings and enums by value."""

    @staticmethod
    def default(o: Any) -> Any:
        """Convert values the standard encoder does not know."""
        if isinstance(o, (datetime.datetime, datetime.date)):
            return o.isoformat()
        if isinstance(o, enum.Enum):
            return o.value
        if hasattr(o, "to_map"):
            return o.to_map()
        return DefaultJSONProvider.default(o)
