"""JSON-lines messages exchanged with the game shell.

The shell sends one request per line, e.g.
``{"id": 3, "method": "analyzePerformance", "params": {"performance": {...}}}``,
and reads back one response per line carrying the same id. The engine also
pushes unsolicited notifications, currently only ``recommendation`` when a
difficulty change is ready to show the player.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Optional

RECOMMENDATION = "recommendation"


@dataclass
class Request:
    """A call into the adaptation engine or pattern generator."""
    id: int
    method: str
    params: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> Request:
        if "method" not in data:
            raise ValueError("Request is missing 'method'")
        return cls(
            id=data.get("id", 0),
            method=data["method"],
            params=data.get("params") or {},
        )

    @classmethod
    def from_line(cls, line: str) -> Request:
        """Parse one protocol line; raises ValueError if it is not a request object."""
        data = json.loads(line)
        if not isinstance(data, dict):
            raise ValueError("Request must be a JSON object")
        return cls.from_dict(data)


@dataclass
class Response:
    """Engine state or pattern for a request id, or the error it raised."""
    id: int
    result: Optional[dict] = None
    error: Optional[str] = None

    def to_json_line(self) -> str:
        d = {"id": self.id}
        if self.error is not None:
            d["error"] = self.error
        else:
            d["result"] = self.result
        return json.dumps(d) + "\n"


@dataclass
class Notification:
    """Engine-initiated message with no request id."""
    method: str
    params: dict = field(default_factory=dict)

    @classmethod
    def recommendation(cls, payload: Optional[dict]) -> Notification:
        return cls(RECOMMENDATION, {"recommendation": payload})

    def to_json_line(self) -> str:
        return json.dumps({"method": self.method, "params": self.params}) + "\n"
