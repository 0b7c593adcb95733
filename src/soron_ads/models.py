"""Data models shared by the delivery and tracking modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class RequestMode(str, Enum):
    """Selects the payload shape and the serving endpoint."""

    USER_QUERY = "user-query"
    AGENT_RESPONSE = "agent-response"

    @property
    def endpoint(self) -> str:
        return f"/ads/{self.value}"

    @property
    def payload_field(self) -> str:
        if self is RequestMode.AGENT_RESPONSE:
            return "agentResponse"
        return "userPrompt"

    @property
    def input_key(self) -> str:
        """Key read from a mapping input when the caller passes a dict."""
        if self is RequestMode.AGENT_RESPONSE:
            return "response"
        return "query"


@dataclass(frozen=True)
class AdRecord:
    """A single ad as returned by the serving backend."""

    content: str
    advertiser: str
    click_url: str | None = None
    pixel_url: str | None = None
    viewability_url: str | None = None
    url: str | None = None  # final destination, never navigated to directly
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AdRecord:
        return cls(
            content=data.get("content") or "",
            advertiser=data.get("advertiser") or "",
            click_url=data.get("clickUrl") or None,
            pixel_url=data.get("pixelUrl") or None,
            viewability_url=data.get("viewabilityUrl") or None,
            url=data.get("url") or None,
            raw=dict(data),
        )


@dataclass
class ClientSession:
    """Per-client request identity plus the set of impression pixels already fired."""

    api_key: str | None
    user_id: str
    platform: str = "web"
    mode: RequestMode = RequestMode.USER_QUERY
    fired_pixels: set[str] = field(default_factory=set)

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)
