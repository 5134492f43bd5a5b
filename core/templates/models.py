"""Data models for outbound template parsing and request building."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Placeholder:
    """A ``{{ token }}`` occurrence inside a URL or body template."""

    token: str
    start: int
    end: int
    text: str

    @property
    def is_whole_payload(self) -> bool:
        return self.token == "payload"

    @property
    def path(self) -> list[str]:
        """Dot path into the payload with an optional ``payload.`` prefix removed."""

        token = self.token
        if token.startswith("payload."):
            token = token[len("payload.") :]
        return token.split(".")


@dataclass(frozen=True)
class NotificationRequest:
    """Fully interpolated outbound request."""

    method: str
    url: str
    body: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
