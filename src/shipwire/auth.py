"""Pre-built credential headers understood by the engine."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from typing import Any

REGISTRY_AUTH_HEADER = "X-Registry-Auth"


@dataclass(frozen=True)
class RegistryAuth:
    """Registry credentials, either a password login or an identity token."""

    username: str | None = None
    password: str | None = None
    email: str | None = None
    server_address: str | None = None
    identity_token: str | None = None

    @classmethod
    def token(cls, identity_token: str) -> "RegistryAuth":
        return cls(identity_token=identity_token)

    def to_payload(self) -> dict[str, Any]:
        if self.identity_token is not None:
            return {"identitytoken": self.identity_token}
        payload: dict[str, Any] = {
            "username": self.username or "",
            "password": self.password or "",
        }
        if self.email is not None:
            payload["email"] = self.email
        if self.server_address is not None:
            payload["serveraddress"] = self.server_address
        return payload

    def serialize(self) -> str:
        """URL-safe base64 of the JSON credentials."""
        raw = json.dumps(self.to_payload(), separators=(",", ":")).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii")

    def headers(self) -> dict[str, str]:
        return {REGISTRY_AUTH_HEADER: self.serialize()}


__all__ = ["REGISTRY_AUTH_HEADER", "RegistryAuth"]
