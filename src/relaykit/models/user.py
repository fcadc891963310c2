"""User profile model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from relaykit.models.enums import PresenceStatus


class UserProfile(BaseModel):
    """The public profile snippet attached to outbound messages."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    profile_picture: str | None = Field(default=None, alias="profilePicture")
    status: PresenceStatus = PresenceStatus.OFFLINE

    def to_payload(self) -> dict[str, Any]:
        """Render the wire representation (camelCase keys)."""
        return self.model_dump(mode="json", by_alias=True)
