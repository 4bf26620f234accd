"""
Module: mentions.py
Description: Mention whitelist applied to outgoing messages.

The endpoint only pings the users, roles and @everyone/@here groups that
the allowed_mentions object permits. A client applies a default
AllowedMentions to every send unless the message carries its own.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Discord rejects more than 100 explicit ids per whitelist
MAX_WHITELIST_SIZE = 100


def _normalize_ids(values) -> List[str]:
    ids = []
    for item in values or []:
        value = str(item).strip()
        if not value.isdigit():
            raise ValueError(f"mention id must be numeric, got {item!r}")
        ids.append(value)
    return ids


class AllowedMentions(BaseModel):
    """
    Mention whitelist for a message.

    Attributes:
        parse_users: Allow mentions of any user
        parse_roles: Allow mentions of any role
        parse_everyone: Allow @everyone and @here
        users: Explicitly allowed user ids (ignored when parse_users is set)
        roles: Explicitly allowed role ids (ignored when parse_roles is set)
    """

    model_config = ConfigDict(frozen=True)

    parse_users: bool = False
    parse_roles: bool = False
    parse_everyone: bool = False
    users: List[str] = Field(default_factory=list, max_length=MAX_WHITELIST_SIZE)
    roles: List[str] = Field(default_factory=list, max_length=MAX_WHITELIST_SIZE)

    @field_validator('users', 'roles', mode='before')
    @classmethod
    def validate_ids(cls, v: Any) -> List[str]:
        """Accept ints or numeric strings and normalize to strings."""
        return _normalize_ids(v)

    @classmethod
    def all(cls) -> "AllowedMentions":
        """Allow every mention (the default policy)."""
        return cls(parse_users=True, parse_roles=True, parse_everyone=True)

    @classmethod
    def none(cls) -> "AllowedMentions":
        """Suppress every mention."""
        return cls()

    def with_users(self, *ids) -> "AllowedMentions":
        """Return a copy that also whitelists the given user ids."""
        return self.model_copy(update={"users": _normalize_ids([*self.users, *ids])})

    def with_roles(self, *ids) -> "AllowedMentions":
        """Return a copy that also whitelists the given role ids."""
        return self.model_copy(update={"roles": _normalize_ids([*self.roles, *ids])})

    def to_payload(self) -> Dict[str, Any]:
        """Render the allowed_mentions object sent on the wire."""
        parse = []
        if self.parse_users:
            parse.append("users")
        if self.parse_roles:
            parse.append("roles")
        if self.parse_everyone:
            parse.append("everyone")

        payload: Dict[str, Any] = {"parse": parse}
        # Explicit ids conflict with the matching parse type
        if self.users and not self.parse_users:
            payload["users"] = list(dict.fromkeys(self.users))
        if self.roles and not self.parse_roles:
            payload["roles"] = list(dict.fromkeys(self.roles))
        return payload
