"""API key selection for the research client."""

from __future__ import annotations

import logging
import os
from enum import Enum
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

DEFAULT_ENV_VAR = "ANTHROPIC_API_KEY"


class CredentialOutcome(str, Enum):
    PERSONAL = "personal"  # a user-supplied key is active
    DEFAULT = "default"  # falling back to the shared key from the environment
    MISSING = "missing"


@runtime_checkable
class CredentialProvider(Protocol):
    @property
    def api_key(self) -> str | None: ...

    def has_credential(self) -> bool: ...

    def select_credential(self, key: str | None = None) -> CredentialOutcome: ...


class EnvCredentialProvider:
    """Shared key from the environment, optionally overridden by a personal key."""

    def __init__(self, env_var: str = DEFAULT_ENV_VAR, personal_key: str | None = None):
        self.env_var = env_var
        self._personal_key = personal_key or None

    @property
    def api_key(self) -> str | None:
        return self._personal_key or os.environ.get(self.env_var) or None

    @property
    def has_personal_key(self) -> bool:
        return self._personal_key is not None

    def has_credential(self) -> bool:
        return self.api_key is not None

    def select_credential(self, key: str | None = None) -> CredentialOutcome:
        """Install a personal key, or report which key will be used."""
        if key and key.strip():
            self._personal_key = key.strip()
            logger.info("Personal API key selected")
        if self._personal_key:
            return CredentialOutcome.PERSONAL
        if self.api_key:
            return CredentialOutcome.DEFAULT
        return CredentialOutcome.MISSING

    def clear(self) -> None:
        """Drop the personal key, e.g. after the upstream rejected it."""
        if self._personal_key:
            logger.info("Personal API key cleared")
        self._personal_key = None
