"""core/contracts/identity.py
=========================

Identity of the actor performing a workflow action, as supplied by the
external identity/session provider. Used for audit attribution only.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ActorContext:
    actor_id: str
    email: Optional[str] = None
    role: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    geolocation: Optional[str] = None

    @classmethod
    def system(cls) -> "ActorContext":
        return cls(actor_id="system", role="SYSTEM")


class IIdentityProvider(ABC):
    """Resolves the current actor."""

    @abstractmethod
    def current_actor(self) -> Optional[ActorContext]:
        """Return the authenticated actor or None."""
