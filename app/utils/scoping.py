"""
WealthDesk - Role Scoping

The canonical role type, the resolved session, and the single filter that
decides which client-owned records a session may see.

Visibility rules:
- Admin sees everything.
- Leader sees their own client record plus clients that name the leader's
  client id as ``reference_id`` (one level only).
- Client sees only records carrying their own client id.
- Anything else sees nothing.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, TypeVar

T = TypeVar("T")


class RoleKind(str, Enum):
    """Closed set of application roles."""
    ADMIN = "admin"
    LEADER = "leader"
    CLIENT = "client"

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional["RoleKind"]:
        """Normalise a stored role name; unknown names map to None."""
        if not name:
            return None
        try:
            return cls(name.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class SessionContext:
    """Identity attached to an authenticated request."""
    user_id: int
    role_name: str
    client_id: Optional[int] = None
    email: Optional[str] = None
    role_id: Optional[int] = None
    user_type: str = "master"
    login_time: Optional[str] = None
    module_access: Dict[str, Any] = field(default_factory=dict)

    @property
    def role(self) -> Optional[RoleKind]:
        return RoleKind.parse(self.role_name)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SessionContext":
        return cls(
            user_id=int(payload["userId"]),
            role_name=payload.get("roleName") or "",
            client_id=payload.get("clientId"),
            email=payload.get("email"),
            role_id=payload.get("roleId"),
            user_type=payload.get("userType", "master"),
            login_time=payload.get("loginTime"),
            module_access=payload.get("moduleAccess") or {},
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "email": self.email,
            "roleId": self.role_id,
            "roleName": self.role_name,
            "clientId": self.client_id,
            "userType": self.user_type,
            "loginTime": self.login_time,
            "moduleAccess": self.module_access,
        }


def _client_id(record: Any) -> Optional[int]:
    return getattr(record, "client_id", None)


def visible_client_ids(session: SessionContext, clients: Iterable[Any]) -> Optional[FrozenSet[int]]:
    """
    Resolve the client ids ``session`` may see.

    Returns None for unrestricted access. ``clients`` only needs
    ``client_id`` and ``reference_id`` attributes and is read for leaders.
    """
    role = session.role
    if role is RoleKind.ADMIN:
        return None
    if session.client_id is None:
        return frozenset()
    if role is RoleKind.LEADER:
        team = {c.client_id for c in clients if c.reference_id == session.client_id}
        team.add(session.client_id)
        return frozenset(team)
    if role is RoleKind.CLIENT:
        return frozenset({session.client_id})
    return frozenset()


def scope(
    session: SessionContext,
    collection: Iterable[T],
    client_id_of: Callable[[T], Optional[int]] = _client_id,
    clients: Iterable[Any] = (),
) -> List[T]:
    """
    Return the elements of ``collection`` visible to ``session``.

    Args:
        session: resolved request session
        collection: records of any client-owned entity
        client_id_of: extracts the owning client id from one record
        clients: client records used to resolve a leader's team
    """
    allowed = visible_client_ids(session, clients)
    if allowed is None:
        return list(collection)
    if not allowed:
        return []
    return [item for item in collection if client_id_of(item) in allowed]
