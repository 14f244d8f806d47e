"""
Explicit session context.

Holds the credential and role for one client session. The engine receives
it at construction; nothing reads credentials from module-level state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import uuid4

import structlog

from ..errors import AuthRequired
from ..utils.time import utc_now

logger = structlog.get_logger(__name__)

ADMIN_ROLE = "ADMIN"


@dataclass
class SessionContext:
    """Credential and role for one session, with a create/destroy lifecycle."""
    token: Optional[str] = None
    role: Optional[str] = None
    session_id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=utc_now)
    active: bool = True

    @classmethod
    def create(cls, token: Optional[str] = None, role: Optional[str] = None) -> "SessionContext":
        session = cls(token=token or None, role=role.upper() if role else None)
        logger.info(
            "Session created",
            session_id=session.session_id,
            authenticated=session.authenticated,
            role=session.role
        )
        return session

    def destroy(self) -> None:
        """Drop the credential; the context cannot authenticate afterwards."""
        if not self.active:
            return
        self.token = None
        self.active = False
        logger.info("Session destroyed", session_id=self.session_id)

    @property
    def authenticated(self) -> bool:
        return self.active and bool(self.token)

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    @property
    def can_trade(self) -> bool:
        return self.authenticated and not self.is_admin

    def require_token(self) -> str:
        if not self.authenticated:
            raise AuthRequired("Session has no credential", context={"session_id": self.session_id})
        return self.token  # type: ignore[return-value]

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.require_token()}"}
