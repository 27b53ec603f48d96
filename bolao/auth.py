"""
Caller identity.

The auth layer in front of the API forwards the signed-in user's email in
``X-User-Email`` (and optionally a display name in ``X-User-Name``).
"""
from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import Depends, Header, HTTPException

from bolao.config import settings

logger = logging.getLogger(__name__)


@dataclass
class CurrentUser:
    email: str
    name: Optional[str] = None

    @property
    def id(self) -> str:
        return hashlib.sha256(self.email.encode("utf-8")).hexdigest()[:32]

    @property
    def display_name(self) -> str:
        return self.name or self.email.split("@")[0] or "Anônimo"


def is_admin(email: Optional[str], admins: Iterable[str]) -> bool:
    if not email:
        return False
    return email.lower() in {a.lower() for a in admins}


def get_current_user(
    x_user_email: Optional[str] = Header(default=None),
    x_user_name: Optional[str] = Header(default=None),
) -> CurrentUser:
    if not x_user_email or not x_user_email.strip():
        raise HTTPException(status_code=401, detail="Não autorizado")
    return CurrentUser(email=x_user_email.strip().lower(), name=x_user_name)


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not is_admin(user.email, settings.ADMIN_EMAILS):
        logger.warning("Admin access denied for %s", user.email)
        raise HTTPException(status_code=401, detail="Não autorizado")
    return user
