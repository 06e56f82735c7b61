from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class OrgContext:
    """Who is asking and on behalf of which organization."""

    user_id: Optional[UUID]
    organization_id: Optional[UUID]
    timezone: Optional[str] = None
    is_super_admin: bool = False
