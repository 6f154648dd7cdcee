"""Pydantic v2 response schemas for the rule audit trail."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class RuleAuditEntryResponse(BaseModel):
    id: uuid.UUID
    campground_id: uuid.UUID
    rule_kind: str
    rule_id: uuid.UUID
    action: str
    actor: str | None = None
    changes: dict[str, Any]
    seq: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RuleAuditListResponse(BaseModel):
    items: list[RuleAuditEntryResponse]
    total: int
