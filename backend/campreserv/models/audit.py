"""Rule audit trail."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from campreserv.database import Base, UUIDPrimaryKeyMixin


class RuleAuditEntry(UUIDPrimaryKeyMixin, Base):
    """One create/update/delete/toggle of a rule row."""

    __tablename__ = "rule_audit_entries"

    campground_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("campgrounds.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rule_kind: Mapped[str] = mapped_column(String(30), nullable=False)
    rule_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)  # create, update, delete, toggle
    actor: Mapped[str | None] = mapped_column(String(255), nullable=True)
    changes: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    # Per-campground sequence; orders entries written in the same transaction
    seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    def __repr__(self) -> str:
        return f"<RuleAuditEntry({self.rule_kind}:{self.rule_id} {self.action})>"
