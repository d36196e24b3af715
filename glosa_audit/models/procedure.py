"""
Procedure Code Catalogue (CUPS).
"""

from typing import Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from glosa_audit.models.base import Base, TimeStampedModel, UUIDModel


class ProcedureCode(Base, UUIDModel, TimeStampedModel):
    """Procedure metadata, including whether it needs prior authorization."""

    __tablename__ = "procedure_codes"

    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    chapter: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    requires_authorization: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Prior authorization required by the payer",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<ProcedureCode(code='{self.code}', requires_authorization={self.requires_authorization})>"
