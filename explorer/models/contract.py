"""Contract model: deployed contracts and their verification state."""

from __future__ import annotations

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from explorer.models.base import Base, TimestampMixin


class Contract(Base, TimestampMixin):
    """A contract deployment observed on-chain."""

    __tablename__ = "contracts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(42), unique=True, index=True, nullable=False)

    # Runtime bytecode, lowercase hex without 0x
    bytecode: Mapped[str] = mapped_column(Text, default="", nullable=False)

    # Verification
    valid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    optimization: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    contract_name: Mapped[str] = mapped_column(String(300), default="", nullable=False)
    source_code: Mapped[str] = mapped_column(Text, default="", nullable=False)
    compiler_version: Mapped[str] = mapped_column(String(100), default="", nullable=False)

    # Compare-and-set counter for conditional updates
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
