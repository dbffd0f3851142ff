# backend/companion/models.py
from __future__ import annotations
from typing import Optional
from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, DateTime
from sqlalchemy.sql import func

from companion.db import Base


class KeyValueEntry(Base):
    """
    브라우저 localStorage 를 대신하는 키-값 저장 테이블.
    키는 '{purpose}_{client_id}' 형식이고, 전역 키는 로그인 코드 하나뿐이다.
    """
    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
