from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Version of the stored configuration payload
PAYLOAD_VERSION = "1.0"

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class SavedConfiguration(Base):
    __tablename__ = "saved_configuration"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    version: Mapped[str] = mapped_column(String(10), default=PAYLOAD_VERSION, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    # CalendarConfigIn as JSON
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    saved_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )
