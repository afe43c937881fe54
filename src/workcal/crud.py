from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import PAYLOAD_VERSION, SavedConfiguration


def get_configuration(db: Session, config_id: int) -> SavedConfiguration | None:
    return db.get(SavedConfiguration, config_id)


def list_configurations(db: Session, *, year: int | None = None) -> list[SavedConfiguration]:
    stmt = select(SavedConfiguration)
    if year is not None:
        stmt = stmt.where(SavedConfiguration.year == year)
    stmt = stmt.order_by(SavedConfiguration.updated_at.desc(), SavedConfiguration.id.desc())
    return list(db.scalars(stmt).all())


def create_configuration(
    db: Session,
    *,
    name: str,
    year: int,
    payload: dict[str, Any],
) -> SavedConfiguration:
    saved = SavedConfiguration(name=name, year=year, payload=payload, version=PAYLOAD_VERSION)
    db.add(saved)
    db.flush()
    return saved


def update_configuration(
    db: Session,
    config_id: int,
    *,
    name: str,
    year: int,
    payload: dict[str, Any],
) -> SavedConfiguration | None:
    existing = db.get(SavedConfiguration, config_id)
    if not existing:
        return None

    existing.name = name
    existing.year = year
    existing.payload = payload
    existing.version = PAYLOAD_VERSION
    db.flush()
    return existing


def delete_configuration(db: Session, config_id: int) -> bool:
    existing = db.get(SavedConfiguration, config_id)
    if not existing:
        return False

    db.delete(existing)
    return True
