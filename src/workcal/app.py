from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date

from fastapi import Depends, FastAPI, HTTPException
from sqlalchemy.orm import Session

from . import crud
from .config import settings
from .db import engine, get_db
from .domain import CalendarConfig
from .log import setup_logging
from .models import Base, SavedConfiguration
from .pipeline import build_calendar
from .schemas import (
    CalendarConfigIn,
    CalendarOut,
    ConfigurationDraftIn,
    ConfigurationReportOut,
    SavedConfigurationIn,
    SavedConfigurationOut,
    StageFailureOut,
)
from .validation import validate_configuration

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging(settings.log_level)
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)


def get_today() -> date:
    """
    FastAPI dependency. Overridden in tests to pin the accepted year window.
    """
    return date.today()


def to_config(payload: CalendarConfigIn, today: date) -> CalendarConfig:
    try:
        return payload.to_domain(
            today=today,
            past=settings.year_past_window,
            future=settings.year_future_window,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def build_calendar_out(config: CalendarConfig, *, include_days: bool = True) -> CalendarOut:
    result = build_calendar(config, hours_per_day=settings.hours_per_day)
    if not result.ok:
        failure = StageFailureOut(stage=result.stage, message=result.error)
        raise HTTPException(status_code=400, detail=failure.model_dump())

    return CalendarOut.from_result(config.year.value, result.value, include_days=include_days)


def _saved_or_404(db: Session, config_id: int) -> SavedConfiguration:
    saved = crud.get_configuration(db, config_id)
    if not saved:
        raise HTTPException(status_code=404, detail="Configuration not found")
    return saved


@app.get("/health")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------

@app.post("/api/calendar", response_model=CalendarOut)
def generate_calendar_api(
    payload: CalendarConfigIn,
    include_days: bool = True,
    today: date = Depends(get_today),
):
    config = to_config(payload, today)
    return build_calendar_out(config, include_days=include_days)


@app.post("/api/configuration/validate", response_model=ConfigurationReportOut)
def validate_configuration_api(
    payload: ConfigurationDraftIn,
    today: date = Depends(get_today),
):
    try:
        draft = payload.to_draft(
            today=today,
            past=settings.year_past_window,
            future=settings.year_future_window,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return ConfigurationReportOut.model_validate(validate_configuration(draft))


# ---------------------------------------------------------------------------
# Saved configurations
# ---------------------------------------------------------------------------

@app.post("/api/configurations", response_model=SavedConfigurationOut, status_code=201)
def create_configuration_api(
    payload: SavedConfigurationIn,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    to_config(payload.config, today)
    saved = crud.create_configuration(
        db,
        name=payload.name,
        year=payload.config.year,
        payload=payload.config.model_dump(mode="json"),
    )
    db.commit()
    db.refresh(saved)
    logger.info("configuration %s saved (%s)", saved.id, saved.name)
    return saved


@app.get("/api/configurations", response_model=list[SavedConfigurationOut])
def list_configurations_api(year: int | None = None, db: Session = Depends(get_db)):
    return crud.list_configurations(db, year=year)


@app.get("/api/configurations/{config_id}", response_model=SavedConfigurationOut)
def get_configuration_api(config_id: int, db: Session = Depends(get_db)):
    return _saved_or_404(db, config_id)


@app.put("/api/configurations/{config_id}", response_model=SavedConfigurationOut)
def update_configuration_api(
    config_id: int,
    payload: SavedConfigurationIn,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    to_config(payload.config, today)
    saved = crud.update_configuration(
        db,
        config_id,
        name=payload.name,
        year=payload.config.year,
        payload=payload.config.model_dump(mode="json"),
    )
    if not saved:
        raise HTTPException(status_code=404, detail="Configuration not found")
    db.commit()
    db.refresh(saved)
    return saved


@app.delete("/api/configurations/{config_id}", status_code=204)
def delete_configuration_api(config_id: int, db: Session = Depends(get_db)):
    if not crud.delete_configuration(db, config_id):
        raise HTTPException(status_code=404, detail="Configuration not found")
    db.commit()


@app.post("/api/configurations/{config_id}/calendar", response_model=CalendarOut)
def calendar_from_saved_api(
    config_id: int,
    include_days: bool = True,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    saved = _saved_or_404(db, config_id)
    payload = CalendarConfigIn.model_validate(saved.payload)
    return build_calendar_out(to_config(payload, today), include_days=include_days)
