from datetime import date

from workcal.crud import create_configuration
from workcal.db import engine, session_scope
from workcal.models import Base
from workcal.schemas import CalendarConfigIn

Base.metadata.create_all(bind=engine)

year = date.today().year
config = CalendarConfigIn.model_validate(
    {
        "year": year,
        "cycle": {"mode": "PARTS", "parts": [{"work_days": 6, "rest_days": 3}]},
        "employment_status": "WORKED_BEFORE",
        "cycle_offset": {"part_number": 1, "day_within_part": 1, "day_type": "WORK"},
        "annual_contract_hours": 1752,
        "holidays": [
            {"date": f"{year}-01-01", "name": "Año Nuevo"},
            {"date": f"{year}-12-25", "name": "Navidad"},
        ],
        "vacations": [
            {"start": f"{year}-08-01", "end": f"{year}-08-15", "description": "Verano"},
        ],
    }
)
config.to_domain(today=date.today())

with session_scope() as db:
    saved = create_configuration(
        db,
        name="Ejemplo 6-3",
        year=year,
        payload=config.model_dump(mode="json"),
    )
    print("configuration_id=", saved.id)
