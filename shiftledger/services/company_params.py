from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftledger.models import CompanyParameters
from shiftledger.schemas import CompanyParametersUpsertRequest
from shiftledger.services.engine_config import EngineConfig, build_engine_config
from shiftledger.settings import get_default_engine_config

DEFAULT_PARAMETERS_NAME = "DEFAULT"


def _defaults_row() -> CompanyParameters:
    defaults = get_default_engine_config()
    return CompanyParameters(
        name=DEFAULT_PARAMETERS_NAME,
        night_start=defaults.night_start,
        night_end=defaults.night_end,
        min_break_minutes=defaults.min_break_minutes,
        diurnal_overtime_rate=defaults.diurnal_overtime_rate,
        nocturnal_overtime_rate=defaults.nocturnal_overtime_rate,
        night_differential_rate=defaults.night_differential_rate,
    )


def get_or_create_company_parameters(db: Session) -> CompanyParameters:
    params = db.scalar(select(CompanyParameters).order_by(CompanyParameters.id.asc()))
    if params is not None:
        return params

    params = _defaults_row()
    db.add(params)
    db.commit()
    db.refresh(params)
    return params


def upsert_company_parameters(db: Session, payload: CompanyParametersUpsertRequest) -> CompanyParameters:
    params = db.scalar(select(CompanyParameters).order_by(CompanyParameters.id.asc()))
    if params is None:
        params = CompanyParameters(name=DEFAULT_PARAMETERS_NAME)
        db.add(params)

    params.night_start = payload.night_start
    params.night_end = payload.night_end
    params.min_break_minutes = payload.min_break_minutes
    params.diurnal_overtime_rate = payload.diurnal_overtime_rate
    params.nocturnal_overtime_rate = payload.nocturnal_overtime_rate
    params.night_differential_rate = payload.night_differential_rate

    db.commit()
    db.refresh(params)
    return params


def engine_config_from_row(params: CompanyParameters | None) -> EngineConfig:
    if params is None:
        return get_default_engine_config()
    return build_engine_config(
        {
            "night_start": params.night_start,
            "night_end": params.night_end,
            "min_break_minutes": params.min_break_minutes,
            "diurnal_overtime_rate": params.diurnal_overtime_rate,
            "nocturnal_overtime_rate": params.nocturnal_overtime_rate,
            "night_differential_rate": params.night_differential_rate,
        }
    )


def load_engine_config(db: Session) -> EngineConfig:
    """Company parameters as an engine config, falling back to settings defaults.

    Reading never creates the row; only the parameters endpoint does.
    """
    params = db.scalar(select(CompanyParameters).order_by(CompanyParameters.id.asc()))
    return engine_config_from_row(params)
