from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.schemas.invoice import Estatus
from app.utils.dates import to_date


class GroupField(str, Enum):
    PROVEEDOR = "proveedor"
    CLASIFICACION = "clasificacion"
    ESTATUS = "estatus"
    MES = "mes"
    MONEDA = "moneda"


class FilterSpec(BaseModel):
    """Cartera and dashboard filters. Unknown keys are a validation error."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True)

    proveedor: str = ""
    clasificacion: str = ""
    estatus: Optional[Estatus] = None
    fecha_from: Optional[date] = None
    fecha_to: Optional[date] = None
    pago_from: Optional[date] = None
    pago_to: Optional[date] = None
    search_text: str = ""

    @field_validator("estatus", mode="before")
    @classmethod
    def _empty_estatus(cls, value):
        return value or None

    @field_validator("fecha_from", "fecha_to", "pago_from", "pago_to", mode="before")
    @classmethod
    def _coerce_date(cls, value):
        return to_date(value)

    @property
    def filters_by_pago(self) -> bool:
        return self.pago_from is not None or self.pago_to is not None


class GroupSpec(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    primary: GroupField = GroupField.PROVEEDOR
    secondary: Optional[GroupField] = None

    @field_validator("secondary", mode="before")
    @classmethod
    def _empty_secondary(cls, value):
        return value or None

    @model_validator(mode="after")
    def _distinct_levels(self):
        if self.secondary is not None and self.secondary == self.primary:
            raise ValueError("La agrupación secundaria debe ser distinta de la principal")
        return self


class DateRange(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    start: Optional[date] = None
    end: Optional[date] = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _coerce_date(cls, value):
        return to_date(value)

    @property
    def is_closed(self) -> bool:
        return self.start is not None and self.end is not None
