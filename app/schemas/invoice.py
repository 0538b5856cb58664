from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.utils.dates import to_date
from app.utils.money import ZERO, to_amount

AMOUNT_FIELDS = ("subtotal", "iva", "ret_isr", "ret_iva", "total", "monto_pagado")
DATE_FIELDS = ("fecha", "vencimiento", "fecha_programacion")


class Moneda(str, Enum):
    MXN = "MXN"
    USD = "USD"
    EUR = "EUR"


class TipoDocumento(str, Enum):
    FACTURA = "Factura"
    NOTA_CREDITO = "NotaCredito"
    ANTICIPO = "Anticipo"


class Estatus(str, Enum):
    PENDIENTE = "Pendiente"
    PAGADO = "Pagado"
    VENCIDO = "Vencido"
    PARCIAL = "Parcial"


class Invoice(BaseModel):
    """Immutable snapshot of a supplier invoice.

    ``moneda`` is the bucket the invoice lives in; changing it means removing
    the invoice and inserting a copy in the other bucket.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        frozen=True,
    )

    id: str
    moneda: Moneda = Moneda.MXN
    tipo: TipoDocumento = TipoDocumento.FACTURA
    fecha: Optional[date] = None
    serie: str = ""
    folio: str = ""
    uuid: str = ""
    proveedor: str = ""
    clasificacion: str = ""
    subtotal: Decimal = ZERO
    iva: Decimal = ZERO
    ret_isr: Decimal = ZERO
    ret_iva: Decimal = ZERO
    total: Decimal = ZERO
    monto_pagado: Decimal = ZERO
    concepto: str = ""
    dias_credito: int = 30
    dias_ficticios: int = 0
    vencimiento: Optional[date] = None
    fecha_programacion: Optional[date] = None
    estatus: Estatus = Estatus.PENDIENTE
    referencia: str = ""
    notas: str = ""
    vo_bo: bool = False
    autorizado_direccion: bool = False

    @field_validator(*AMOUNT_FIELDS, mode="before")
    @classmethod
    def _coerce_amount(cls, value):
        return to_amount(value)

    @field_validator(*DATE_FIELDS, mode="before")
    @classmethod
    def _coerce_date(cls, value):
        return to_date(value)

    @field_validator("serie", "folio", "uuid", "proveedor", "clasificacion", "concepto", "referencia", "notas", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        return "" if value is None else str(value)

    @field_validator("dias_credito", "dias_ficticios", mode="before")
    @classmethod
    def _coerce_days(cls, value):
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0

    @property
    def saldo(self) -> Decimal:
        return self.total - self.monto_pagado

    @property
    def folio_key(self) -> str:
        return f"{self.serie}{self.folio}".strip()

    @property
    def fecha_pago(self) -> Optional[date]:
        """Effective payment date: scheduled date, else due date."""
        return self.fecha_programacion or self.vencimiento


class InvoiceIn(BaseModel):
    """Full-form payload for creating or editing an invoice."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    id: Optional[str] = None
    moneda: Moneda = Moneda.MXN
    tipo: TipoDocumento = TipoDocumento.FACTURA
    fecha: Optional[date] = None
    serie: str = ""
    folio: str = ""
    uuid: str = ""
    proveedor: str = Field(..., min_length=1)
    clasificacion: str = ""
    subtotal: Decimal = ZERO
    iva: Optional[Decimal] = None
    ret_isr: Decimal = ZERO
    ret_iva: Decimal = ZERO
    monto_pagado: Decimal = ZERO
    concepto: str = ""
    dias_credito: Optional[int] = Field(None, ge=0)
    dias_ficticios: int = 0
    vencimiento: Optional[date] = None
    fecha_programacion: Optional[date] = None
    estatus: Estatus = Estatus.PENDIENTE
    referencia: str = ""
    notas: str = ""
    vo_bo: bool = False
    autorizado_direccion: bool = False

    @field_validator("subtotal", "ret_isr", "ret_iva", "monto_pagado", mode="before")
    @classmethod
    def _coerce_amount(cls, value):
        return to_amount(value)

    @field_validator("fecha", "vencimiento", "fecha_programacion", mode="before")
    @classmethod
    def _coerce_date(cls, value):
        return to_date(value)


class InvoicePatch(BaseModel):
    """Inline edits allowed from the invoice table."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    clasificacion: Optional[str] = None
    concepto: Optional[str] = None
    fecha_programacion: Optional[date] = None
    estatus: Optional[Estatus] = None
    vo_bo: Optional[bool] = None
    autorizado_direccion: Optional[bool] = None

    @field_validator("fecha_programacion", mode="before")
    @classmethod
    def _coerce_date(cls, value):
        return to_date(value)


class BulkUpdate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    ids: List[str] = Field(..., min_length=1)
    clasificacion: Optional[str] = None
    fecha_programacion: Optional[date] = None
    estatus: Optional[Estatus] = None
    autorizado_direccion: Optional[bool] = None


class MoveRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    moneda: Moneda
