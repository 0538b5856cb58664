from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.invoice import Moneda


class SupplierBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    nombre: str = Field(..., min_length=1)
    rfc: str = ""
    moneda: Moneda = Moneda.MXN
    dias_credito: int = Field(30, ge=0)
    contacto: str = ""
    telefono: str = ""
    email: str = ""
    banco: str = ""
    clabe: str = ""
    clasificacion: str = "Otros"
    activo: bool = True


class SupplierIn(SupplierBase):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class SupplierOut(SupplierBase):
    id: str

    @property
    def incompleto(self) -> bool:
        return not self.rfc or not self.contacto or not self.email


class SupplierList(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    suppliers: List[SupplierOut]
    activos: int
    total: int
    incompletos: int


class Clasificaciones(BaseModel):
    nombres: List[str]
