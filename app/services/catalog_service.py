from typing import Iterable, List, Optional

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.supplier import Clasificacion, Supplier
from app.schemas.supplier import SupplierIn, SupplierList, SupplierOut


class CatalogServiceError(Exception):
    pass


def matches_supplier_search(supplier: SupplierOut, text: str) -> bool:
    if not text:
        return True
    query = text.lower()
    fields = (supplier.nombre, supplier.rfc, supplier.contacto, supplier.email, supplier.clasificacion)
    return any(query in (value or "").lower() for value in fields)


class CatalogService:
    """Supplier catalog and classification labels.

    Invoices point at both by name only: renaming a supplier or removing a
    label leaves existing invoices untouched.
    """

    def __init__(self, session: Session):
        self.session = session

    def list_suppliers(self, search: str = "") -> SupplierList:
        rows = self.session.scalars(select(Supplier).order_by(Supplier.nombre)).all()
        suppliers = [SupplierOut.model_validate(row) for row in rows]
        return SupplierList(
            suppliers=[s for s in suppliers if matches_supplier_search(s, search)],
            activos=sum(1 for s in suppliers if s.activo),
            total=len(suppliers),
            incompletos=sum(1 for s in suppliers if s.incompleto),
        )

    def all_suppliers(self) -> List[SupplierOut]:
        rows = self.session.scalars(select(Supplier).order_by(Supplier.nombre)).all()
        return [SupplierOut.model_validate(row) for row in rows]

    def find_supplier(self, nombre: str) -> Optional[SupplierOut]:
        if not nombre:
            return None
        row = self.session.scalar(
            select(Supplier).where(func.upper(Supplier.nombre) == nombre.strip().upper()).limit(1)
        )
        return SupplierOut.model_validate(row) if row else None

    def create_supplier(self, data: SupplierIn) -> SupplierOut:
        if self.find_supplier(data.nombre):
            raise CatalogServiceError(f"El proveedor {data.nombre} ya existe")
        row = Supplier(**self._values(data))
        self.session.add(row)
        self.session.commit()
        logger.info("Proveedor creado: {}", row.nombre)
        return SupplierOut.model_validate(row)

    def update_supplier(self, supplier_id: str, data: SupplierIn) -> SupplierOut:
        row = self.session.get(Supplier, supplier_id)
        if row is None:
            raise CatalogServiceError(f"El proveedor {supplier_id} no existe")
        for key, value in self._values(data).items():
            setattr(row, key, value)
        self.session.commit()
        return SupplierOut.model_validate(row)

    def create_many_suppliers(self, suppliers: Iterable[SupplierIn]) -> List[SupplierOut]:
        rows = [Supplier(**self._values(data)) for data in suppliers]
        self.session.add_all(rows)
        self.session.commit()
        return [SupplierOut.model_validate(row) for row in rows]

    def list_clasificaciones(self) -> List[str]:
        return list(self.session.scalars(select(Clasificacion.nombre).order_by(Clasificacion.orden, Clasificacion.id)))

    def save_clasificaciones(self, nombres: Iterable[str]) -> List[str]:
        """Replace the whole label set, keeping the given order and dropping blanks and repeats."""
        cleaned: List[str] = []
        for nombre in nombres:
            nombre = (nombre or "").strip()
            if nombre and nombre not in cleaned:
                cleaned.append(nombre)
        self.session.execute(delete(Clasificacion))
        self.session.add_all(Clasificacion(nombre=nombre, orden=idx) for idx, nombre in enumerate(cleaned))
        self.session.commit()
        return cleaned

    def ensure_default_clasificaciones(self) -> None:
        if self.session.scalar(select(Clasificacion.id).limit(1)) is None:
            self.save_clasificaciones(settings.default_clasificaciones)
            logger.info("Clasificaciones por defecto cargadas")

    @staticmethod
    def _values(data: SupplierIn) -> dict:
        values = data.model_dump()
        values["moneda"] = data.moneda.value
        values["nombre"] = data.nombre.strip()
        return values
