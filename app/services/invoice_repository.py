from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger
from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from app.models.invoice import Invoice as InvoiceModel
from app.schemas.invoice import Invoice, Moneda
from app.services.invoice_store import InvoiceStore

_MONEDAS = {moneda.value for moneda in Moneda}
_COLUMNS = [column.name for column in InvoiceModel.__table__.columns if column.name not in ("created_at", "updated_at")]


def to_schema(row: InvoiceModel) -> Invoice:
    data = {name: getattr(row, name) for name in _COLUMNS}
    if data.get("moneda") not in _MONEDAS:
        logger.warning("Factura {} con moneda desconocida {!r}; se asigna MXN", row.id, data.get("moneda"))
        data["moneda"] = Moneda.MXN
    return Invoice.model_validate(data)


def _column_values(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value.value if isinstance(value, Enum) else value for key, value in values.items() if key in _COLUMNS}


class InvoiceRepository:
    def __init__(self, session: Session):
        self.session = session

    def load_store(self) -> InvoiceStore:
        rows = self.session.scalars(select(InvoiceModel).order_by(InvoiceModel.fecha.desc(), InvoiceModel.id)).all()
        return InvoiceStore(to_schema(row) for row in rows)

    def get(self, invoice_id: str) -> Optional[Invoice]:
        row = self.session.get(InvoiceModel, invoice_id)
        return to_schema(row) if row else None

    def upsert(self, invoice: Invoice) -> Invoice:
        row = self._write(invoice)
        self.session.commit()
        return to_schema(row)

    def upsert_many(self, invoices: Iterable[Invoice]) -> List[Invoice]:
        rows = [self._write(invoice) for invoice in invoices]
        self.session.commit()
        return [to_schema(row) for row in rows]

    def delete(self, invoice_id: str) -> bool:
        result = self.session.execute(delete(InvoiceModel).where(InvoiceModel.id == invoice_id))
        self.session.commit()
        return result.rowcount > 0

    def update_fields(self, invoice_id: str, fields: Dict[str, Any]) -> None:
        values = _column_values(fields)
        if not values:
            return
        self.session.execute(update(InvoiceModel).where(InvoiceModel.id == invoice_id).values(**values))
        self.session.commit()

    def bulk_update(self, ids: List[str], fields: Dict[str, Any]) -> int:
        values = _column_values(fields)
        if not ids or not values:
            return 0
        result = self.session.execute(update(InvoiceModel).where(InvoiceModel.id.in_(ids)).values(**values))
        self.session.commit()
        return result.rowcount

    def _write(self, invoice: Invoice) -> InvoiceModel:
        values = _column_values(invoice.model_dump())
        row = self.session.get(InvoiceModel, invoice.id)
        if row is None:
            row = InvoiceModel(**values)
            self.session.add(row)
        else:
            for key, value in values.items():
                setattr(row, key, value)
        self.session.flush()
        return row
