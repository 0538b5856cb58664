from __future__ import annotations

import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd
from loguru import logger
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.invoice import new_id
from app.schemas.invoice import Estatus, Invoice, Moneda, TipoDocumento
from app.schemas.supplier import SupplierIn, SupplierOut
from app.services.catalog_service import CatalogService
from app.services.duplicate_service import ImportDuplicateIndex
from app.services.invoice_repository import InvoiceRepository
from app.services.invoice_service import compute_iva
from app.utils.dates import add_days, parse_excel_date
from app.utils.money import round_money, to_amount

SIN_PROVEEDOR = "SIN PROVEEDOR"
DEFAULT_CLASIFICACION = "Otros"

# Header lookups: the first header containing one of the keys (and none of
# the exclusions) wins.
COLUMNS: Dict[str, tuple[Sequence[str], Sequence[str]]] = {
    "fecha": (["FECHA"], []),
    "proveedor": (["PROVEEDOR", "RAZON SOCIAL", "NOMBRE", "EMISOR"], []),
    "subtotal": (["SUBTOTAL"], []),
    "iva": (["IVA"], ["RETIVA", "RET IVA", "RET. IVA"]),
    "total": (["TOTAL"], ["SUBTOTAL", "SUB TOTAL", "SUB-TOTAL"]),
    "serie": (["SERIE"], []),
    "folio": (["FOLIO"], []),
    "uuid": (["UUID"], []),
    "tipo": (["TIPO"], []),
}


class ImportServiceError(Exception):
    pass


@dataclass
class ImportResult:
    valid: bool
    errors: List[str] = field(default_factory=list)
    invoices: List[Invoice] = field(default_factory=list)
    new_suppliers: List[SupplierIn] = field(default_factory=list)
    duplicated: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def added(self) -> int:
        return len(self.invoices)

    def added_by_currency(self) -> Dict[Moneda, int]:
        counts = {moneda: 0 for moneda in Moneda}
        for invoice in self.invoices:
            counts[invoice.moneda] += 1
        return counts

    @property
    def message(self) -> str:
        if not self.valid:
            return "Error: " + "; ".join(self.errors)
        parts = []
        if self.added:
            plural = "s" if self.added != 1 else ""
            parts.append(f"Se importaron {self.added} factura{plural} nueva{plural}.")
        if self.new_suppliers:
            count = len(self.new_suppliers)
            parts.append(
                f"Se registraron {count} proveedor{'es' if count != 1 else ''} nuevo{'s' if count != 1 else ''}."
            )
        if self.duplicated:
            count = len(self.duplicated)
            plural = "s" if count != 1 else ""
            parts.append(f"{count} factura{plural} duplicada{plural} NO se cargaron.")
        if not parts:
            return "No se encontraron facturas válidas en el archivo."
        return " ".join(parts)


def cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def normalize_tipo(value: Any) -> TipoDocumento:
    text = cell_text(value).upper().replace(" ", "")
    if text.startswith("NOTA") or text.startswith("NC"):
        return TipoDocumento.NOTA_CREDITO
    if text.startswith("ANTICIPO"):
        return TipoDocumento.ANTICIPO
    return TipoDocumento.FACTURA


def find_header_row(rows: List[List[Any]]) -> int:
    for idx, row in enumerate(rows):
        if any("UUID" in cell_text(cell).upper() for cell in row):
            return idx
    return 0


class RowReader:
    def __init__(self, headers: List[str]):
        self.headers = headers
        self._index: Dict[str, List[int]] = {}
        for name, (keys, exclude) in COLUMNS.items():
            self._index[name] = [self._find(key, exclude) for key in keys]

    def _find(self, key: str, exclude: Sequence[str]) -> int:
        for idx, header in enumerate(self.headers):
            if key in header and not any(ex in header for ex in exclude):
                return idx
        return -1

    def get(self, row: List[Any], name: str) -> Any:
        for idx in self._index[name]:
            if 0 <= idx < len(row) and row[idx] != "":
                return row[idx]
        return ""


class ImportService:
    """Turn a spreadsheet of supplier invoices into new invoice records.

    Rows already present in the store (same fiscal UUID, or same
    serie+folio for the same supplier) are skipped and reported. Suppliers
    that do not exist yet are registered with default terms.
    """

    def __init__(self, existing: Iterable[Invoice], suppliers: Iterable[SupplierOut]):
        existing = list(existing)
        self.index = ImportDuplicateIndex(existing)
        self.suppliers = {s.nombre.strip().upper(): s for s in suppliers}

    def read(self, source: Any, filename: str = "") -> List[List[Any]]:
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(source)
        if Path(filename).suffix.lower() == ".csv":
            df = pd.read_csv(source, header=None, dtype=object)
        else:
            df = pd.read_excel(source, header=None, dtype=object, sheet_name=0)
        df = df.astype(object).where(pd.notna(df), "")
        return df.values.tolist()

    def process(self, source: Any, filename: str = "") -> ImportResult:
        try:
            rows = self.read(source, filename)
        except Exception as exc:  # broad: pandas/openpyxl parsing errors
            logger.exception("No se pudo leer el archivo {}", filename or "<upload>")
            return ImportResult(False, [f"No se pudo leer el archivo: {exc}"])
        return self.process_rows(rows)

    def process_rows(self, rows: List[List[Any]]) -> ImportResult:
        if not rows:
            return ImportResult(True)
        header_idx = find_header_row(rows)
        reader = RowReader([cell_text(cell).upper() for cell in rows[header_idx]])
        result = ImportResult(True)
        new_suppliers: Dict[str, SupplierIn] = {}

        for row in rows[header_idx + 1:]:
            if not any(cell_text(cell) for cell in row):
                continue
            fecha = parse_excel_date(reader.get(row, "fecha"))
            proveedor = cell_text(reader.get(row, "proveedor"))
            serie = cell_text(reader.get(row, "serie"))
            folio = cell_text(reader.get(row, "folio"))
            raw_uuid = cell_text(reader.get(row, "uuid"))
            subtotal = to_amount(reader.get(row, "subtotal"))
            iva = to_amount(reader.get(row, "iva"))
            raw_total = to_amount(reader.get(row, "total"))
            iva_final = iva if iva > 0 else compute_iva(subtotal)
            total = raw_total if raw_total > 0 else round_money(subtotal + iva_final)

            if self.index.contains(serie, folio, proveedor, raw_uuid):
                result.duplicated.append(
                    {"serie": serie, "folio": folio, "proveedor": proveedor, "total": total, "fecha": fecha}
                )
                continue
            self.index.register(serie, folio, proveedor, raw_uuid)

            supplier = self._supplier_for(proveedor, new_suppliers)
            moneda = supplier.moneda if supplier else Moneda.MXN
            dias_credito = (supplier.dias_credito if supplier else 0) or settings.default_dias_credito
            result.invoices.append(
                Invoice(
                    id=new_id(),
                    moneda=moneda,
                    tipo=normalize_tipo(reader.get(row, "tipo")),
                    fecha=fecha,
                    serie=serie,
                    folio=folio,
                    uuid=raw_uuid or new_id(),
                    proveedor=proveedor or SIN_PROVEEDOR,
                    clasificacion=(supplier.clasificacion if supplier else "") or DEFAULT_CLASIFICACION,
                    subtotal=subtotal,
                    iva=iva_final,
                    total=total,
                    dias_credito=dias_credito,
                    vencimiento=add_days(fecha, dias_credito),
                    estatus=Estatus.PENDIENTE,
                )
            )

        result.new_suppliers = list(new_suppliers.values())
        logger.info(
            "Importación: {} nuevas, {} duplicadas, {} proveedores nuevos",
            result.added,
            len(result.duplicated),
            len(result.new_suppliers),
        )
        return result

    def _supplier_for(self, proveedor: str, new_suppliers: Dict[str, SupplierIn]) -> Optional[SupplierIn | SupplierOut]:
        key = proveedor.upper()
        if key in self.suppliers:
            return self.suppliers[key]
        if key in new_suppliers:
            return new_suppliers[key]
        if not proveedor:
            return None
        supplier = SupplierIn(
            nombre=proveedor,
            moneda=Moneda.MXN,
            dias_credito=settings.default_dias_credito,
            clasificacion=DEFAULT_CLASIFICACION,
        )
        new_suppliers[key] = supplier
        return supplier


def import_invoices(session: Session, source: Any, filename: str = "") -> ImportResult:
    """Read an upload and persist the new invoices and suppliers it carries."""
    if not source:
        raise ImportServiceError("El archivo está vacío")
    repository = InvoiceRepository(session)
    catalog = CatalogService(session)
    service = ImportService(repository.load_store(), catalog.all_suppliers())
    result = service.process(source, filename)
    if not result.valid:
        return result
    if result.new_suppliers:
        catalog.create_many_suppliers(result.new_suppliers)
    if result.invoices:
        repository.upsert_many(result.invoices)
    return result
