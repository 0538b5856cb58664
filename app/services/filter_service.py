from typing import Iterable, List

from app.schemas.filters import FilterSpec
from app.schemas.invoice import Invoice


def search_blob(invoice: Invoice) -> str:
    """Lower-cased JSON of the whole record, keys included."""
    return invoice.model_dump_json(by_alias=True).lower()


def matches_search(invoice: Invoice, text: str) -> bool:
    if not text:
        return True
    return text.lower() in search_blob(invoice)


def matches_filter(invoice: Invoice, spec: FilterSpec) -> bool:
    if spec.proveedor and invoice.proveedor != spec.proveedor:
        return False
    if spec.clasificacion and invoice.clasificacion != spec.clasificacion:
        return False
    if spec.estatus and invoice.estatus != spec.estatus:
        return False
    if spec.fecha_from and (invoice.fecha is None or invoice.fecha < spec.fecha_from):
        return False
    # an undated invoice sorts before any date, so an upper bound alone keeps it
    if spec.fecha_to and invoice.fecha is not None and invoice.fecha > spec.fecha_to:
        return False
    if spec.filters_by_pago:
        # Only explicitly scheduled invoices qualify; no fallback to vencimiento.
        scheduled = invoice.fecha_programacion
        if scheduled is None:
            return False
        if spec.pago_from and scheduled < spec.pago_from:
            return False
        if spec.pago_to and scheduled > spec.pago_to:
            return False
    return matches_search(invoice, spec.search_text)


def filter_invoices(invoices: Iterable[Invoice], spec: FilterSpec) -> List[Invoice]:
    return [invoice for invoice in invoices if matches_filter(invoice, spec)]
