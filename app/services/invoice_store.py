from typing import Dict, Iterable, Iterator, List, Optional

from loguru import logger

from app.schemas.invoice import Invoice, Moneda


class InvoiceStoreError(Exception):
    pass


class InvoiceStore:
    """Invoices partitioned by currency.

    Ids are unique within a currency bucket. Buckets keep insertion order and
    are always walked MXN, USD, EUR.
    """

    def __init__(self, invoices: Iterable[Invoice] = ()):
        self._buckets: Dict[Moneda, Dict[str, Invoice]] = {moneda: {} for moneda in Moneda}
        for invoice in invoices:
            self.add(invoice)

    def add(self, invoice: Invoice) -> Invoice:
        bucket = self._buckets[invoice.moneda]
        if invoice.id in bucket:
            raise InvoiceStoreError(f"La factura {invoice.id} ya existe en {invoice.moneda.value}")
        bucket[invoice.id] = invoice
        return invoice

    def get(self, invoice_id: str, moneda: Optional[Moneda] = None) -> Optional[Invoice]:
        for current in self._search_order(moneda):
            invoice = self._buckets[current].get(invoice_id)
            if invoice is not None:
                return invoice
        return None

    def require(self, invoice_id: str, moneda: Optional[Moneda] = None) -> Invoice:
        invoice = self.get(invoice_id, moneda)
        if invoice is None:
            raise InvoiceStoreError(f"La factura {invoice_id} no existe")
        return invoice

    def remove(self, invoice_id: str, moneda: Optional[Moneda] = None) -> Invoice:
        invoice = self.require(invoice_id, moneda)
        del self._buckets[invoice.moneda][invoice_id]
        return invoice

    def move(self, invoice_id: str, moneda: Moneda, source: Optional[Moneda] = None) -> Invoice:
        invoice = self.require(invoice_id, source)
        if invoice.moneda == moneda:
            return invoice
        if invoice_id in self._buckets[moneda]:
            raise InvoiceStoreError(f"La factura {invoice_id} ya existe en {moneda.value}")
        self.remove(invoice_id, invoice.moneda)
        moved = invoice.model_copy(update={"moneda": moneda})
        logger.info("Factura {} movida de {} a {}", invoice_id, invoice.moneda.value, moneda.value)
        return self.add(moved)

    def for_currency(self, moneda: Moneda) -> List[Invoice]:
        return list(self._buckets[moneda].values())

    def all(self) -> List[Invoice]:
        return [invoice for moneda in Moneda for invoice in self._buckets[moneda].values()]

    def _search_order(self, moneda: Optional[Moneda]) -> List[Moneda]:
        return [moneda] if moneda is not None else list(Moneda)

    def __iter__(self) -> Iterator[Invoice]:
        return iter(self.all())

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets.values())

    def __contains__(self, invoice_id: object) -> bool:
        return any(invoice_id in bucket for bucket in self._buckets.values())
