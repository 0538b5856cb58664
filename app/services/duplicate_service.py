from typing import Dict, FrozenSet, Iterable, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, computed_field

from app.schemas.invoice import Invoice


def folio_key(serie: Optional[str], folio: Optional[str]) -> str:
    return f"{serie or ''}{folio or ''}".strip()


class DuplicateReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    groups: Dict[str, List[Invoice]]
    flagged_ids: FrozenSet[str]

    @computed_field
    @property
    def folio_count(self) -> int:
        return len(self.groups)

    @computed_field
    @property
    def invoice_count(self) -> int:
        return sum(len(members) for members in self.groups.values())

    def is_duplicate(self, invoice_id: str) -> bool:
        return invoice_id in self.flagged_ids


def find_duplicates(invoices: Iterable[Invoice]) -> DuplicateReport:
    """Group invoices of every currency by folio key and keep keys seen more than once."""
    by_key: Dict[str, List[Invoice]] = {}
    for invoice in invoices:
        key = folio_key(invoice.serie, invoice.folio)
        if not key:
            continue
        by_key.setdefault(key, []).append(invoice)

    groups = {key: members for key, members in by_key.items() if len(members) > 1}
    flagged = frozenset(invoice.id for members in groups.values() for invoice in members)
    if groups:
        logger.debug("{} folios duplicados ({} facturas)", len(groups), len(flagged))
    return DuplicateReport(groups=groups, flagged_ids=flagged)


class ImportDuplicateIndex:
    """Keys of already-loaded invoices, used to skip repeated rows on import.

    A row is repeated when its fiscal UUID or its ``serie+folio:proveedor`` key
    was already seen, either in the store or earlier in the same file.
    """

    MIN_UUID_LENGTH = 9

    def __init__(self, invoices: Iterable[Invoice] = ()):
        self._keys: set[str] = set()
        for invoice in invoices:
            uuid_key = self.uuid_key(invoice.uuid)
            if uuid_key:
                self._keys.add(uuid_key)
            sfp = self._sfp_text(invoice.serie, invoice.folio, invoice.proveedor)
            if len(sfp) > 2:
                self._keys.add("sfp:" + sfp)

    @classmethod
    def uuid_key(cls, uuid: Optional[str]) -> str:
        if uuid and len(uuid) >= cls.MIN_UUID_LENGTH:
            return "uuid:" + uuid.strip().lower()
        return ""

    @staticmethod
    def _sfp_text(serie: Optional[str], folio: Optional[str], proveedor: Optional[str]) -> str:
        return f"{folio_key(serie, folio)}:{(proveedor or '').strip()}".lower()

    def candidate_keys(self, serie: str, folio: str, proveedor: str, uuid: str) -> List[str]:
        keys = []
        uuid_key = self.uuid_key(uuid)
        if uuid_key:
            keys.append(uuid_key)
        sfp_key = "sfp:" + self._sfp_text(serie, folio, proveedor)
        if len(sfp_key) > 6:
            keys.append(sfp_key)
        return keys

    def contains(self, serie: str, folio: str, proveedor: str, uuid: str) -> bool:
        return any(key in self._keys for key in self.candidate_keys(serie, folio, proveedor, uuid))

    def register(self, serie: str, folio: str, proveedor: str, uuid: str) -> None:
        self._keys.update(self.candidate_keys(serie, folio, proveedor, uuid))

    def __len__(self) -> int:
        return len(self._keys)
