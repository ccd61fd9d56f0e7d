from typing import Dict, Iterable, List, Optional

from app.modules.products.schemas import CatalogItem


class CatalogSnapshot:
    """
    Vista puntual (solo lectura) del catálogo: precios y stock disponible.

    La provee quien llama al motor; puede estar desactualizada respecto a
    otras sesiones que confirmen facturas al mismo tiempo.
    """

    def __init__(self, items: Iterable[CatalogItem]):
        self._items: Dict[str, CatalogItem] = {item.id: item for item in items}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items

    def get(self, item_id: str) -> Optional[CatalogItem]:
        return self._items.get(item_id)

    def available_qty(self, item_id: str) -> int:
        """Stock disponible; un ítem que no está en el catálogo cuenta como 0."""
        item = self._items.get(item_id)
        return item.available_qty if item else 0

    def items(self) -> List[CatalogItem]:
        return list(self._items.values())

    def search(self, term: Optional[str]) -> List[CatalogItem]:
        """Filtrar por nombre o código, sin distinguir mayúsculas."""
        if not term or not term.strip():
            return self.items()
        needle = term.strip().lower()
        return [
            item for item in self._items.values()
            if needle in item.name.lower() or (item.code and needle in item.code.lower())
        ]
