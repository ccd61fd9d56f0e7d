"""
Módulo de Facturación en mostrador (Billing)

Motor de borradores de factura y conciliación de stock:

- Construcción del borrador: agregar, cambiar cantidad y quitar líneas
- Cálculo de subtotal, descuento y total (líneas negativas = devolución)
- Validación de stock todo-o-nada antes de confirmar
- Confirmación: factura bloqueante + devoluciones y ajustes de stock de mejor esfuerzo
- Cola de facturas pendientes (guardar / retomar / eliminar) por sesión de caja

Estados del borrador:
- ACTIVE: el que se está editando (uno por sesión)
- PARKED: guardado en la cola
- COMMITTED: convertido en factura (terminal)
- DISCARDED: eliminado de la cola (terminal)
"""

from .catalog import CatalogSnapshot
from .engine import BillingEngine
from .gateway import BillingGateway, SqlBillingGateway
from .queue import EngineState, PendingQueueManager
from .commit import CommitOrchestrator
from .router import router

__all__ = [
    "CatalogSnapshot",
    "BillingEngine",
    "BillingGateway", "SqlBillingGateway",
    "EngineState", "PendingQueueManager",
    "CommitOrchestrator",
    "router"
]
