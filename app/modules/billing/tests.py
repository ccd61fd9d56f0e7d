"""
Tests para el motor de facturación

Cubren:
- Cálculo de totales con descuento y líneas negativas
- Mutaciones del borrador (duplicados, stock, piso de cantidad)
- Validación de stock todo o nada antes de confirmar
- Confirmación: factura, devoluciones, ajustes de stock y outbox de efectos
- Cola de pendientes (park / resume / discard)
- Endpoints /billing con el header X-Session-ID
"""

import re
import pytest
from decimal import Decimal
from typing import List, Optional

from app.modules.invoices.schemas import CommittedInvoice, InvoiceDraftSnapshot
from app.modules.invoices.models import Invoice
from app.modules.products.schemas import CatalogItem
from app.modules.returns.models import Return
from app.modules.returns.schemas import ReturnReason, ReturnRecord
from app.modules.activity.service import INVOICE_GENERATED, ActivityService
from app.modules.billing import draft_builder
from app.modules.billing.catalog import CatalogSnapshot
from app.core.config import settings
from app.modules.billing.commit import CommitOrchestrator
from app.modules.billing.dependencies import (
    active_session_count, drop_engine_state, get_engine_state, reset_engine_states
)
from app.modules.billing.engine import BillingEngine
from app.modules.billing.exceptions import (
    AggregateValidationError, CatalogItemNotFoundError, DraftNotFoundError, DuplicateLineError,
    EmptyDraftError, EmptyDraftWarning, InvalidQuantityError, PersistenceError, StockExceededWarning
)
from app.modules.billing.numbering import generate_invoice_number, generate_number, generate_return_number
from app.modules.billing.pricing import calculate_totals
from app.modules.billing.queue import EngineState, PendingQueueManager
from app.modules.billing.return_emitter import manual_return, return_from_line
from app.modules.billing.schemas import (
    DraftLine, DraftState, NotificationType, SideEffectKind
)
from app.modules.billing.stock_validator import find_stock_violations


class FakeGateway:
    """Gateway en memoria que registra las llamadas y puede simular fallos"""

    def __init__(self, fail_invoice=False, fail_returns=False, fail_stock_for=None, fail_activity=False):
        self.fail_invoice = fail_invoice
        self.fail_returns = fail_returns
        self.fail_stock_for = set(fail_stock_for or [])
        self.fail_activity = fail_activity
        self.invoices: List[InvoiceDraftSnapshot] = []
        self.returns: List[ReturnRecord] = []
        self.stock_updates: List[tuple] = []
        self.activities: List[tuple] = []

    def fetch_catalog(self):
        return []

    def fetch_settings(self):
        raise NotImplementedError

    def create_invoice(self, snapshot: InvoiceDraftSnapshot) -> CommittedInvoice:
        if self.fail_invoice:
            raise RuntimeError("database unavailable")
        self.invoices.append(snapshot)
        return CommittedInvoice(**snapshot.model_dump())

    def update_item_stock(self, item_id: str, new_qty: int) -> None:
        if item_id in self.fail_stock_for:
            raise RuntimeError(f"stock update rejected for {item_id}")
        self.stock_updates.append((item_id, new_qty))

    def create_return(self, record: ReturnRecord) -> None:
        if self.fail_returns:
            raise RuntimeError("returns table locked")
        self.returns.append(record)

    def log_activity(self, action: str, description: str, reference: Optional[str] = None) -> None:
        if self.fail_activity:
            raise RuntimeError("activity log down")
        self.activities.append((action, description, reference))


# ===== FIXTURES =====

@pytest.fixture
def catalog():
    return CatalogSnapshot([
        CatalogItem(id="itemA", code="A001", name="Paracetamol", unit_price=Decimal("10.00"), available_qty=10),
        CatalogItem(id="itemB", code="B001", name="Amoxicilina", unit_price=Decimal("20.00"), available_qty=5),
        CatalogItem(id="itemC", code="C001", name="Ibuprofeno", unit_price=Decimal("15.00"), available_qty=2),
    ])


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def engine(gateway):
    return BillingEngine(EngineState(), gateway)


def make_line(item_id: str, quantity: int, unit_price: str) -> DraftLine:
    return DraftLine(item_id=item_id, unit_price=Decimal(unit_price), quantity=quantity, original_qty=0)


# ===== TESTS DE NUMERACIÓN =====

class TestNumbering:
    def test_invoice_number_format(self):
        assert re.match(r"^INV\d{8}[0-9A-Z]{3}$", generate_invoice_number())

    def test_return_number_format(self):
        assert re.match(r"^RET\d{8}[0-9A-Z]{3}$", generate_return_number())

    def test_uses_last_eight_timestamp_digits(self):
        number = generate_number("INV", now_ms=1712345678901)
        assert number.startswith("INV45678901")
        assert len(number) == 14


# ===== TESTS DE TOTALES =====

class TestPricing:
    """Tests del cálculo de subtotal, descuento y total"""

    def test_discount_applied_to_subtotal(self):
        """Dos líneas con 10% de descuento"""
        totals = calculate_totals(
            [make_line("itemA", 5, "10.00"), make_line("itemB", 2, "20.00")],
            Decimal("10")
        )
        assert totals.subtotal == Decimal("90.00")
        assert totals.discount == Decimal("9.00")
        assert totals.total == Decimal("81.00")

    def test_negative_line_reduces_subtotal(self):
        totals = calculate_totals([make_line("itemC", -3, "15.00")], 10)
        assert totals.subtotal == Decimal("-45.00")
        assert totals.total == Decimal("-40.50")

    def test_total_is_subtotal_minus_discount(self):
        totals = calculate_totals(
            [make_line("itemA", 3, "3.33"), make_line("itemB", -1, "1.11")],
            "3"
        )
        assert totals.total == totals.subtotal - totals.discount

    def test_empty_draft_totals_zero(self):
        totals = calculate_totals([], 3)
        assert totals.subtotal == 0
        assert totals.total == 0

    def test_recalculation_is_stable(self):
        lines = [make_line("itemA", 5, "10.00")]
        assert calculate_totals(lines, 3) == calculate_totals(lines, 3)

    def test_no_rounding_before_persistence(self):
        totals = calculate_totals([make_line("itemA", 1, "0.10")], 3)
        assert totals.discount == Decimal("0.003")


# ===== TESTS DEL BORRADOR =====

class TestDraftBuilder:
    """Tests de agregar, cambiar cantidad y quitar líneas"""

    def test_add_line_copies_price_and_stock(self, catalog):
        draft = draft_builder.new_draft()
        line = draft_builder.add_line(draft, catalog.get("itemA"))
        assert line.quantity == 1
        assert line.unit_price == Decimal("10.00")
        assert line.original_qty == 10
        assert line.name == "Paracetamol"

    def test_duplicate_item_rejected(self, catalog):
        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemA"))
        with pytest.raises(DuplicateLineError):
            draft_builder.add_line(draft, catalog.get("itemA"))
        assert len(draft.lines) == 1

    def test_add_line_rejects_zero(self, catalog):
        draft = draft_builder.new_draft()
        with pytest.raises(InvalidQuantityError):
            draft_builder.add_line(draft, catalog.get("itemA"), 0)

    def test_update_within_stock(self, catalog):
        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemA"))
        line = draft_builder.update_quantity(draft, catalog, "itemA", 10)
        assert line.quantity == 10

    def test_update_above_stock_leaves_draft_unchanged(self, catalog):
        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemB"), 2)
        with pytest.raises(StockExceededWarning) as exc_info:
            draft_builder.update_quantity(draft, catalog, "itemB", 6)
        assert exc_info.value.available == 5
        assert draft.find_line("itemB").quantity == 2

    def test_negative_quantity_allowed_down_to_floor(self, catalog):
        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemC"))
        line = draft_builder.update_quantity(draft, catalog, "itemC", -3)
        assert line.quantity == -3
        assert line.is_return

    def test_quantity_below_floor_rejected(self, catalog):
        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemC"))
        with pytest.raises(InvalidQuantityError):
            draft_builder.update_quantity(draft, catalog, "itemC", -6, floor=-5)
        assert draft.find_line("itemC").quantity == 1

    def test_zero_removes_line(self, catalog):
        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemA"))
        assert draft_builder.update_quantity(draft, catalog, "itemA", 0) is None
        assert draft.is_empty

    def test_string_quantity_parsed(self, catalog):
        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemA"))
        line = draft_builder.update_quantity(draft, catalog, "itemA", " 4 ")
        assert line.quantity == 4

    def test_non_integer_quantity_rejected(self, catalog):
        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemA"))
        with pytest.raises(InvalidQuantityError):
            draft_builder.update_quantity(draft, catalog, "itemA", "abc")
        assert draft.find_line("itemA").quantity == 1

    def test_update_missing_line_is_noop(self, catalog):
        draft = draft_builder.new_draft()
        assert draft_builder.update_quantity(draft, catalog, "itemA", 3) is None
        assert draft.is_empty

    def test_remove_line(self, catalog):
        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemA"))
        assert draft_builder.remove_line(draft, "itemA") is True
        assert draft_builder.remove_line(draft, "itemA") is False


# ===== TESTS DE VALIDACIÓN DE STOCK =====

class TestStockValidator:
    def test_reports_every_offending_line(self, catalog):
        draft = draft_builder.new_draft()
        draft.lines = [
            make_line("itemA", 11, "10.00"),
            make_line("itemB", 5, "20.00"),
            make_line("itemC", 3, "15.00"),
        ]
        violations = find_stock_violations(draft, catalog)
        assert [v.item_id for v in violations] == ["itemA", "itemC"]
        assert violations[0].available == 10

    def test_returns_never_violate(self, catalog):
        draft = draft_builder.new_draft()
        draft.lines = [make_line("itemC", -50, "15.00")]
        assert find_stock_violations(draft, catalog) == []

    def test_unknown_item_has_no_stock(self, catalog):
        draft = draft_builder.new_draft()
        draft.lines = [make_line("ghost", 1, "1.00")]
        violations = find_stock_violations(draft, catalog)
        assert violations[0].available == 0


# ===== TESTS DE DEVOLUCIONES =====

class TestReturnEmitter:
    def test_return_from_negative_line(self):
        record = return_from_line(make_line("itemC", -3, "15.00"), Decimal("10"), "INV00000001ABC")
        assert record.quantity == 3
        assert record.unit_value_after_discount == Decimal("13.50")
        assert record.total_value == Decimal("40.50")
        assert record.reason == ReturnReason.NEGATIVE_QUANTITY_ADJUSTMENT
        assert record.linked_invoice_number == "INV00000001ABC"

    def test_positive_line_is_not_a_return(self):
        with pytest.raises(ValueError):
            return_from_line(make_line("itemA", 1, "10.00"), 10, "INV00000001ABC")

    def test_manual_return_not_linked(self):
        record = manual_return("itemA", 2, Decimal("10.00"), 3)
        assert record.reason == ReturnReason.MANUAL_ADJUSTMENT
        assert record.linked_invoice_number is None
        assert record.total_value == Decimal("19.40")


# ===== TESTS DE CONFIRMACIÓN =====

class TestCommitOrchestrator:
    """Tests de la secuencia de confirmación y del outbox de efectos"""

    def test_commit_persists_invoice_and_adjusts_stock(self, catalog, gateway):
        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemA"), 5)
        draft_builder.add_line(draft, catalog.get("itemB"), 2)

        result = CommitOrchestrator(gateway).commit(draft, catalog, Decimal("10"))

        assert result.invoice.invoice_number == draft.invoice_number
        assert result.invoice.total == Decimal("81.00")
        assert gateway.stock_updates == [("itemA", 5), ("itemB", 3)]
        assert result.returns == []
        assert result.fully_applied
        assert draft.state == DraftState.COMMITTED
        assert result.next_draft.is_empty
        assert result.next_draft.invoice_number != draft.invoice_number

    def test_negative_line_emits_return_and_restores_stock(self, catalog, gateway):
        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemC"), -3)

        result = CommitOrchestrator(gateway).commit(draft, catalog, Decimal("10"))

        assert result.invoice.subtotal == Decimal("-45.00")
        assert len(result.returns) == 1
        assert result.returns[0].quantity == 3
        assert result.returns[0].total_value == Decimal("40.50")
        assert result.returns[0].linked_invoice_number == result.invoice.invoice_number
        assert gateway.stock_updates == [("itemC", 5)]

    def test_stock_violation_blocks_commit(self, catalog, gateway):
        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemA"), 1)
        draft_builder.add_line(draft, catalog.get("itemC"), 1)
        draft.find_line("itemC").quantity = 3

        with pytest.raises(AggregateValidationError) as exc_info:
            CommitOrchestrator(gateway).commit(draft, catalog, 3)

        assert [v.item_id for v in exc_info.value.violations] == ["itemC"]
        assert gateway.invoices == []
        assert gateway.stock_updates == []
        assert draft.state == DraftState.ACTIVE

    def test_empty_draft_rejected(self, catalog, gateway):
        with pytest.raises(EmptyDraftError):
            CommitOrchestrator(gateway).commit(draft_builder.new_draft(), catalog, 3)
        assert gateway.invoices == []

    def test_persistence_failure_leaves_draft_intact(self, catalog):
        gateway = FakeGateway(fail_invoice=True)
        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemA"), 2)
        draft_builder.add_line(draft, catalog.get("itemC"), -1)
        lines_before = [line.model_copy() for line in draft.lines]

        with pytest.raises(PersistenceError):
            CommitOrchestrator(gateway).commit(draft, catalog, 3)

        assert draft.state == DraftState.ACTIVE
        assert draft.lines == lines_before
        assert gateway.returns == []
        assert gateway.stock_updates == []

    def test_side_effect_failures_reported_not_raised(self, catalog):
        gateway = FakeGateway(fail_returns=True, fail_stock_for=["itemA"])
        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemA"), 2)
        draft_builder.add_line(draft, catalog.get("itemC"), -1)

        result = CommitOrchestrator(gateway).commit(draft, catalog, 3)

        failed = {(o.kind, o.target) for o in result.failed_side_effects}
        assert failed == {(SideEffectKind.RETURN, "itemC"), (SideEffectKind.STOCK_UPDATE, "itemA")}
        assert result.returns == []
        assert gateway.stock_updates == [("itemC", 3)]
        assert not result.fully_applied
        assert draft.state == DraftState.COMMITTED

    def test_activity_logged(self, catalog, gateway):
        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemA"), 1)
        result = CommitOrchestrator(gateway).commit(draft, catalog, 0)
        action, description, reference = gateway.activities[0]
        assert action == INVOICE_GENERATED
        assert reference == result.invoice.invoice_number
        assert description.startswith(f"Generated invoice: {reference}")

    def test_hook_fires_once_and_failure_is_recorded(self, catalog, gateway):
        calls = []

        def hook(invoice):
            calls.append(invoice.invoice_number)
            raise RuntimeError("printer offline")

        draft = draft_builder.new_draft()
        draft_builder.add_line(draft, catalog.get("itemA"), 1)
        result = CommitOrchestrator(gateway, on_invoice_generated=hook).commit(draft, catalog, 3)

        assert calls == [draft.invoice_number]
        hook_outcome = result.side_effects[-1]
        assert hook_outcome.kind == SideEffectKind.INVOICE_HOOK
        assert not hook_outcome.succeeded


    def test_return_for_item_missing_from_catalog_skips_stock_write(self, catalog, gateway):
        """Sin el ítem en el snapshot no hay stock base: el ajuste falla en el outbox"""
        draft = draft_builder.new_draft()
        draft.lines = [make_line("retired", -3, "8.00")]

        result = CommitOrchestrator(gateway).commit(draft, catalog, 0)

        assert gateway.stock_updates == []
        assert len(result.returns) == 1
        failed = result.failed_side_effects
        assert [(o.kind, o.target) for o in failed] == [(SideEffectKind.STOCK_UPDATE, "retired")]
        assert "retired" in failed[0].error

# ===== TESTS DE LA COLA =====

class TestPendingQueue:
    """Tests de park / resume / discard"""

    def test_park_opens_new_draft(self, catalog):
        state = EngineState()
        manager = PendingQueueManager(state)
        draft_builder.add_line(state.active_draft, catalog.get("itemA"))
        draft_builder.add_line(state.active_draft, catalog.get("itemB"))
        parked = state.active_draft

        entry = manager.park()

        assert entry.label == "Customer 1"
        assert len(state.queue) == 1
        assert parked.state == DraftState.PARKED
        assert state.active_draft.is_empty
        assert state.active_draft.invoice_number != parked.invoice_number

    def test_park_empty_draft_warns(self):
        state = EngineState()
        with pytest.raises(EmptyDraftWarning):
            PendingQueueManager(state).park("Vacía")
        assert len(state.queue) == 0

    def test_resume_swaps_with_active(self, catalog):
        state = EngineState()
        manager = PendingQueueManager(state)
        draft_builder.add_line(state.active_draft, catalog.get("itemA"))
        first = manager.park("Mesa 1")
        draft_builder.add_line(state.active_draft, catalog.get("itemB"), 2)
        second = state.active_draft

        resumed = manager.resume(first.draft_id)

        assert resumed is first.draft
        assert state.active_draft is first.draft
        assert resumed.state == DraftState.ACTIVE
        assert len(state.queue) == 1
        assert [line.item_id for line in resumed.lines] == ["itemA"]
        queued = state.pending()[0]
        assert queued.draft is second
        assert [(line.item_id, line.quantity) for line in queued.draft.lines] == [("itemB", 2)]

    def test_resume_with_empty_active_discards_it(self, catalog):
        state = EngineState()
        manager = PendingQueueManager(state)
        draft_builder.add_line(state.active_draft, catalog.get("itemA"))
        entry = manager.park()
        empty = state.active_draft

        manager.resume(entry.draft_id)

        assert len(state.queue) == 0
        assert empty.state == DraftState.DISCARDED

    def test_park_resume_round_trip_keeps_lines(self, catalog):
        state = EngineState()
        manager = PendingQueueManager(state)
        draft_builder.add_line(state.active_draft, catalog.get("itemA"), 3)
        draft_builder.add_line(state.active_draft, catalog.get("itemC"), -2)
        number = state.active_draft.invoice_number
        lines = [line.model_copy() for line in state.active_draft.lines]

        entry = manager.park()
        manager.resume(entry.draft_id)

        assert state.active_draft.invoice_number == number
        assert state.active_draft.lines == lines

    def test_discard_leaves_active_untouched(self, catalog):
        state = EngineState()
        manager = PendingQueueManager(state)
        draft_builder.add_line(state.active_draft, catalog.get("itemA"))
        entry = manager.park()
        active = state.active_draft

        manager.discard(entry.draft_id)

        assert len(state.queue) == 0
        assert entry.draft.state == DraftState.DISCARDED
        assert state.active_draft is active

    def test_unknown_draft(self):
        manager = PendingQueueManager(EngineState())
        with pytest.raises(DraftNotFoundError):
            manager.resume("missing")
        with pytest.raises(DraftNotFoundError):
            manager.discard("missing")

    def test_default_labels_follow_queue_size(self, catalog):
        state = EngineState()
        manager = PendingQueueManager(state)
        for item_id in ("itemA", "itemB"):
            draft_builder.add_line(state.active_draft, catalog.get(item_id))
            manager.park()
        assert [entry.label for entry in state.pending()] == ["Customer 1", "Customer 2"]


# ===== TESTS DEL MOTOR =====

class TestBillingEngine:
    """Avisos y errores convertidos en notificaciones"""

    def test_unknown_catalog_item(self, engine, catalog):
        with pytest.raises(CatalogItemNotFoundError):
            engine.add_line(catalog, "ghost")

    def test_stock_warning_becomes_notification(self, engine, catalog):
        engine.add_line(catalog, "itemB", 1)
        line = engine.update_quantity(catalog, "itemB", 99)
        assert line.quantity == 1
        notifications = engine.drain_notifications()
        assert notifications[0].type == NotificationType.WARNING
        assert engine.drain_notifications() == []

    def test_park_empty_returns_none(self, engine):
        assert engine.park() is None
        assert engine.drain_notifications()[0].type == NotificationType.WARNING

    def test_commit_replaces_active_draft(self, engine, catalog, gateway):
        engine.add_line(catalog, "itemA", 2)
        committed = engine.active_draft

        result = engine.commit(catalog, 3)

        assert engine.active_draft is result.next_draft
        assert engine.active_draft.state == DraftState.ACTIVE
        assert committed.state == DraftState.COMMITTED
        assert engine.drain_notifications()[0].type == NotificationType.SUCCESS

    def test_commit_validation_error_notified_and_raised(self, engine, catalog):
        engine.add_line(catalog, "itemC", 1)
        engine.active_draft.lines[0].quantity = 5
        with pytest.raises(AggregateValidationError):
            engine.commit(catalog, 3)
        assert engine.drain_notifications()[0].type == NotificationType.ERROR
        assert engine.active_draft.state == DraftState.ACTIVE

    def test_failed_side_effect_notified(self, catalog):
        engine = BillingEngine(EngineState(), FakeGateway(fail_activity=True))
        engine.add_line(catalog, "itemA")
        result = engine.commit(catalog, 3)
        types = [n.type for n in engine.drain_notifications()]
        assert types == [NotificationType.SUCCESS, NotificationType.ERROR]
        assert result.failed_side_effects[0].kind == SideEffectKind.ACTIVITY_LOG

    def test_manual_return_restores_stock(self, engine, catalog, gateway):
        record, outcomes = engine.record_manual_return(catalog, "itemA", 2, Decimal("10.00"), 3)
        assert gateway.returns == [record]
        assert gateway.stock_updates == [("itemA", 12)]
        assert all(outcome.succeeded for outcome in outcomes)


    def test_manual_return_unknown_item(self, engine, catalog, gateway):
        with pytest.raises(CatalogItemNotFoundError):
            engine.record_manual_return(catalog, "ghost", 1, Decimal("5.00"), 3)
        assert gateway.returns == []
        assert gateway.stock_updates == []


# ===== TESTS DE SESIONES =====

class TestEngineSessions:
    """Estado por X-Session-ID acotado en memoria"""

    @pytest.fixture(autouse=True)
    def clean_states(self):
        reset_engine_states()
        yield
        reset_engine_states()

    def test_same_session_reuses_state(self):
        assert get_engine_state("caja-1") is get_engine_state("caja-1")

    def test_least_recently_used_session_evicted(self, monkeypatch):
        monkeypatch.setattr(settings, "MAX_BILLING_SESSIONS", 2)
        first = get_engine_state("caja-1")
        get_engine_state("caja-2")
        get_engine_state("caja-1")
        get_engine_state("caja-3")

        assert active_session_count() == 2
        assert get_engine_state("caja-1") is first
        assert drop_engine_state("caja-2") is False

    def test_drop_session(self):
        get_engine_state("caja-1")
        assert drop_engine_state("caja-1") is True
        assert active_session_count() == 0

# ===== TESTS DE LA API =====

class TestBillingApi:
    """Endpoints /billing con base de datos SQLite en memoria"""

    def test_session_header_required(self, client):
        response = client.get("/billing/draft")
        assert response.status_code == 400

    def test_catalog_search(self, client, session_headers, sample_products):
        response = client.get("/billing/catalog", params={"search": "amox"}, headers=session_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["code"] == "AMOX250"

    def test_sessions_are_isolated(self, client, sample_products):
        item_id = str(sample_products[0].id)
        client.post("/billing/draft/lines", json={"item_id": item_id}, headers={"X-Session-ID": "caja-1"})
        response = client.get("/billing/draft", headers={"X-Session-ID": "caja-2"})
        assert response.json()["active"]["draft"]["lines"] == []

    def test_add_line_and_duplicate(self, client, session_headers, sample_products):
        item_id = str(sample_products[0].id)
        response = client.post("/billing/draft/lines", json={"item_id": item_id, "quantity": 2}, headers=session_headers)
        assert response.status_code == 201
        assert response.json()["active"]["draft"]["lines"][0]["quantity"] == 2

        response = client.post("/billing/draft/lines", json={"item_id": item_id}, headers=session_headers)
        assert response.status_code == 409

    def test_add_unknown_item(self, client, session_headers, sample_products):
        response = client.post("/billing/draft/lines", json={"item_id": "nope"}, headers=session_headers)
        assert response.status_code == 404

    def test_quantity_above_stock_returns_warning(self, client, session_headers, sample_products):
        item_id = str(sample_products[1].id)
        client.post("/billing/draft/lines", json={"item_id": item_id}, headers=session_headers)
        response = client.patch(f"/billing/draft/lines/{item_id}", json={"quantity": 6}, headers=session_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["active"]["draft"]["lines"][0]["quantity"] == 1
        assert data["notifications"][0]["type"] == "warning"

    def test_commit_invoice(self, client, session_headers, sample_products, db_session):
        paracetamol = sample_products[0]
        client.post("/billing/draft/lines", json={"item_id": str(paracetamol.id), "quantity": 2}, headers=session_headers)

        response = client.post("/billing/draft/commit", headers=session_headers)

        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["invoice"]["total"]) == Decimal("19.40")
        assert data["next_draft"]["lines"] == []
        assert db_session.query(Invoice).count() == 1
        db_session.refresh(paracetamol)
        assert paracetamol.quantity == 8
        activities = ActivityService(db_session).get_activities(INVOICE_GENERATED)
        assert [a.reference for a in activities] == [data["invoice"]["invoice_number"]]

        listed = client.get(f"/invoices/{data['invoice']['invoice_number']}")
        assert listed.status_code == 200
        assert len(listed.json()["lines"]) == 1

    def test_commit_with_return_line(self, client, session_headers, sample_products, db_session):
        ibuprofeno = sample_products[2]
        client.post("/billing/draft/lines", json={"item_id": str(ibuprofeno.id), "quantity": -3}, headers=session_headers)

        response = client.post("/billing/draft/commit", headers=session_headers)

        assert response.status_code == 201
        data = response.json()
        assert len(data["returns"]) == 1
        assert Decimal(data["returns"][0]["total_value"]) == Decimal("43.65")
        row = db_session.query(Return).first()
        assert row.linked_invoice_number == data["invoice"]["invoice_number"]
        db_session.refresh(ibuprofeno)
        assert ibuprofeno.quantity == 3

    def test_commit_out_of_stock(self, client, session_headers, sample_products, db_session):
        ibuprofeno = sample_products[2]
        client.post("/billing/draft/lines", json={"item_id": str(ibuprofeno.id)}, headers=session_headers)

        response = client.post("/billing/draft/commit", headers=session_headers)

        assert response.status_code == 400
        violations = response.json()["detail"]["violations"]
        assert violations == [{"item_id": str(ibuprofeno.id), "requested": 1, "available": 0}]
        assert db_session.query(Invoice).count() == 0

    def test_commit_empty_draft(self, client, session_headers):
        response = client.post("/billing/draft/commit", headers=session_headers)
        assert response.status_code == 400

    def test_park_resume_discard(self, client, session_headers, sample_products):
        first, second = (str(p.id) for p in sample_products[:2])
        client.post("/billing/draft/lines", json={"item_id": first}, headers=session_headers)
        response = client.post("/billing/draft/park", json={"label": "Mesa 4"}, headers=session_headers)
        assert response.json()["queue"][0]["label"] == "Mesa 4"

        client.post("/billing/draft/lines", json={"item_id": second}, headers=session_headers)
        draft_id = client.get("/billing/queue", headers=session_headers).json()[0]["draft_id"]

        response = client.post(f"/billing/queue/{draft_id}/resume", headers=session_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["active"]["draft"]["lines"][0]["item_id"] == first
        assert len(data["queue"]) == 1
        assert data["queue"][0]["label"] == "Customer 2"

        parked_id = data["queue"][0]["draft_id"]
        response = client.delete(f"/billing/queue/{parked_id}", headers=session_headers)
        assert response.status_code == 204
        assert client.get("/billing/queue", headers=session_headers).json() == []

    def test_resume_unknown_draft(self, client, session_headers):
        response = client.post("/billing/queue/missing/resume", headers=session_headers)
        assert response.status_code == 404

    def test_manual_return(self, client, session_headers, sample_products, db_session):
        amoxicilina = sample_products[1]
        response = client.post(
            "/billing/returns/manual",
            json={"item_id": str(amoxicilina.id), "quantity": 2, "unit_price": "20.00"},
            headers=session_headers
        )
        assert response.status_code == 201
        data = response.json()
        assert data["record"]["reason"] == "manual-adjustment"
        assert Decimal(data["record"]["total_value"]) == Decimal("38.80")
        db_session.refresh(amoxicilina)
        assert amoxicilina.quantity == 7

    def test_return_for_deactivated_product_keeps_stock(self, client, session_headers, sample_products, db_session):
        paracetamol = sample_products[0]
        client.post("/billing/draft/lines", json={"item_id": str(paracetamol.id), "quantity": -3}, headers=session_headers)
        paracetamol.is_active = False
        db_session.commit()

        response = client.post("/billing/draft/commit", headers=session_headers)

        assert response.status_code == 201
        failed = [s for s in response.json()["side_effects"] if not s["succeeded"]]
        assert [(s["kind"], s["target"]) for s in failed] == [("stock_update", str(paracetamol.id))]
        db_session.refresh(paracetamol)
        assert paracetamol.quantity == 10

    def test_manual_return_unknown_item(self, client, session_headers, sample_products, db_session):
        response = client.post(
            "/billing/returns/manual",
            json={"item_id": "does-not-exist", "quantity": 1, "unit_price": "5.00"},
            headers=session_headers
        )
        assert response.status_code == 404
        assert db_session.query(Return).count() == 0

    def test_close_session(self, client, session_headers, sample_products):
        client.post("/billing/draft/lines", json={"item_id": str(sample_products[0].id)}, headers=session_headers)

        assert client.delete("/billing/session", headers=session_headers).status_code == 204
        assert client.delete("/billing/session", headers=session_headers).status_code == 404
        response = client.get("/billing/draft", headers=session_headers)
        assert response.json()["active"]["draft"]["lines"] == []

    def test_returns_listing(self, client, session_headers, sample_products):
        client.post("/billing/draft/lines", json={"item_id": str(sample_products[2].id), "quantity": -2}, headers=session_headers)
        invoice_number = client.post("/billing/draft/commit", headers=session_headers).json()["invoice"]["invoice_number"]

        response = client.get("/returns/", params={"invoice_number": invoice_number})
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["returns"][0]["quantity"] == 2
        assert client.get("/returns/", params={"invoice_number": "INV00000000XXX"}).json()["total"] == 0
