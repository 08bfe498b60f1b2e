"""
tests/test_settlement_service.py

Settlement engine against a real (SQLite) database: conservation,
status transitions, sale/invoice sync, atomicity and rejection paths.
"""

import asyncio
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy import text
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from helpers.ledger import seed_client, snapshot
from src.apps.debts.exceptions import (
    ClientNotFoundError,
    InvalidSettlementRequestError,
    NoActiveDebtError,
    SettlementPersistenceError,
    UnknownPaymentStatusError,
)
from src.apps.debts.repositories.client_repository import ClientRepository
from src.apps.debts.repositories.invoice_repository import InvoiceRepository
from src.apps.debts.schemas import PaymentStatus
from src.apps.debts.services.settlement_service import SettlementService
from src.apps.debts.uow.unit_of_work import UnitOfWork

D = Decimal


async def _settle(session_factory, caller, client_id, amount):
    async with session_factory() as session:
        service = SettlementService(UnitOfWork(session), currency="CFA")
        return await service.settle_payment(client_id, amount, caller)


async def _total_due(session_factory, client_id):
    async with session_factory() as session:
        debts = await ClientRepository(session).list_debts()
    return next((d.total_due for d in debts if d.client_id == client_id), D("0"))


class TestSettlement:

    async def test_oldest_first_partial_settlement(self, session_factory, caller):
        seeded = await seed_client(session_factory, 30, 50, 20)
        first, second, third = seeded.invoice_ids

        result = await _settle(session_factory, caller, seeded.client_id, "40")

        invoices, _ = await snapshot(session_factory)
        assert invoices[first] == (D("30"), D("0"), PaymentStatus.paid_in_full)
        assert invoices[second] == (D("10"), D("40"), PaymentStatus.partial_payment)
        assert invoices[third] == (D("0"), D("20"), PaymentStatus.unpaid)
        assert result.applied_total == D("40")
        assert result.unapplied_amount == D("0")
        assert result.message == "Платёж на сумму 40 CFA успешно зарегистрирован"

    async def test_conservation_of_total_due(self, session_factory, caller):
        seeded = await seed_client(session_factory, "120.25", "80.50", (D("99.99"), PaymentStatus.partial_payment, "0.01"))
        before = await _total_due(session_factory, seeded.client_id)

        result = await _settle(session_factory, caller, seeded.client_id, "150.75")

        after = await _total_due(session_factory, seeded.client_id)
        assert result.applied_total == D("150.75")
        assert after == before - D("150.75")

    async def test_overpayment_allocates_only_outstanding_debt(self, session_factory, caller):
        seeded = await seed_client(session_factory, 30, 50, 20)

        result = await _settle(session_factory, caller, seeded.client_id, "250")

        invoices, sales = await snapshot(session_factory)
        assert result.applied_total == D("100")
        assert result.unapplied_amount == D("150")
        assert await _total_due(session_factory, seeded.client_id) == D("0")
        assert all(status == PaymentStatus.paid_in_full for _, _, status in invoices.values())
        assert all(status == PaymentStatus.paid_in_full for _, status in sales.values())

    async def test_sale_mirrors_invoice(self, session_factory, caller):
        seeded = await seed_client(
            session_factory,
            30,
            (D("50"), PaymentStatus.partial_payment, D("25")),
        )

        await _settle(session_factory, caller, seeded.client_id, "45")

        invoices, sales = await snapshot(session_factory)
        for invoice_id, sale_id in zip(seeded.invoice_ids, seeded.sale_ids):
            paid, _, status = invoices[invoice_id]
            assert sales[sale_id] == (paid, status)
        assert sales[seeded.sale_ids[1]] == (D("40"), PaymentStatus.partial_payment)

    async def test_terminal_invoices_are_never_selected(self, session_factory, caller):
        seeded = await seed_client(
            session_factory,
            (D("10"), PaymentStatus.cancelled),
            (D("10"), PaymentStatus.returned_fully),
            (D("0"), PaymentStatus.paid_in_full, D("10")),
            15,
        )
        before, _ = await snapshot(session_factory)

        result = await _settle(session_factory, caller, seeded.client_id, "100")

        after, _ = await snapshot(session_factory)
        assert [a.invoice_id for a in result.allocations] == [seeded.invoice_ids[3]]
        for invoice_id in seeded.invoice_ids[:3]:
            assert after[invoice_id] == before[invoice_id]
        assert result.applied_total == D("15")

    async def test_other_clients_are_untouched(self, session_factory, caller):
        target = await seed_client(session_factory, 30, name="Target")
        other = await seed_client(session_factory, 30, name="Other")
        before, _ = await snapshot(session_factory)

        await _settle(session_factory, caller, target.client_id, "30")

        after, _ = await snapshot(session_factory)
        assert after[other.invoice_ids[0]] == before[other.invoice_ids[0]]

    async def test_resubmitting_allocates_twice(self, session_factory, caller):
        seeded = await seed_client(session_factory, 30, 50, 20)

        await _settle(session_factory, caller, seeded.client_id, "40")
        await _settle(session_factory, caller, seeded.client_id, "40")

        invoices, _ = await snapshot(session_factory)
        assert invoices[seeded.invoice_ids[1]] == (D("50"), D("0"), PaymentStatus.paid_in_full)
        assert invoices[seeded.invoice_ids[2]] == (D("0"), D("20"), PaymentStatus.unpaid)
        assert await _total_due(session_factory, seeded.client_id) == D("20")


class TestSettlementRejections:

    async def test_client_without_active_debt(self, session_factory, caller):
        seeded = await seed_client(session_factory, (D("0"), PaymentStatus.paid_in_full, D("30")))
        before = await snapshot(session_factory)

        with pytest.raises(NoActiveDebtError):
            await _settle(session_factory, caller, seeded.client_id, "10")

        assert await snapshot(session_factory) == before

    async def test_unknown_client(self, session_factory, caller):
        with pytest.raises(ClientNotFoundError):
            await _settle(session_factory, caller, 999, "10")

    @pytest.mark.parametrize("client_id, amount", [(None, "10"), (1, None), (1, "0"), (1, "-3"), (1, "x")])
    async def test_validation_happens_before_transaction(self, caller, client_id, amount):
        uow = MagicMock()
        service = SettlementService(uow)

        with pytest.raises(InvalidSettlementRequestError):
            await service.settle_payment(client_id, amount, caller)

        uow.__aenter__.assert_not_called()

    async def test_unknown_persisted_status_is_rejected(self, session_factory, caller):
        seeded = await seed_client(session_factory, 30, 20)
        async with session_factory() as session:
            await session.execute(
                text("UPDATE invoices SET status = 'payee_integralement' WHERE id = :id"),
                {"id": seeded.invoice_ids[1]},
            )
            await session.commit()
        before = await snapshot_raw(session_factory)

        with pytest.raises(UnknownPaymentStatusError):
            await _settle(session_factory, caller, seeded.client_id, "40")

        assert await snapshot_raw(session_factory) == before


class TestAtomicity:

    async def test_failure_on_second_invoice_rolls_back_everything(
        self, session_factory, caller, monkeypatch
    ):
        seeded = await seed_client(session_factory, 30, 50, 20)
        before = await snapshot(session_factory)

        original = InvoiceRepository.apply_allocation
        calls = []

        async def flaky_apply(self, allocation):
            calls.append(allocation.invoice_id)
            if len(calls) == 2:
                raise OperationalError("UPDATE invoices", {}, Exception("simulated fault"))
            await original(self, allocation)

        monkeypatch.setattr(InvoiceRepository, "apply_allocation", flaky_apply)

        with pytest.raises(SettlementPersistenceError):
            await _settle(session_factory, caller, seeded.client_id, "60")

        assert calls == seeded.invoice_ids[:2]
        assert await snapshot(session_factory) == before

    async def test_session_is_released_on_every_exit_path(self, session_factory, caller):
        settled = await seed_client(session_factory, 30)
        cleared = await seed_client(session_factory, (D("0"), PaymentStatus.paid_in_full, D("30")))

        async with session_factory() as session:
            service = SettlementService(UnitOfWork(session))

            await service.settle_payment(settled.client_id, "10", caller)
            assert not session.in_transaction()

            with pytest.raises(NoActiveDebtError):
                await service.settle_payment(cleared.client_id, "10", caller)
            assert not session.in_transaction()


class TestConcurrentSettlement:

    async def test_same_client_settlements_run_one_after_another(self, session_factory, caller):
        seeded = await seed_client(session_factory, 30, 50, 20)
        first, second, third = seeded.invoice_ids

        results = await asyncio.gather(
            _settle(session_factory, caller, seeded.client_id, "40"),
            _settle(session_factory, caller, seeded.client_id, "40"),
        )

        earlier, later = sorted(results, key=lambda r: len(r.allocations), reverse=True)
        assert [(a.invoice_id, a.amount) for a in earlier.allocations] == [(first, D("30")), (second, D("10"))]
        assert [(a.invoice_id, a.amount) for a in later.allocations] == [(second, D("40"))]
        invoices, _ = await snapshot(session_factory)
        assert invoices[second] == (D("50"), D("0"), PaymentStatus.paid_in_full)
        assert invoices[third] == (D("0"), D("20"), PaymentStatus.unpaid)
        assert await _total_due(session_factory, seeded.client_id) == D("20")

    async def test_lock_wait_timeout_rolls_back(self, session_factory, caller):
        seeded = await seed_client(session_factory, 30, 50)
        before = await snapshot(session_factory)

        async with session_factory() as blocker:
            await blocker.execute(
                text("UPDATE invoices SET amount_due = amount_due WHERE id = :id"),
                {"id": seeded.invoice_ids[0]},
            )

            async with session_factory() as session:
                service = SettlementService(UnitOfWork(session), lock_timeout_ms=100)

                with pytest.raises(SettlementPersistenceError):
                    await service.settle_payment(seeded.client_id, "40", caller)
                assert not session.in_transaction()

            await blocker.rollback()

        assert await snapshot(session_factory) == before
        result = await _settle(session_factory, caller, seeded.client_id, "40")
        assert result.applied_total == D("40")

    async def test_zero_lock_timeout_is_passed_through(self, session_factory, caller, monkeypatch):
        seeded = await seed_client(session_factory, 30)
        original = UnitOfWork.acquire_write_lock
        timeouts = []

        async def recording_lock(self, timeout_ms):
            timeouts.append(timeout_ms)
            await original(self, timeout_ms)

        monkeypatch.setattr(UnitOfWork, "acquire_write_lock", recording_lock)

        async with session_factory() as session:
            service = SettlementService(UnitOfWork(session), lock_timeout_ms=0)
            result = await service.settle_payment(seeded.client_id, "10", caller)

        assert timeouts == [0]
        assert result.applied_total == D("10")


class TestRowLocking:

    def test_loader_locks_rows_oldest_first(self):
        stmt = InvoiceRepository.lock_outstanding_stmt(42)

        sql = str(stmt.compile(dialect=postgresql.dialect()))

        assert sql.rstrip().endswith("FOR UPDATE")
        assert "ORDER BY invoices.invoice_date ASC, invoices.id ASC" in sql
        assert "JOIN sales ON invoices.sale_id = sales.id" in sql


async def snapshot_raw(session_factory):
    async with session_factory() as session:
        rows = await session.execute(
            text("SELECT id, amount_paid, amount_due, status FROM invoices ORDER BY id")
        )
        return rows.all()
