"""
Shared pytest fixtures for HappyShare tests.

No external services are involved anywhere: storage is in-memory and
async flows are driven with asyncio.run().
"""

from decimal import Decimal

import pytest

from happyshare.audit import AuditLogger
from happyshare.config import get_settings
from happyshare.models.ledger import Expense, ExpenseShare, Member
from happyshare.orchestrator import ExpenseFlow, GroupFlow, SettleUpFlow
from happyshare.services.storage import InMemoryAuditStorage, InMemoryGroupStorage
from happyshare.validation import LedgerValidator


@pytest.fixture(autouse=True)
def fresh_settings():
    """Make every test read settings from scratch."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def alice():
    return Member(id="alice", name="Alice")


@pytest.fixture
def bob():
    return Member(id="bob", name="Bob")


@pytest.fixture
def carol():
    return Member(id="carol", name="Carol")


@pytest.fixture
def trio(alice, bob, carol):
    return [alice, bob, carol]


@pytest.fixture
def dinner():
    """Alice pays 90, split equally between Alice, Bob and Carol."""
    return Expense(
        id="dinner",
        description="Dinner",
        amount=Decimal("90"),
        paid_by_id="alice",
        shares=[
            ExpenseShare(expense_id="dinner", member_id=member_id, amount=Decimal("30"))
            for member_id in ("alice", "bob", "carol")
        ],
    )


@pytest.fixture
def validator():
    return LedgerValidator(strict_custom_splits=False, max_amount=Decimal("100000"))


@pytest.fixture
def storage():
    return InMemoryGroupStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def flows(storage, validator, audit_logger):
    """(group_flow, expense_flow, settle_up_flow) sharing one store and audit log."""
    return (
        GroupFlow(storage, audit_logger=audit_logger),
        ExpenseFlow(storage, validator=validator, audit_logger=audit_logger),
        SettleUpFlow(storage, audit_logger=audit_logger),
    )
