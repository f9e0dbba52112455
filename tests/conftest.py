import pathlib
import sys
from decimal import Decimal

import pytest

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from database.db_manager import DatabaseManager  # noqa: E402
from main import build_services  # noqa: E402

USER = "user-1"


@pytest.fixture()
def db():
    manager = DatabaseManager(":memory:")
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture()
def services(db):
    return build_services(db)


@pytest.fixture()
def debit_card(services):
    return services.card_dao.create(USER, "Current Account")


@pytest.fixture()
def credit_card(services):
    return services.card_dao.create(USER, "Barclaycard", "credit", Decimal("500"))
