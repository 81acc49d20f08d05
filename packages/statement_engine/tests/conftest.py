import pytest

from packages.statement_engine.models import CustomerMapping
from packages.statement_engine.tests.fakes import InMemoryStore


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def mappings():
    return [
        CustomerMapping(
            member_id="MC241EPW",
            reference_id="963330000141",
            customer_name="Vitus Itaba",
            account_number="22410063786",
            product_label="Group Loan",
        ),
        CustomerMapping(
            member_id="MC236EPW",
            customer_name="Hassan Ngunde",
            account_number="963330000396",
        ),
    ]
