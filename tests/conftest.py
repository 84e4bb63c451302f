from datetime import date

import pytest

from fluctus.infra.storage import DataStore
from fluctus.usecases.demo import seed


@pytest.fixture
def store():
    """Raiz de dados vazia, só em memória."""
    return DataStore(None)


@pytest.fixture
def seeded():
    s = DataStore(None)
    seed(s, today=date(2025, 6, 1))
    return s
