import pytest

from calc import Interner


@pytest.fixture
def interner():
    return Interner()
