import pytest

from contracts import build_swap, build_swaption, build_tarf, market
from universal import Environment
from universal.config import use_settings
from universal.dsl import K, var


@pytest.fixture
def env():
    return Environment(resolver=market)


@pytest.fixture
def swaption():
    return build_swaption()


@pytest.fixture
def swap():
    return build_swap()


@pytest.fixture
def tarf_cap():
    return build_tarf({"cap": 150 * K}, lambda payout: {"cap": var("cap") - payout})


@pytest.fixture
def tarf_uses():
    return build_tarf({"uses": 4}, lambda payout: {"uses": var("uses") - 1})


@pytest.fixture(autouse=True)
def fresh_settings():
    use_settings(None)
    yield
    use_settings(None)
