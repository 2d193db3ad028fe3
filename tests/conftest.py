import pytest

from sample_app import Hits, make_api_routes


@pytest.fixture
def hits():
    return Hits()


@pytest.fixture
def api_routes(hits):
    return make_api_routes(hits)
