import pytest

from ndarena.config import configure, reset_config


@pytest.fixture(autouse=True)
def cpu_defaults():
    configure(default_context="cpu")
    yield
    reset_config()
