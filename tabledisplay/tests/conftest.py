"""Pytest fixtures for table display tests."""

import pytest

from .. import comm as comm_module
from .. import config as config_module
from ..comm import InMemoryComm
from ..config import RowLimitConfig, TableDisplayConfig
from ..table_display import TableDisplay


@pytest.fixture(autouse=True)
def isolated_defaults(monkeypatch):
    """Keep tests independent of user config files and installed transports.

    The default config is cached per process and the comm factory is a
    module global; both are pinned for the duration of each test.
    """
    monkeypatch.setattr(config_module, "_default_config", TableDisplayConfig())
    monkeypatch.setattr(comm_module, "_comm_factory", InMemoryComm)
    yield


@pytest.fixture
def comm():
    return InMemoryComm(comm_id="test-comm")


@pytest.fixture
def records():
    return [
        {"name": "alpha", "count": 1, "score": 0.5},
        {"name": "beta", "count": 2, "score": 1.5},
        {"name": "gamma", "count": 3, "score": 2.5},
    ]


@pytest.fixture
def table(records, comm):
    """A live table over three rows; the comm's open message is recorded."""
    return TableDisplay(records, comm=comm)


@pytest.fixture
def small_limits():
    return TableDisplayConfig(limits=RowLimitConfig(rows_limit=3, row_limit_to_index=2))


def last_update(comm):
    """Fields of the most recent partial update sent on ``comm``."""
    return comm.sent[-1]["state"]["updateData"]
