import os

import pytest

from autotag import events
from autotag.database import _pool


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_events():
    """Event handlers are process-global, drop them between tests."""
    events.clear()
    yield
    events.clear()


@pytest.fixture
def db_path(tmp_path):
    """Temporary SQLite file, also exported as AUTOTAG_DB_PATH."""
    path = str(tmp_path / "autotag.db")
    old = os.environ.get("AUTOTAG_DB_PATH")
    os.environ["AUTOTAG_DB_PATH"] = path
    yield path
    _pool.clear()
    if old is None:
        os.environ.pop("AUTOTAG_DB_PATH", None)
    else:
        os.environ["AUTOTAG_DB_PATH"] = old
