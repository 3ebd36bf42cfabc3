import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="miniflix-tests-")

os.environ.setdefault("SECRET_KEY", "miniflix-test-secret")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["CACHE_ENABLED"] = "false"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["MEDIA_BASE_URL"] = "https://media.miniflix.test"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Dict, Iterator

import pytest
from fastapi.testclient import TestClient

from miniflix.database import create_tables, drop_tables
from miniflix.utils.security import create_access_token

from .helpers import run, seed_catalog


@pytest.fixture(autouse=True)
def database() -> Iterator[None]:
    run(drop_tables())
    run(create_tables())
    yield


@pytest.fixture
def seeded() -> Dict[str, int]:
    return run(seed_catalog())


@pytest.fixture
def client() -> Iterator[TestClient]:
    from miniflix.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(seeded) -> Dict[str, str]:
    token = create_access_token(seeded["user_id"])
    return {"Authorization": f"Bearer {token}"}
