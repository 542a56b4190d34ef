import asyncio
import os
import tempfile
from pathlib import Path

_TEST_DIR = Path(tempfile.mkdtemp(prefix="accounting-api-tests-"))

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR / 'test.db'}"
os.environ["UPLOADS_DIR"] = str(_TEST_DIR / "uploads")
os.environ["ENABLE_DEBUG_ROUTES"] = "true"
os.environ.pop("BASE_PATH", None)

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402

from accounting_api.core.config import settings  # noqa: E402
from accounting_api.db.init_db import init_db  # noqa: E402
from accounting_api.main import app  # noqa: E402


asyncio.run(init_db(drop_existing=True))


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture()
def uploads_dir() -> Path:
    return Path(settings.UPLOADS_DIR)
