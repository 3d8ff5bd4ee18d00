import os
import sys
from pathlib import Path
import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path so 'portfolio' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SUPABASE_DISABLED", "1")
os.environ.setdefault("USE_LOCAL_DB", "0")
os.environ.setdefault("SUPABASE_STORAGE_LOCAL_DIR", ".local_storage")
os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")
os.environ.setdefault("ADMIN_PASSWORD", "admin-secret")
os.environ.setdefault("AUTH_SECRET_KEY", "test-secret-key")
# cheap hashes keep the suite fast
os.environ.setdefault("BCRYPT_ROUNDS", "4")

ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]


@pytest.fixture(autouse=True)
def clean_store():
    from portfolio.infrastructure.auth.local_authority import reset_local_accounts
    from portfolio.infrastructure.database.repositories.content_store import clear_memory_store

    clear_memory_store()
    reset_local_accounts()
    yield
    clear_memory_store()
    reset_local_accounts()


@pytest.fixture(scope="session")
def client() -> TestClient:
    # lazy import after env configured
    from portfolio.main import create_app

    app = create_app()
    return TestClient(app)


@pytest.fixture()
def admin_header(client) -> dict[str, str]:
    r = client.post("/auth/sign-in", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture()
def user_header(client) -> dict[str, str]:
    creds = {"email": "visitor@example.com", "password": "visitor-pass"}
    r = client.post("/auth/sign-up", json=creds)
    assert r.status_code == 201, r.text
    r = client.post("/auth/sign-in", json=creds)
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}
