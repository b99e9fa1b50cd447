import os

# Settings and the engine are built at import time, so the environment has
# to be in place before anything from app is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_API_KEY"] = "test-admin-key"
os.environ["FRONTEND_URL"] = "http://frontend.test"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_123"
os.environ["STRIPE_CONNECT_WEBHOOK_SECRET"] = "whsec_test"
os.environ["SQUARE_APPLICATION_ID"] = "sq0idp-test"
os.environ["SQUARE_APPLICATION_SECRET"] = "sq0csp-test"
os.environ["ENCRYPTION_KEY"] = "test-encryption-key"
os.environ.pop("SMTP_HOST", None)

from typing import Dict, Optional  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402

from app.database import Base, SessionLocal, engine  # noqa: E402
import app.models  # noqa: E402,F401
from app.core.tasks import task_queue  # noqa: E402
from app.crud import tenant as tenant_crud  # noqa: E402
from app.models.tenant import PaymentProvider  # noqa: E402
from app.services.status_store import status_store  # noqa: E402


class InMemoryRedis:
    """Stands in for the redis client: only the calls the status store makes."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        self.data[key] = value
        self.ttls[key] = ttl

    def delete(self, key: str) -> None:
        self.data.pop(key, None)
        self.ttls.pop(key, None)

    def ping(self) -> bool:
        return True


@pytest.fixture(autouse=True)
def redis_client(monkeypatch):
    client = InMemoryRedis()
    monkeypatch.setattr(status_store, "_client", client)
    return client


@pytest.fixture(autouse=True)
def submitted_jobs(monkeypatch):
    """Record submitted jobs instead of talking to Redis. Nothing runs."""
    jobs = []

    def submit(func, *args, description=None, on_failure=None, **kwargs):
        jobs.append((func, args, kwargs))
        return f"job-{len(jobs)}"

    monkeypatch.setattr(task_queue, "submit", submit)
    return jobs


@pytest.fixture
def run_jobs(submitted_jobs):
    """Run every job submitted so far, the way the worker would."""
    def run():
        while submitted_jobs:
            func, args, kwargs = submitted_jobs.pop(0)
            func(*args, **kwargs)
    return run


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def stripe_client():
    mock = MagicMock()
    mock.create_express_account.return_value = "acct_123"
    mock.create_onboarding_link.return_value = "https://connect.stripe.com/setup/e/acct_123/abc"
    mock.create_login_link.return_value = "https://connect.stripe.com/express/acct_123/xyz"
    return mock


@pytest.fixture
def make_tenant(db):
    """Create a tenant and its owner the way signup does."""
    def create(
        *,
        domain: str = "acme",
        email: str = "owner@acme.test",
        password: str = "s3cret-pass",
        business_name: str = "Acme Supplies",
        payment_provider: PaymentProvider = PaymentProvider.NONE,
    ):
        # create_with_user opens its own transaction
        db.commit()
        return tenant_crud.create_with_user(
            db,
            business_name=business_name,
            email=email,
            password=password,
            domain=domain,
            payment_provider=payment_provider,
        )
    return create
