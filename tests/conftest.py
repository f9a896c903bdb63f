import os
from collections.abc import Generator
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

os.environ["ENVIRONMENT"] = "development"
os.environ["JWT_SECRET"] = "test-secret-key"
os.environ["DIRECTUS_URL"] = "http://directus.test"
os.environ["DIRECTUS_TOKEN"] = "service-token"

from gateway.api.deps import get_auth_provider, get_content_store
from gateway.core.exceptions import BackendError, InvalidCredentials, RegistrationFailed
from gateway.core.security import create_access_token
from gateway.main import app
from gateway.schemas.blog import BlogPost
from gateway.schemas.product import Product, StockRecord
from gateway.schemas.user import BackendSession, UserCreate, UserProfile


class FakeContentStore:
    """In-memory stand-in for the Directus content store."""

    def __init__(self):
        self.products: List[Product] = []
        self.blog_posts: List[BlogPost] = []
        self.stock_records: List[StockRecord] = []
        self.stock_requests: List[List[str]] = []
        self.fail = False

    def _check(self):
        if self.fail:
            raise BackendError("Directus connection failed")

    async def get_products(self) -> List[Product]:
        self._check()
        return list(self.products)

    async def get_product(self, product_id: str) -> Optional[Product]:
        self._check()
        return next((p for p in self.products if p.id == product_id), None)

    async def get_stock_records(self, product_ids) -> List[StockRecord]:
        self._check()
        ids = list(product_ids)
        self.stock_requests.append(ids)
        return [record for record in self.stock_records if record.id in ids]

    async def get_blog_posts(self) -> List[BlogPost]:
        self._check()
        return list(self.blog_posts)

    async def get_blog_post(self, slug: str) -> Optional[BlogPost]:
        self._check()
        return next((p for p in self.blog_posts if p.slug == slug), None)


class FakeAuthProvider:
    def __init__(self):
        self.accounts: Dict[str, tuple] = {}
        self.fail = False

    def add_account(self, email: str, password: str, **profile) -> UserProfile:
        user = UserProfile(id=profile.pop("id", f"user-{len(self.accounts) + 1}"), email=email, **profile)
        self.accounts[email] = (password, user)
        return user

    async def login(self, email: str, password: str) -> BackendSession:
        if self.fail:
            raise BackendError("Directus connection failed")
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise InvalidCredentials()
        return BackendSession(access_token=f"directus-{email}", refresh_token="directus-refresh", expires=900000)

    async def get_profile(self, access_token: str) -> UserProfile:
        email = access_token.removeprefix("directus-")
        return self.accounts[email][1]

    async def register(self, user_in: UserCreate) -> UserProfile:
        if self.fail:
            raise BackendError("Directus connection failed")
        if user_in.email in self.accounts:
            raise RegistrationFailed()
        return self.add_account(
            user_in.email,
            user_in.password,
            first_name=user_in.first_name or "",
            last_name=user_in.last_name or "",
        )


@pytest.fixture()
def content_store() -> FakeContentStore:
    return FakeContentStore()


@pytest.fixture()
def auth_provider() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture()
def client(content_store: FakeContentStore, auth_provider: FakeAuthProvider) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_content_store] = lambda: content_store
    app.dependency_overrides[get_auth_provider] = lambda: auth_provider
    app.state.limiter.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def user() -> UserProfile:
    return UserProfile(id="1", email="test@example.com", first_name="Test", last_name="User")


@pytest.fixture()
def auth_headers(user: UserProfile) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}
