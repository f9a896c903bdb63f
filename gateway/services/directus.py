import asyncio
import json
import time
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from gateway.core.exceptions import BackendError, InvalidCredentials, RegistrationFailed
from gateway.schemas.blog import BlogPost
from gateway.schemas.product import Product, StockRecord
from gateway.schemas.user import BackendSession, UserCreate, UserProfile

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)

PRODUCT_FIELDS = [
    "id",
    "name",
    "slug",
    "price",
    "description",
    "stock_quantity",
    "image_url",
    "created_at",
    "updated_at",
]
STOCK_FIELDS = ["id", "name", "stock_quantity"]
BLOG_FIELDS = ["id", "title", "slug", "content", "author", "published_date"]
# Renew the service session this long before Directus expires it.
TOKEN_REFRESH_MARGIN_SECONDS = 60


def _payload_data(response: httpx.Response, context: str) -> Any:
    """Return the `data` member of a Directus response or raise BackendError."""
    if response.status_code >= 400:
        logger.error(
            "directus_request_failed",
            context=context,
            status_code=response.status_code,
            body=response.text[:500],
        )
        raise BackendError(f"Failed to {context}")

    try:
        payload = response.json()
    except ValueError:
        logger.error("directus_invalid_json", context=context, body=response.text[:500])
        raise BackendError(f"Failed to {context}")

    if not isinstance(payload, dict) or "data" not in payload:
        logger.error("directus_unexpected_payload", context=context)
        raise BackendError(f"Failed to {context}")
    return payload["data"]


def _parse(model: Type[ModelT], raw: Any, context: str) -> ModelT:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        logger.error("directus_malformed_record", context=context, errors=exc.errors())
        raise BackendError(f"Failed to {context}") from exc


def _parse_many(model: Type[ModelT], raw: Any, context: str) -> List[ModelT]:
    if not isinstance(raw, list):
        logger.error("directus_unexpected_payload", context=context)
        raise BackendError(f"Failed to {context}")
    return [_parse(model, record, context) for record in raw]


def _query(fields: Iterable[str], **extra: Any) -> Dict[str, Any]:
    params: Dict[str, Any] = {"fields": ",".join(fields)}
    for key, value in extra.items():
        params[key] = json.dumps(value) if isinstance(value, dict) else value
    return params


class ContentStore:
    """
    Long-lived Directus client holding the gateway's service credentials.

    Authenticates lazily on first use, with the static token when configured,
    otherwise by logging in with the service account. A logged-in session is
    refreshed before it expires.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        email: str = "",
        password: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self._static_token = token
        self._email = email
        self._password = password
        self._access_token: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._expires_at: Optional[float] = None
        self._auth_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings) -> "ContentStore":
        return cls(
            base_url=settings.DIRECTUS_URL,
            token=settings.DIRECTUS_TOKEN,
            email=settings.DIRECTUS_EMAIL,
            password=settings.DIRECTUS_PASSWORD,
            timeout=settings.DIRECTUS_TIMEOUT_SECONDS,
        )

    @property
    def is_authenticated(self) -> bool:
        return self._access_token is not None

    def _session_expiring(self) -> bool:
        if self._expires_at is None:
            return False
        return time.monotonic() >= self._expires_at - TOKEN_REFRESH_MARGIN_SECONDS

    def _store_session(self, session: BackendSession) -> None:
        self._access_token = session.access_token
        self._refresh_token = session.refresh_token
        # Directus reports the session lifetime in milliseconds.
        self._expires_at = time.monotonic() + session.expires / 1000 if session.expires is not None else None

    async def _request_session(self, path: str, body: Dict[str, Any], context: str) -> BackendSession:
        try:
            response = await self._http.post(path, json=body)
        except httpx.HTTPError as exc:
            logger.error("directus_auth_failed", context=context, error=str(exc))
            raise BackendError("Directus authentication failed") from exc
        return _parse(BackendSession, _payload_data(response, context), context)

    async def authenticate(self) -> None:
        if self._static_token:
            self._access_token = self._static_token
            logger.info("directus_authenticated", method="static_token")
            return

        if not (self._email and self._password):
            logger.error("directus_auth_not_configured")
            raise BackendError("Directus authentication failed")

        session = await self._request_session(
            "/auth/login",
            {"email": self._email, "password": self._password},
            "authenticate with Directus",
        )
        self._store_session(session)
        logger.info("directus_authenticated", method="email_password")

    async def refresh(self) -> None:
        """Renew the service session, logging in again when the refresh token is unusable."""
        if self._refresh_token:
            try:
                session = await self._request_session(
                    "/auth/refresh",
                    {"refresh_token": self._refresh_token, "mode": "json"},
                    "refresh Directus session",
                )
            except BackendError:
                logger.warning("directus_refresh_failed")
            else:
                self._store_session(session)
                logger.info("directus_session_refreshed")
                return
        await self.authenticate()

    async def ensure_authenticated(self) -> None:
        if self._access_token is not None and not self._session_expiring():
            return
        async with self._auth_lock:
            if self._access_token is None:
                await self.authenticate()
            elif self._session_expiring():
                await self.refresh()

    async def _read_items(self, collection: str, params: Dict[str, Any], context: str) -> Any:
        await self.ensure_authenticated()
        try:
            response = await self._http.get(
                f"/items/{collection}",
                params=params,
                headers={"Authorization": f"Bearer {self._access_token}"},
            )
        except httpx.HTTPError as exc:
            logger.error("directus_request_failed", context=context, error=str(exc))
            raise BackendError(f"Failed to {context}") from exc
        return _payload_data(response, context)

    async def get_products(self) -> List[Product]:
        context = "fetch products from Directus"
        raw = await self._read_items("products", _query(PRODUCT_FIELDS, limit=-1), context)
        return _parse_many(Product, raw, context)

    async def get_product(self, product_id: str) -> Optional[Product]:
        context = "fetch product from Directus"
        raw = await self._read_items(
            "products",
            _query(PRODUCT_FIELDS, filter={"id": {"_eq": product_id}}, limit=1),
            context,
        )
        products = _parse_many(Product, raw, context)
        return products[0] if products else None

    async def get_stock_records(self, product_ids: Iterable[str]) -> List[StockRecord]:
        """Fetch the stock batch for exactly the given ids. Absent ids are omitted."""
        context = "check stock availability from Directus"
        raw = await self._read_items(
            "products",
            _query(STOCK_FIELDS, filter={"id": {"_in": list(product_ids)}}, limit=-1),
            context,
        )
        return _parse_many(StockRecord, raw, context)

    async def get_blog_posts(self) -> List[BlogPost]:
        context = "fetch blog posts from Directus"
        raw = await self._read_items(
            "blog_posts",
            _query(BLOG_FIELDS, sort="-published_date", limit=-1),
            context,
        )
        return _parse_many(BlogPost, raw, context)

    async def get_blog_post(self, slug: str) -> Optional[BlogPost]:
        context = "fetch blog post from Directus"
        raw = await self._read_items(
            "blog_posts",
            _query(BLOG_FIELDS, filter={"slug": {"_eq": slug}}, limit=1),
            context,
        )
        posts = _parse_many(BlogPost, raw, context)
        return posts[0] if posts else None

    async def aclose(self) -> None:
        await self._http.aclose()


class AuthProvider:
    """User-scoped Directus operations; every call gets its own client."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings) -> "AuthProvider":
        return cls(base_url=settings.DIRECTUS_URL, timeout=settings.DIRECTUS_TIMEOUT_SECONDS)

    def _session_client(self, access_token: Optional[str] = None) -> httpx.AsyncClient:
        headers = {"Authorization": f"Bearer {access_token}"} if access_token else None
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
            headers=headers,
        )

    async def login(self, email: str, password: str) -> BackendSession:
        context = "log in user with Directus"
        try:
            async with self._session_client() as client:
                response = await client.post("/auth/login", json={"email": email, "password": password})
        except httpx.HTTPError as exc:
            logger.error("directus_request_failed", context=context, error=str(exc))
            raise BackendError(f"Failed to {context}") from exc

        if response.status_code in (400, 401, 403):
            logger.warning("directus_login_rejected", email=email, status_code=response.status_code)
            raise InvalidCredentials()

        return _parse(BackendSession, _payload_data(response, context), context)

    async def get_profile(self, access_token: str) -> UserProfile:
        context = "get user information from Directus"
        try:
            async with self._session_client(access_token) as client:
                response = await client.get("/users/me")
        except httpx.HTTPError as exc:
            logger.error("directus_request_failed", context=context, error=str(exc))
            raise BackendError(f"Failed to {context}") from exc

        return _parse(UserProfile, _payload_data(response, context), context)

    async def register(self, user_in: UserCreate) -> UserProfile:
        context = "register user with Directus"
        body = {
            "email": user_in.email,
            "password": user_in.password,
            "first_name": user_in.first_name or "",
            "last_name": user_in.last_name or "",
        }
        try:
            async with self._session_client() as client:
                response = await client.post("/users", json=body)
        except httpx.HTTPError as exc:
            logger.error("directus_request_failed", context=context, error=str(exc))
            raise BackendError(f"Failed to {context}") from exc

        if 400 <= response.status_code < 500:
            logger.warning("directus_registration_rejected", email=user_in.email, status_code=response.status_code)
            raise RegistrationFailed()

        data = _payload_data(response, context)
        if not data:
            raise RegistrationFailed()
        return _parse(UserProfile, data, context)
