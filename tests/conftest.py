# Standard Library
import hashlib
import hmac
import os
import time
from decimal import Decimal
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock

# La base de production n'est jamais ouverte pendant les tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# Third-Party Libraries
import pytest
import pytest_asyncio

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

# First-Party Libraries
from gomatcha.config import Settings, get_settings
from gomatcha.core.tasks import TaskQueue, get_task_queue
from gomatcha.database import get_db_session, get_session_factory
from gomatcha.email.dependencies import get_email_sender
from gomatcha.email.sender import AbstractEmailSender
from gomatcha.fulfillment.carrier import AbstractCarrierClient
from gomatcha.fulfillment.config import FulfillmentSettings, get_fulfillment_settings
from gomatcha.fulfillment.dependencies import get_carrier_client
from gomatcha.fulfillment.exceptions import CarrierApiException
from gomatcha.fulfillment.models import CarrierOrderResult, FulfillmentRequest, Office
from gomatcha.main import app
from gomatcha.orders.models import Order
from gomatcha.orders.repositories import SQLAlchemyOrderRepository
from gomatcha.payments.config import PaymentSettings, get_payment_settings
from gomatcha.payments.dependencies import get_payment_gateway
from gomatcha.payments.models import PaymentSession, PaymentSessionRequest
from gomatcha.payments.stripe_gateway import StripePaymentGateway

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
ADMIN_API_KEY = "test-admin-key"
WEBHOOK_SECRET = "whsec_test_secret"


# --- Doublures ---

class FakePaymentGateway(StripePaymentGateway):
    """Gateway Stripe sans appel réseau ; la vérification de signature reste celle du SDK."""

    def __init__(self, settings: PaymentSettings):
        super().__init__(settings)
        self.requests: List[PaymentSessionRequest] = []

    async def create_checkout_session(self, request: PaymentSessionRequest) -> PaymentSession:
        self.requests.append(request)
        session_id = f"cs_test_{len(self.requests)}"
        return PaymentSession(session_id=session_id, url=f"https://checkout.stripe.com/c/pay/{session_id}")


class FakeCarrierClient(AbstractCarrierClient):
    """Transporteur scripté : chaque appel consomme le prochain résultat de `outcomes`."""

    def __init__(self, outcomes: Optional[List[Any]] = None, offices: Optional[List[Office]] = None):
        self.outcomes = list(outcomes or [])
        self.offices = offices or []
        self.requests: List[FulfillmentRequest] = []
        self.office_queries: List[Dict[str, Any]] = []

    @property
    def is_configured(self) -> bool:
        return True

    async def create_order(self, request: FulfillmentRequest) -> CarrierOrderResult:
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            outcome = CarrierOrderResult(tracking_number=f"TRK{len(self.requests):04d}", fulfillment_order_id="NL-1")
        return outcome

    async def fetch_offices(self, country, place=None, post_code=None, courier=None, machines_only=False):
        self.office_queries.append(
            {"country": country, "place": place, "post_code": post_code, "courier": courier, "machines_only": machines_only}
        )
        offices = self.offices
        if machines_only:
            offices = [office for office in offices if office.is_machine]
        return offices

    async def fetch_countries(self):
        return [{"code": "BG", "name": "Bulgaria"}]


class RecordingTaskQueue(TaskQueue):
    """Garde les tâches au lieu de les exécuter ; `run_all` les joue à la demande."""

    def __init__(self):
        self.tasks: List[Tuple[Callable, tuple, dict]] = []

    def enqueue(self, func, *args, **kwargs) -> None:
        self.tasks.append((func, args, kwargs))

    def task_names(self) -> List[str]:
        return [func.__name__ for func, _, _ in self.tasks]

    async def run_all(self) -> None:
        tasks, self.tasks = self.tasks, []
        for func, args, kwargs in tasks:
            await func(*args, **kwargs)


# --- Fixtures de Base ---

@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Engine en mémoire partagé (StaticPool) : les tâches de fond voient les mêmes données."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory: sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def order_repository(db_session: AsyncSession) -> SQLAlchemyOrderRepository:
    return SQLAlchemyOrderRepository(db_session)


# --- Paramètres ---

@pytest.fixture
def app_settings() -> Settings:
    return Settings(ADMIN_API_KEY=ADMIN_API_KEY, SITE_URL="https://gomatcha.bg")


@pytest.fixture
def payment_settings() -> PaymentSettings:
    return PaymentSettings(STRIPE_SECRET_KEY="sk_test_123", STRIPE_WEBHOOK_SECRET=WEBHOOK_SECRET)


@pytest.fixture
def fulfillment_settings() -> FulfillmentSettings:
    return FulfillmentSettings(
        NEXTLEVEL_APP_ID="test-app",
        NEXTLEVEL_APP_SECRET="test-secret",
        NEXTLEVEL_API_BASE="https://nextlevel.test/v1/fulfillment",
        RETRY_MAX_ATTEMPTS=3,
    )


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return {"X-API-Key": ADMIN_API_KEY}


# --- Doublures partagées ---

@pytest.fixture
def payment_gateway(payment_settings: PaymentSettings) -> FakePaymentGateway:
    return FakePaymentGateway(payment_settings)


@pytest.fixture
def carrier_client() -> FakeCarrierClient:
    return FakeCarrierClient()


@pytest.fixture
def task_queue() -> RecordingTaskQueue:
    return RecordingTaskQueue()


@pytest.fixture
def email_sender() -> AsyncMock:
    sender = AsyncMock(spec=AbstractEmailSender)
    sender.send_email.return_value = True
    return sender


@pytest.fixture
def stripe_signature() -> Callable[[bytes], str]:
    """Construit un en-tête `Stripe-Signature` valide pour un corps donné."""
    def _sign(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
        timestamp = timestamp or int(time.time())
        signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
        signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
        return f"t={timestamp},v1={signature}"
    return _sign


# --- Commandes ---

@pytest.fixture
def order_data() -> Callable[..., Dict[str, Any]]:
    """Données d'une commande BG d'un article à 28.00 BGN, livraison Econt à l'adresse."""
    def _build(**overrides: Any) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "status": "pending",
            "payment_method": "card",
            "currency": "BGN",
            "items": [{
                "product_title": "SEIJAKU Церемониална Матча",
                "variant_title": "30g",
                "variant_id": "var_30g",
                "sku": "SEI-30",
                "quantity": 1,
                "unit_price": 28.0,
                "currency": "BGN",
            }],
            "total_amount": Decimal("28.00"),
            "shipping_price": Decimal("6.99"),
            "total_with_shipping": Decimal("34.99"),
            "customer_name": "Иван Петров",
            "customer_email": "ivan@example.com",
            "customer_phone": "888123456",
            "phone_country_code": "+359",
            "shipping_country": "BG",
            "shipping_country_name": "България",
            "shipping_city": "София",
            "shipping_address": "ул. Витоша 10",
            "shipping_postal_code": "1000",
            "shipping_method": "econt_address",
            "courier_code": "ECONT",
            "courier_name": "Econt",
        }
        data.update(overrides)
        return data
    return _build


@pytest.fixture
def create_order(order_repository: SQLAlchemyOrderRepository, order_data) -> Callable[..., Any]:
    async def _create(**overrides: Any) -> Order:
        order = await order_repository.add(order_data(**overrides))
        await order_repository.commit()
        return order
    return _create


# --- Client HTTP ---

@pytest_asyncio.fixture(scope="function")
async def test_client(
    db_session: AsyncSession,
    session_factory: sessionmaker,
    app_settings: Settings,
    payment_settings: PaymentSettings,
    fulfillment_settings: FulfillmentSettings,
    payment_gateway: FakePaymentGateway,
    carrier_client: FakeCarrierClient,
    task_queue: RecordingTaskQueue,
    email_sender: AsyncMock,
) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient httpx sur l'application, DB de test et fournisseurs externes simulés."""
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_settings] = lambda: app_settings
    app.dependency_overrides[get_payment_settings] = lambda: payment_settings
    app.dependency_overrides[get_fulfillment_settings] = lambda: fulfillment_settings
    app.dependency_overrides[get_payment_gateway] = lambda: payment_gateway
    app.dependency_overrides[get_carrier_client] = lambda: carrier_client
    app.dependency_overrides[get_task_queue] = lambda: task_queue
    app.dependency_overrides[get_email_sender] = lambda: email_sender

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_carrier_client() -> Callable[..., FakeCarrierClient]:
    """Fabrique de transporteurs scriptés (résultats ou exceptions, dans l'ordre)."""
    return FakeCarrierClient
