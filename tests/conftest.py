# ================================
# TEST FIXTURES (tests/conftest.py)
# ================================

import itertools
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import NotificationDeliveryError
from app.models import Base
from app.models.business import Apartment, PropertyOwner
from app.models.user import User
from app.services.booking_service import BookingService
from app.services.notification_service import NotificationService

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

TENANT_CHAT_ID = 100
OWNER_CHAT_ID = 500
ADMIN_CHAT_ID = 900

TEST_PIN = "48213"


class FakeTelegramClient:
    """Records outgoing messages instead of calling the Bot API"""

    def __init__(self):
        self.sent = []
        self.answered = []
        self.fail = False

    @property
    def is_configured(self) -> bool:
        return True

    async def send_message(self, chat_id, text, reply_markup=None, parse_mode="HTML"):
        if self.fail:
            raise NotificationDeliveryError("Telegram API error: 500")
        self.sent.append({"chat_id": chat_id, "text": text, "reply_markup": reply_markup})
        return {"message_id": len(self.sent)}

    async def answer_callback_query(self, callback_query_id, text=None):
        self.answered.append(callback_query_id)
        return True

    def messages_to(self, chat_id):
        return [message["text"] for message in self.sent if message["chat_id"] == chat_id]

    def markup_to(self, chat_id):
        return [message["reply_markup"] for message in self.sent if message["chat_id"] == chat_id]


class FixedClock:
    """Deterministic clock that tests can move forward"""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


# ================================
# DATABASE
# ================================

@pytest.fixture
def engine(tmp_path):
    """File-based SQLite so several sessions can share committed state"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'shortlet_test.db'}",
        connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# ================================
# NOTIFICATIONS
# ================================

@pytest.fixture
def telegram():
    return FakeTelegramClient()


@pytest.fixture
def notifier(telegram):
    return NotificationService(telegram, admin_chat_ids=[ADMIN_CHAT_ID])


@pytest.fixture
def clock():
    return FixedClock()


# ================================
# DOMAIN DATA
# ================================

@pytest.fixture
def owner(db):
    owner = PropertyOwner(name="Chidi Okafor", business_name="Okafor Homes", telegram_chat_id=OWNER_CHAT_ID)
    db.add(owner)
    db.commit()
    db.refresh(owner)
    return owner


@pytest.fixture
def apartment(db, owner):
    apartment = Apartment(
        owner_id=owner.id,
        name="Maitama Luxury Suite",
        location="Maitama",
        apartment_type="2-Bedroom",
        price=Decimal("100000.00"),
        max_guests=4,
        is_available=True
    )
    db.add(apartment)
    db.commit()
    db.refresh(apartment)
    return apartment


@pytest.fixture
def unowned_apartment(db):
    apartment = Apartment(
        owner_id=None,
        name="Gwarinpa Studio",
        location="Gwarinpa",
        apartment_type="Studio Apartment",
        price=Decimal("35000.00"),
        max_guests=2,
        is_available=True
    )
    db.add(apartment)
    db.commit()
    db.refresh(apartment)
    return apartment


@pytest.fixture
def tenant(db):
    user = User(
        telegram_id=TENANT_CHAT_ID,
        chat_id=TENANT_CHAT_ID,
        name="Amaka Obi",
        username="amaka",
        total_bookings=0
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


# ================================
# SERVICES
# ================================

@pytest.fixture
def make_service(db, notifier, clock):
    """BookingService factory with sequential codes and a known PIN"""
    codes = (f"ABJ-{number:08d}" for number in itertools.count(1))

    def factory(session=None, **overrides):
        options = {
            "clock": clock,
            "code_generator": lambda: next(codes),
            "pin_generator": lambda: TEST_PIN,
        }
        options.update(overrides)
        return BookingService(session or db, notifier, **options)

    return factory


@pytest.fixture
def service(make_service):
    return make_service()


@pytest.fixture
async def booking(service, tenant, apartment):
    """A pending one-night booking of the owned apartment"""
    return await service.create_booking(tenant, apartment.id)
