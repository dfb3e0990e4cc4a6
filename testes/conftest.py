import os
import tempfile
from datetime import datetime, timedelta

# precisa vir antes de qualquer import do app (settings/engine leem o ambiente)
_DB_PATH = os.path.join(tempfile.gettempdir(), "unitree_wifi_test.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["WIFI_CLEANUP_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret"

import pytest

from app.db.session import AsyncSessionLocal, drop_db, engine, init_db
from app.models.user import User
from app.services.access_validator import LocationEvidence, NetworkEvidence
from app.services.wifi_sessions import WifiSessionManager
from app.services.wifi_store import WifiStore

# quarta-feira, 10:00 em Asia/Ho_Chi_Minh
T0 = datetime(2025, 3, 12, 3, 0, 0)

CAMPUS_NETWORK = NetworkEvidence(ip_address="192.168.1.10", ssid="UNITREE-WIFI")
OTHER_CAMPUS_NETWORK = NetworkEvidence(ip_address="192.168.2.20", ssid="UNITREE-LIB")
CAMPUS_LOCATION = LocationEvidence(latitude=21.0047, longitude=105.8434, accuracy=15.0)


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture
async def database():
    """Recria as tabelas a cada teste."""
    await drop_db()
    await init_db()
    yield
    await engine.dispose()


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture(params=[True, False], ids=["transactional", "sequential"])
def manager(request, clock, database):
    return WifiSessionManager(WifiStore(supports_transactions=request.param), clock=clock)


@pytest.fixture
async def db(database):
    async with AsyncSessionLocal() as session:
        yield session


async def _create_user(email: str, student_id: str) -> User:
    async with AsyncSessionLocal() as session:
        user = User(email=email, full_name="Sinh Viên", student_id=student_id)
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


@pytest.fixture
async def user(database):
    return await _create_user("student@unitree.edu.vn", "SV001")


@pytest.fixture
async def other_user(database):
    return await _create_user("other@unitree.edu.vn", "SV002")
