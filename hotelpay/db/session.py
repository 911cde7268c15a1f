from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hotelpay.config import settings


DATABASE_URL = str(settings.DATABASE_URL)


def _engine_options(url: str) -> dict:
    options = {"echo": settings.DEBUG}
    if make_url(url).get_backend_name() != "sqlite":
        # webhook bursts arrive after idle periods; drop dead connections first
        options["pool_pre_ping"] = True
    return options


engine = create_async_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

# session factory shared by BookingStore instances
async_session = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
