"""
Shared fixtures: a file-backed SQLite database per test and seeded inventory.

A real database is used rather than mocks so the partial unique indexes and
separate concurrent sessions behave the way they do in production.
"""

from collections.abc import AsyncGenerator
from datetime import date, time
from decimal import Decimal
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from showtime_booking.database import create_database_engine, create_session_factory, create_tables, get_db
from showtime_booking.models import Parking, Screen, Show, Theatre


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    db_engine = create_database_engine(f"sqlite+aiosqlite:///{tmp_path / 'showtime.db'}")
    await create_tables(db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as db_session:
        yield db_session


@pytest.fixture
async def inventory(session_factory) -> SimpleNamespace:
    """
    One theatre with a 5x5 screen, a show priced at 200 and a 3x3 parking floor.

    A second theatre with its own parking floor is included for ownership checks.
    """
    async with session_factory() as db_session:
        theatre = Theatre(theatre_name="Grand Palace", address="1 Main St", city="Pune", state="MH")
        other_theatre = Theatre(theatre_name="Riverside", city="Pune", state="MH")
        db_session.add_all([theatre, other_theatre])
        await db_session.flush()

        screen = Screen(theatre_id=theatre.id, screen_number=1, total_rows=5, total_columns=5)
        db_session.add(screen)
        await db_session.flush()

        show = Show(
            theatre_id=theatre.id,
            screen_id=screen.id,
            movie_name="Interstellar",
            language="English",
            show_date=date(2026, 11, 1),
            start_time=time(18, 0),
            end_time=time(21, 0),
            ticket_price=Decimal("200.00"),
            available_seats=screen.total_seats,
        )
        second_show = Show(
            theatre_id=theatre.id,
            screen_id=screen.id,
            movie_name="Dune",
            language="English",
            show_date=date(2026, 11, 1),
            start_time=time(21, 30),
            end_time=time(23, 59),
            ticket_price=Decimal("150.50"),
            available_seats=screen.total_seats,
        )
        parking = Parking(theatre_id=theatre.id, floor_number=1, total_rows=3, total_columns=3)
        other_parking = Parking(theatre_id=other_theatre.id, floor_number=1, total_rows=3, total_columns=3)
        db_session.add_all([show, second_show, parking, other_parking])
        await db_session.commit()

        return SimpleNamespace(
            theatre_id=theatre.id,
            other_theatre_id=other_theatre.id,
            screen_id=screen.id,
            show_id=show.id,
            second_show_id=second_show.id,
            parking_id=parking.id,
            other_parking_id=other_parking.id,
        )


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the ASGI app with the test database wired in."""
    from showtime_booking.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as db_session:
            try:
                yield db_session
                await db_session.commit()
            except Exception:
                await db_session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()

