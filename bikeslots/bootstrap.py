"""
Process-level wiring: builds the store, clock and services from configuration.

The storage engine is created once here and disposed when the context exits;
nothing else in the package holds a global connection.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from .adapters.clock import SystemClock
from .adapters.memory_store import InMemoryStore
from .adapters.sql_store import SqlStore, create_sql_engine
from .config import AppConfig
from .domain.occupancy import OccupancyCalculator
from .services.availability_resolver import AvailabilityResolver, ClockProtocol
from .services.booking_manager import BookingManager


logger = logging.getLogger(__name__)

Store = Union[InMemoryStore, SqlStore]


@dataclass
class BookingApp:
    """Everything a request handler needs, built from one configuration."""
    config: AppConfig
    store: Store
    resolver: AvailabilityResolver
    manager: BookingManager


def build_app(config: AppConfig, store: Store, clock: Optional[ClockProtocol] = None) -> BookingApp:
    """Wire services around an already opened store."""
    # BusinessHours validates itself; a bad config fails here, at startup.
    business_hours = config.business_hours.to_business_hours()
    calculator = OccupancyCalculator(business_hours=business_hours)

    resolver = AvailabilityResolver(
        calculator=calculator,
        services=store,
        bookings=store,
        clock=clock or SystemClock(config.timezone),
        bikes=store,
        min_lead_days=config.booking.min_lead_days,
    )

    return BookingApp(
        config=config,
        store=store,
        resolver=resolver,
        manager=BookingManager(bookings=store),
    )


@contextmanager
def open_app(config: AppConfig, clock: Optional[ClockProtocol] = None) -> Iterator[BookingApp]:
    """
    Open the configured store, yield the wired application, then release it.

    Example:
        with open_app(AppConfig.load_or_default(path)) as app:
            app.resolver.available_slots(day, service_id)
    """
    catalog = [entry.to_service_info() for entry in config.services] or None

    if config.storage.backend == "memory":
        logger.debug("Using in-memory store")
        yield build_app(config, InMemoryStore(services=catalog), clock)
        return

    engine = create_sql_engine(config.storage.url, echo=config.storage.echo)
    logger.debug("Opened engine for %s", engine.url.render_as_string(hide_password=True))
    try:
        store = SqlStore(engine)
        store.create_schema(services=catalog)
        yield build_app(config, store, clock)
    finally:
        engine.dispose()
        logger.debug("Engine disposed")
