import random
import sys
from datetime import date
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from tripflow.schemas import TravelMode  # noqa: E402
from tripflow.services import Services  # noqa: E402
from tripflow.utils.dates import DateParser  # noqa: E402

from stubs import (  # noqa: E402
    StubBooking,
    StubCabs,
    StubHotels,
    StubTransport,
    bus,
    cab,
    flight,
    hotel,
    train,
)

TODAY = date(2025, 11, 20)


@pytest.fixture
def dates():
    return DateParser(today=lambda: TODAY)


@pytest.fixture
def services(dates):
    return Services(
        transport={
            TravelMode.FLIGHT: StubTransport([flight("fl-1", 5000), flight("fl-2", 6500)]),
            TravelMode.TRAIN: StubTransport([train("tr-1", 1200)]),
            TravelMode.BUS: StubTransport([bus("bs-1", 800)]),
        },
        hotels=StubHotels([hotel("ht-1", 2000), hotel("ht-2", 3200, name="Radisson Blu Mumbai")]),
        cabs=StubCabs([cab(500)], [cab(600)]),
        booking=StubBooking(),
        dates=dates,
        rng=random.Random(7),
    )
