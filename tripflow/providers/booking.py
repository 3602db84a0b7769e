import uuid
from typing import Any, Dict, Optional

import requests
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from tripflow.models import Booking
from tripflow.providers.base import BookingProvider
from tripflow.schemas import BookingRequest, BookingResult
from tripflow.utils.logger import get_logger

log = get_logger("tripflow.booking")


class BookingProviderError(Exception):
    pass


def new_reference(hotel_only: bool) -> str:
    prefix = "HB" if hotel_only else "TB"
    return f"{prefix}{uuid.uuid4().hex[:8].upper()}"


class SqlBookingProvider(BookingProvider):
    """Confirms bookings by storing them in the local database."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def book(self, request: BookingRequest) -> BookingResult:
        reference = new_reference(request.transport_type is None)
        db: Session = self.session_factory()
        try:
            db.add(Booking(
                reference=reference,
                transport_type=request.transport_type,
                group_size=request.group_size,
                total=request.total,
                currency=request.currency,
                traveler=request.traveler.to_wire(),
                plan=request.plan.to_wire(),
                context=request.context.to_wire(),
            ))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            log.error("booking insert failed: %s", e)
            return BookingResult(success=False, message="the booking could not be saved")
        finally:
            db.close()

        log.info("booking confirmed ref=%s total=%.2f", reference, request.total)
        return BookingResult(success=True, booking_id=reference)


class HttpBookingProvider(BookingProvider):
    """Forwards the booking request to an external booking API."""

    def __init__(self, url: str, timeout: int = 15, headers: Optional[Dict[str, str]] = None):
        self.url = url
        self.timeout = timeout
        self.headers = headers or {}

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        r = requests.post(self.url, json=payload, headers=self.headers, timeout=self.timeout)
        if r.status_code >= 400:
            raise BookingProviderError(f"Booking API error {r.status_code}: {r.text[:200]}")
        return r.json()

    def book(self, request: BookingRequest) -> BookingResult:
        body = self._post(request.to_wire())
        return BookingResult(
            success=bool(body.get("success")),
            booking_id=body.get("bookingId") or body.get("booking_id"),
            message=body.get("message"),
        )
