from booking_core.store.base import BookingStore
from booking_core.store.memory import InMemoryBookingStore
from booking_core.store.sql import SqlBookingStore

__all__ = [
    "BookingStore",
    "InMemoryBookingStore",
    "SqlBookingStore",
]
