"""Customer data model."""

from typing import Optional

from pydantic import BaseModel


class Customer(BaseModel):
    """Customer record owned by one tenant.

    Deletion sets ``is_deleted`` instead of overwriting personal fields;
    a deleted customer can no longer be booked.
    """
    id: str
    tenant_id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    notes: Optional[str] = None
    is_deleted: bool = False
