"""
contacts/models.py -- Domain dataclasses for the contact book.

These are pure data containers with zero logic. Ownership filtering, sorting
and pagination live in contacts/store.py.
"""

from dataclasses import dataclass, field
from typing import Optional

CONTACT_TYPES = ("work", "home", "personal")


@dataclass
class Contact:
    """A single address-book entry owned by one user.

    user_id scopes every read and write: a contact owned by someone else is
    reported as missing, never as forbidden.

    id is None before the record is written to the database.
    """

    user_id: str
    name: str
    phone_number: str
    email: Optional[str] = None
    is_favourite: bool = False
    contact_type: str = "personal"  # "work" | "home" | "personal"
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""


@dataclass
class ContactPage:
    """One page of a user's contacts plus the pagination envelope."""

    data: list[Contact] = field(default_factory=list)
    page: int = 1
    per_page: int = 10
    total_items: int = 0
    total_pages: int = 0
    has_previous_page: bool = False
    has_next_page: bool = False
