"""
contacts/store.py -- SQLAlchemy-backed persistence for user contacts.

Uses SQLAlchemy Core (not ORM) so the dataclasses in contacts/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. ContactStore is the repository;
_row_to_contact is the mapper. Route handlers never touch SQL directly.

Ownership: every query filters on user_id. There is no method that reads or
writes a contact without it.

Security: all queries use bound parameters. sort_by is mapped through a
whitelist of columns -- the raw query parameter never reaches SQL.

Usage:
    store = ContactStore()
    contact = store.create_contact(Contact(user_id=uid, name="Ann", phone_number="+380..."))
    page = store.list_contacts(uid, page=2, per_page=5, sort_by="name")
    store.close()
"""

import math
from pathlib import Path
from typing import Any, Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, event, func, select
from sqlalchemy.engine import Engine

from contacts.models import Contact, ContactPage
from core.clock import to_iso, utc_now

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'contactvault_contacts.db'}"

# Columns callers may sort on, keyed by the public field name.
_SORTABLE = ("id", "name", "phone_number", "email", "is_favourite", "contact_type", "created_at")

# Fields update_contact() accepts; anything else is ignored.
_MUTABLE = ("name", "phone_number", "email", "is_favourite", "contact_type")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_contacts = Table(
    "contacts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(32), nullable=False, index=True),
    Column("name", String(100), nullable=False),
    Column("phone_number", String(40), nullable=False),
    Column("email", String(255)),
    Column("is_favourite", Integer, nullable=False, server_default="0"),  # boolean stored as 0/1
    Column("contact_type", String(20), nullable=False, server_default="personal"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return to_iso(utc_now())


def calculate_pagination(total_items: int, page: int, per_page: int) -> dict[str, Any]:
    """Return the pagination envelope for a result set of total_items rows.

    total_pages is 0 for an empty result. A page past the end reports
    has_next_page=False and has_previous_page=True.
    """
    total_pages = math.ceil(total_items / per_page) if per_page > 0 else 0
    return {
        "page": page,
        "per_page": per_page,
        "total_items": total_items,
        "total_pages": total_pages,
        "has_previous_page": page > 1,
        "has_next_page": page < total_pages,
    }


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode; set per-connection since PRAGMAs are not pooled."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _db_values(fields: dict[str, Any]) -> dict[str, Any]:
    values = {k: v for k, v in fields.items() if k in _MUTABLE}
    if "is_favourite" in values:
        values["is_favourite"] = 1 if values["is_favourite"] else 0
    return values


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ContactStore:
    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    def list_contacts(
        self,
        user_id: str,
        page: int = 1,
        per_page: int = 10,
        sort_by: str = "id",
        sort_order: str = "asc",
        is_favourite: Optional[bool] = None,
        contact_type: Optional[str] = None,
    ) -> ContactPage:
        """Return one page of the user's contacts.

        Unknown sort_by values fall back to id. sort_order is "asc" or "desc";
        anything else sorts ascending. Filters combine with AND.
        """
        page = max(page, 1)
        per_page = max(per_page, 1)

        condition = _contacts.c.user_id == user_id
        if is_favourite is not None:
            condition = condition & (_contacts.c.is_favourite == (1 if is_favourite else 0))
        if contact_type is not None:
            condition = condition & (_contacts.c.contact_type == contact_type)

        column = _contacts.c[sort_by] if sort_by in _SORTABLE else _contacts.c.id
        order = column.desc() if sort_order == "desc" else column.asc()

        with self.engine.connect() as conn:
            total = conn.execute(select(func.count()).select_from(_contacts).where(condition)).scalar() or 0
            rows = conn.execute(
                _contacts.select()
                .where(condition)
                .order_by(order, _contacts.c.id.asc())
                .limit(per_page)
                .offset((page - 1) * per_page)
            ).fetchall()

        return ContactPage(data=[_row_to_contact(r) for r in rows], **calculate_pagination(total, page, per_page))

    def get_contact(self, contact_id: int, user_id: str) -> Optional[Contact]:
        """Fetch one of the user's contacts. Returns None if missing or not owned."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _contacts.select().where((_contacts.c.id == contact_id) & (_contacts.c.user_id == user_id))
            ).fetchone()
        return _row_to_contact(row) if row is not None else None

    def create_contact(self, contact: Contact) -> Contact:
        """Insert a contact and return the stored record."""
        now = _now_iso()
        with self.engine.begin() as conn:
            result = conn.execute(
                _contacts.insert().values(
                    user_id=contact.user_id,
                    name=contact.name,
                    phone_number=contact.phone_number,
                    email=contact.email,
                    is_favourite=1 if contact.is_favourite else 0,
                    contact_type=contact.contact_type,
                    created_at=now,
                    updated_at=now,
                )
            )
            new_id = result.inserted_primary_key[0]
            row = conn.execute(_contacts.select().where(_contacts.c.id == new_id)).fetchone()
        return _row_to_contact(row)

    def update_contact(
        self,
        contact_id: int,
        user_id: str,
        fields: dict[str, Any],
        upsert: bool = False,
    ) -> Optional[tuple[Contact, bool]]:
        """Apply fields to one of the user's contacts.

        Returns (contact, is_new). is_new is True only when upsert=True and no
        owned contact with contact_id existed, in which case a new contact is
        created from fields (name and phone_number required) under a fresh id.
        Returns None when nothing matched and upsert is False.
        """
        values = _db_values(fields)
        owned = (_contacts.c.id == contact_id) & (_contacts.c.user_id == user_id)
        with self.engine.begin() as conn:
            if values:
                values["updated_at"] = _now_iso()
                result = conn.execute(_contacts.update().where(owned).values(**values))
                matched = result.rowcount > 0
            else:
                matched = conn.execute(select(_contacts.c.id).where(owned)).fetchone() is not None
            if matched:
                row = conn.execute(_contacts.select().where(owned)).fetchone()
                return _row_to_contact(row), False

        if not upsert:
            return None
        if not fields.get("name") or not fields.get("phone_number"):
            raise ValueError("name and phone_number are required to create a contact")
        created = self.create_contact(
            Contact(
                user_id=user_id,
                name=fields["name"],
                phone_number=fields["phone_number"],
                email=fields.get("email"),
                is_favourite=bool(fields.get("is_favourite", False)),
                contact_type=fields.get("contact_type") or "personal",
            )
        )
        return created, True

    def delete_contact(self, contact_id: int, user_id: str) -> Optional[Contact]:
        """Delete one of the user's contacts and return what was removed."""
        owned = (_contacts.c.id == contact_id) & (_contacts.c.user_id == user_id)
        with self.engine.begin() as conn:
            row = conn.execute(_contacts.select().where(owned)).fetchone()
            if row is None:
                return None
            conn.execute(_contacts.delete().where(owned))
        return _row_to_contact(row)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_contact(row) -> Contact:
    return Contact(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        phone_number=row.phone_number,
        email=row.email,
        is_favourite=bool(row.is_favourite),
        contact_type=row.contact_type,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
