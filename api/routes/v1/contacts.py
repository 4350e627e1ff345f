"""
api/routes/v1/contacts.py -- Contact book routes for the ContactVault REST API.

Routes:
  GET    /contacts                -- paginated list (page, per_page, sort_by, sort_order, filters)
  POST   /contacts                -- create contact
  GET    /contacts/{contact_id}   -- contact detail
  PATCH  /contacts/{contact_id}   -- partial update
  PUT    /contacts/{contact_id}   -- replace; creates the contact if missing (201)
  DELETE /contacts/{contact_id}   -- delete; 204

Ownership: every store call passes current_user.id. A contact owned by
another user returns 404, exactly like a contact that does not exist.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse

from api.models import (
    ContactCreate,
    ContactPageResponse,
    ContactPatch,
    ContactResponse,
    ContactSortEnum,
    ContactTypeEnum,
    SortOrderEnum,
)
from auth.dependencies import get_current_user
from auth.models import User
from contacts.models import Contact
from contacts.store import ContactStore

router = APIRouter()


def _store(request: Request) -> ContactStore:
    return request.app.state.contacts


def _not_found(contact_id: int) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "not_found", "message": f"Contact {contact_id} not found."},
    )


@router.get("/contacts", response_model=ContactPageResponse)
def list_contacts(
    request: Request,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=10, ge=1, le=100),
    sort_by: ContactSortEnum = ContactSortEnum.id,
    sort_order: SortOrderEnum = SortOrderEnum.asc,
    is_favourite: Optional[bool] = None,
    contact_type: Optional[ContactTypeEnum] = None,
    current_user: User = Depends(get_current_user),
) -> ContactPageResponse:
    page_data = _store(request).list_contacts(
        current_user.id,
        page=page,
        per_page=per_page,
        sort_by=sort_by.value,
        sort_order=sort_order.value,
        is_favourite=is_favourite,
        contact_type=contact_type.value if contact_type else None,
    )
    return ContactPageResponse.from_page(page_data)


@router.post("/contacts", response_model=ContactResponse, status_code=201)
def create_contact(
    request: Request,
    body: ContactCreate,
    current_user: User = Depends(get_current_user),
) -> ContactResponse:
    contact = _store(request).create_contact(
        Contact(
            user_id=current_user.id,
            name=body.name,
            phone_number=body.phone_number,
            email=body.email,
            is_favourite=body.is_favourite,
            contact_type=body.contact_type.value,
        )
    )
    return ContactResponse.from_contact(contact)


@router.get("/contacts/{contact_id}", response_model=ContactResponse)
def get_contact(
    request: Request,
    contact_id: int,
    current_user: User = Depends(get_current_user),
) -> ContactResponse:
    contact = _store(request).get_contact(contact_id, current_user.id)
    if contact is None:
        raise _not_found(contact_id)
    return ContactResponse.from_contact(contact)


@router.patch("/contacts/{contact_id}", response_model=ContactResponse)
def patch_contact(
    request: Request,
    contact_id: int,
    body: ContactPatch,
    current_user: User = Depends(get_current_user),
) -> ContactResponse:
    fields = body.model_dump(exclude_unset=True, mode="json")
    result = _store(request).update_contact(contact_id, current_user.id, fields)
    if result is None:
        raise _not_found(contact_id)
    contact, _is_new = result
    return ContactResponse.from_contact(contact)


@router.put("/contacts/{contact_id}", response_model=ContactResponse)
def upsert_contact(
    request: Request,
    contact_id: int,
    body: ContactCreate,
    current_user: User = Depends(get_current_user),
) -> JSONResponse:
    """Replace a contact, or create it when the id is unknown (201).

    A created contact gets a store-assigned id; clients should read it from
    the response rather than assume contact_id was honoured.
    """
    fields = body.model_dump(mode="json")
    contact, is_new = _store(request).update_contact(contact_id, current_user.id, fields, upsert=True)
    return JSONResponse(
        status_code=201 if is_new else 200,
        content=ContactResponse.from_contact(contact).model_dump(),
    )


@router.delete("/contacts/{contact_id}", status_code=204)
def delete_contact(
    request: Request,
    contact_id: int,
    current_user: User = Depends(get_current_user),
) -> Response:
    if _store(request).delete_contact(contact_id, current_user.id) is None:
        raise _not_found(contact_id)
    return Response(status_code=204)
