import contextlib
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
from sqlmodel.ext.asyncio.session import AsyncSession

from ...core.errors import InvalidFormError, InvalidQueryError, PersistenceError
from ...core.guard import require_principal
from ...core.sessions import Principal
from ...core.templates import templates
from ...db.engine import get_session
from ...schemas.client import ClientForm, ClientQueryParams
from ...services.client_service import ClientService

router = APIRouter()


# --- Dependency Injectors ---
def get_client_service(
    request: Request,
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_principal),
) -> ClientService:
    return ClientService(session, principal=principal, request=request)


def get_query_params(
    search: Optional[str] = None,
    status: Optional[str] = None,
    phone: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> ClientQueryParams:
    return ClientQueryParams(
        search=search, status=status, phone=phone, sort_by=sort_by, sort_order=sort_order
    )


def _parse_form(full_name: str, phone_number: str, status_id: str) -> ClientForm:
    try:
        return ClientForm(full_name=full_name, phone_number=phone_number, status_id=status_id)
    except ValidationError as e:
        raise InvalidFormError(
            "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        )


def _back_to_list() -> RedirectResponse:
    return RedirectResponse(url="/clients", status_code=status.HTTP_303_SEE_OTHER)


# --- Client pages ---

@router.get("/clients", response_class=HTMLResponse, tags=["Clients"])
async def list_clients(
    request: Request,
    params: ClientQueryParams = Depends(get_query_params),
    service: ClientService = Depends(get_client_service),
    principal: Principal = Depends(require_principal),
):
    try:
        clients = await service.list_clients(params)
    except (InvalidQueryError, PersistenceError):
        # Status choices are read regardless; their own failure is logged by the service
        with contextlib.suppress(PersistenceError):
            await service.list_statuses()
        raise
    statuses = await service.list_statuses()
    return templates.TemplateResponse(
        request,
        "clients/index.html",
        {"clients": clients, "statuses": statuses, "params": params, "user": principal},
    )


@router.get("/clients/new", response_class=HTMLResponse, tags=["Clients"])
async def new_client_form(
    request: Request,
    service: ClientService = Depends(get_client_service),
    principal: Principal = Depends(require_principal),
):
    statuses = await service.list_statuses()
    return templates.TemplateResponse(
        request, "clients/new.html", {"statuses": statuses, "user": principal}
    )


@router.post("/clients", tags=["Clients"])
async def create_client(
    full_name: str = Form(...),
    phone_number: str = Form(""),
    status_id: str = Form(""),
    service: ClientService = Depends(get_client_service),
):
    form = _parse_form(full_name, phone_number, status_id)
    await service.create_client(form)
    return _back_to_list()


@router.get("/clients/{client_id}/edit", response_class=HTMLResponse, tags=["Clients"])
async def edit_client_form(
    request: Request,
    client_id: int,
    service: ClientService = Depends(get_client_service),
    principal: Principal = Depends(require_principal),
):
    client = await service.get_client(client_id)
    statuses = await service.list_statuses()
    return templates.TemplateResponse(
        request,
        "clients/edit.html",
        {"client": client, "statuses": statuses, "user": principal},
    )


@router.put("/clients/{client_id}", tags=["Clients"])
async def update_client(
    client_id: int,
    full_name: str = Form(...),
    phone_number: str = Form(""),
    status_id: str = Form(""),
    service: ClientService = Depends(get_client_service),
):
    form = _parse_form(full_name, phone_number, status_id)
    await service.update_client(client_id, form)
    return _back_to_list()


@router.delete("/clients/{client_id}", tags=["Clients"])
async def delete_client(
    client_id: int,
    service: ClientService = Depends(get_client_service),
):
    await service.delete_client(client_id)
    return _back_to_list()
