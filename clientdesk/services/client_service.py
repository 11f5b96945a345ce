# clientdesk/services/client_service.py
"""
Client service layer: listing reads and record mutations on SQLModel.
Store failures surface as PersistenceError carrying the store's message.
"""
import logging
from typing import List, Optional

from fastapi import Request
from sqlalchemy.exc import MultipleResultsFound, NoResultFound, SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.audit import log_action
from ..core.constants import AuditAction
from ..core.errors import MultipleRecordsError, PersistenceError, RecordNotFoundError
from ..core.sessions import Principal
from ..models.client import Client, ClientStatus
from ..schemas.client import ClientForm, ClientQueryParams, ClientRow
from .query_builder import build_client_query, to_select

logger = logging.getLogger(__name__)


def store_message(exc: SQLAlchemyError) -> str:
    """The driver's message when there is one, else SQLAlchemy's."""
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


class ClientService:
    """
    Service layer for Client records.

    The principal is passed in explicitly and recorded in the audit log for
    every mutation.
    """

    def __init__(
        self,
        session: AsyncSession,
        principal: Optional[Principal] = None,
        request: Optional[Request] = None,
    ):
        self.session = session
        self.principal = principal
        self.request = request

    async def _persistence_error(self, operation: str, exc: SQLAlchemyError) -> PersistenceError:
        await self.session.rollback()
        message = store_message(exc)
        logger.error(f"Database error while {operation}: {message}")
        return PersistenceError(message)

    # --- Reads ---

    async def list_clients(self, params: ClientQueryParams) -> List[ClientRow]:
        """
        Clients matching every active filter, in the requested order, each
        with its status name (None when the client has no status).

        Raises:
            InvalidQueryError: unknown sort column or bad status selector.
            PersistenceError: the store failed.
        """
        statement = to_select(build_client_query(params))
        try:
            rows = (await self.session.exec(statement)).all()
        except SQLAlchemyError as e:
            raise await self._persistence_error("listing clients", e)
        return [ClientRow.model_validate(dict(row._mapping)) for row in rows]

    async def list_statuses(self) -> List[ClientStatus]:
        """All statuses ordered by id, for filter and form choices."""
        statement = select(ClientStatus).order_by(ClientStatus.id)
        try:
            return list((await self.session.exec(statement)).all())
        except SQLAlchemyError as e:
            raise await self._persistence_error("listing statuses", e)

    async def get_client(self, client_id: int) -> Client:
        """Exactly one client by id."""
        statement = select(Client).where(Client.id == client_id)
        try:
            return (await self.session.exec(statement)).one()
        except NoResultFound:
            raise RecordNotFoundError(f"Client {client_id} not found.")
        except MultipleResultsFound:
            raise MultipleRecordsError(f"More than one client matches id {client_id}.")
        except SQLAlchemyError as e:
            raise await self._persistence_error(f"reading client {client_id}", e)

    # --- Mutations ---

    async def create_client(self, form: ClientForm) -> Client:
        new_client = Client(
            full_name=form.full_name,
            phone_number=form.phone_number,
            status_id=form.status_id,
        )
        try:
            self.session.add(new_client)
            await self.session.commit()
            await self.session.refresh(new_client)
        except SQLAlchemyError as e:
            raise await self._persistence_error("creating client", e)

        log_action(
            AuditAction.CREATE, "client", str(new_client.id),
            principal=self.principal, request=self.request,
        )
        return new_client

    async def update_client(self, client_id: int, form: ClientForm) -> Client:
        """
        Replace name, phone and status of one client.

        Raises:
            RecordNotFoundError: no client has this id.
        """
        try:
            client = await self.session.get(Client, client_id)
        except SQLAlchemyError as e:
            raise await self._persistence_error(f"reading client {client_id}", e)
        if client is None:
            raise RecordNotFoundError(f"Client {client_id} not found.")

        client.full_name = form.full_name
        client.phone_number = form.phone_number
        client.status_id = form.status_id
        try:
            self.session.add(client)
            await self.session.commit()
            await self.session.refresh(client)
        except SQLAlchemyError as e:
            raise await self._persistence_error(f"updating client {client_id}", e)

        log_action(
            AuditAction.UPDATE, "client", str(client_id),
            principal=self.principal, request=self.request,
            details=form.model_dump(),
        )
        return client

    async def delete_client(self, client_id: int) -> None:
        """
        Raises:
            RecordNotFoundError: no client has this id.
        """
        try:
            client = await self.session.get(Client, client_id)
            if client is not None:
                await self.session.delete(client)
                await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._persistence_error(f"deleting client {client_id}", e)
        if client is None:
            raise RecordNotFoundError(f"Client {client_id} not found.")

        log_action(
            AuditAction.DELETE, "client", str(client_id),
            principal=self.principal, request=self.request,
        )
