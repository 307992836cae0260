"""Professionals Adapter.

CRUD access to the clinic's professionals (staff), scoped to the signed-in
user. Every operation recovers from its own failures: callers only see the
return value (empty list, None or False on failure) and the notifications
raised through the NotifierPort.
"""

import logging
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from clinicdesk.domain.auth import AuthContext, AuthUser
from clinicdesk.domain.models import Professional, ProfessionalData, ProfessionalUpdate
from clinicdesk.domain.operations import OperationTracker
from clinicdesk.domain.ports import (
    ClinicDataError,
    DataStorePort,
    Notification,
    NotifierPort,
    Query,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)

TABLE = "professionals"

# Columns callers may never set through create/update
PROTECTED_COLUMNS = ("id", "user_id")

LIST_FAILED = ("Erro ao carregar profissionais", "Não foi possível carregar a lista de profissionais")
GET_FAILED = ("Erro ao carregar profissional", "Não foi possível carregar os dados do profissional")
CREATE_FAILED = ("Erro ao cadastrar profissional", "Não foi possível cadastrar o profissional")
UPDATE_FAILED = ("Erro ao atualizar profissional", "Não foi possível atualizar os dados do profissional")
DELETE_FAILED = ("Erro ao remover profissional", "Não foi possível remover o profissional")

CREATED_TITLE = "Profissional cadastrado com sucesso!"
UPDATED_TITLE = "Profissional atualizado com sucesso!"
DELETED_TITLE = "Profissional removido com sucesso"
DELETED_DESCRIPTION = "O profissional foi removido do sistema."

RECOVERABLE_ERRORS = (ClinicDataError, PydanticValidationError)


class ProfessionalsAdapter:
    """Owner-scoped CRUD over the `professionals` collection.

    Parameters:
        store: Data store port
        auth: Authentication context supplying the current user
        notifier: Destination of success and failure notifications

    Example Usage:
        ```python
        adapter = ProfessionalsAdapter(store, auth, notifier)
        created = await adapter.create(ProfessionalData(name="Dra. Ana", ...))
        if created:
            await adapter.update(created.id, ProfessionalUpdate(phone="11 99999-0000"))
        ```
    """

    def __init__(self, store: DataStorePort, auth: AuthContext, notifier: NotifierPort):
        self.store = store
        self.auth = auth
        self.notifier = notifier
        self.operations = OperationTracker()

    @property
    def loading(self) -> bool:
        """True while at least one operation is in flight."""
        return self.operations.loading

    def _require_user(self) -> AuthUser:
        user = self.auth.user
        if user is None:
            raise UnauthenticatedError()
        return user

    def _notify_failure(self, messages: tuple[str, str], error: Exception) -> None:
        title, fallback = messages
        description = str(error) if isinstance(error, ClinicDataError) and str(error) else fallback
        self.notifier.notify(Notification(title=title, description=description, variant="destructive"))

    def _owned(self, professional_id: str, user: AuthUser) -> Query:
        return Query(TABLE).eq("id", professional_id).eq("user_id", user.id)

    async def list(self) -> list[Professional]:
        """Return the user's professionals ordered by name.

        Returns an empty list without notifying while authentication is
        still resolving or when nobody is signed in.
        """
        async with self.operations.track("list") as op:
            state = self.auth.state
            if state.loading:
                logger.info("Waiting for authentication before loading professionals")
                return []
            if state.user is None:
                logger.info("No authenticated user; skipping professionals lookup")
                return []

            try:
                logger.info(f"Loading professionals for user {state.user.id}")
                query = Query(TABLE).eq("user_id", state.user.id).order("nome")
                rows = (await self.store.fetch(query)).unwrap("fetch")
                professionals = [Professional.model_validate(row) for row in rows]
                logger.info(f"Loaded {len(professionals)} professionals")
                return professionals
            except RECOVERABLE_ERRORS as e:
                op.mark_failed(str(e))
                logger.error(f"Failed to load professionals: {str(e)}")
                if self.auth.user is not None:
                    self._notify_failure(LIST_FAILED, e)
                return []

    async def get_by_id(self, professional_id: str) -> Optional[Professional]:
        """Return the professional with this id if the current user owns it."""
        async with self.operations.track("get_by_id") as op:
            try:
                user = self._require_user()
                row = (await self.store.fetch_one(self._owned(professional_id, user))).unwrap("fetch_one")
                return Professional.model_validate(row)
            except RECOVERABLE_ERRORS as e:
                op.mark_failed(str(e))
                logger.error(f"Failed to load professional {professional_id}: {str(e)}")
                self._notify_failure(GET_FAILED, e)
                return None

    async def create(self, data: Union[ProfessionalData, dict]) -> Optional[Professional]:
        """Insert a professional owned by the current user.

        Parameters:
            data: Professional fields (any id or user_id in it is ignored)

        Returns:
            Optional[Professional]: Stored record, or None on failure
        """
        async with self.operations.track("create") as op:
            try:
                user = self._require_user()
                if not isinstance(data, ProfessionalData):
                    data = ProfessionalData.model_validate(data)

                row = data.to_row()
                for column in PROTECTED_COLUMNS:
                    row.pop(column, None)
                row["user_id"] = user.id

                logger.info(f"Creating professional '{data.name}'")
                stored = (await self.store.insert(TABLE, row)).unwrap("insert")
                professional = Professional.model_validate(stored)
                logger.info(f"Professional created with id {professional.id}")

                self.notifier.notify(Notification(
                    title=CREATED_TITLE,
                    description=f"{data.name} foi adicionado ao sistema.",
                ))
                return professional
            except RECOVERABLE_ERRORS as e:
                op.mark_failed(str(e))
                logger.error(f"Failed to create professional: {str(e)}")
                self._notify_failure(CREATE_FAILED, e)
                return None

    async def update(
        self,
        professional_id: str,
        changes: Union[ProfessionalUpdate, dict],
    ) -> Optional[Professional]:
        """Apply a partial update to a professional owned by the current user.

        Only fields explicitly present in `changes` are written.
        """
        async with self.operations.track("update") as op:
            try:
                user = self._require_user()
                if not isinstance(changes, ProfessionalUpdate):
                    changes = ProfessionalUpdate.model_validate(changes)

                values = changes.to_row()
                for column in PROTECTED_COLUMNS:
                    values.pop(column, None)

                logger.info(f"Updating professional {professional_id}: {sorted(values)}")
                stored = (await self.store.update(self._owned(professional_id, user), values)).unwrap("update")
                professional = Professional.model_validate(stored)

                self.notifier.notify(Notification(
                    title=UPDATED_TITLE,
                    description=f"Os dados de {professional.name} foram atualizados.",
                ))
                return professional
            except RECOVERABLE_ERRORS as e:
                op.mark_failed(str(e))
                logger.error(f"Failed to update professional {professional_id}: {str(e)}")
                self._notify_failure(UPDATE_FAILED, e)
                return None

    async def delete(self, professional_id: str) -> bool:
        """Delete a professional owned by the current user."""
        async with self.operations.track("delete") as op:
            try:
                user = self._require_user()
                logger.info(f"Deleting professional {professional_id}")
                (await self.store.delete(self._owned(professional_id, user))).unwrap("delete")

                self.notifier.notify(Notification(title=DELETED_TITLE, description=DELETED_DESCRIPTION))
                return True
            except RECOVERABLE_ERRORS as e:
                op.mark_failed(str(e))
                logger.error(f"Failed to delete professional {professional_id}: {str(e)}")
                self._notify_failure(DELETE_FAILED, e)
                return False
