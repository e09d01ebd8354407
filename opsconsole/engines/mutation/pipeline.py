"""
Authorization-gated mutation pipeline.

Every privileged mutation runs the same sequence:

    authorize -> mutate (with compensation) -> audit -> report

Authorization is resolved fresh per call. Exactly one audit record is
written per attempt, whether it was denied, failed, partially applied or
succeeded. Audit failures never change the mutation's own result.
"""

import uuid
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar, Union

from opsconsole.engines.mutation.account_provisioning import (
    AccountProvisioningEngine,
    ProvisionAccountRequest,
    ProvisioningResult,
)
from opsconsole.engines.mutation.delivery_reversal import (
    DeletionResult,
    DeliveryNoteReversalEngine,
)
from opsconsole.kernel.audit.audit_recorder import AuditRecorder
from opsconsole.kernel.errors import MutationError
from opsconsole.kernel.models.audit_log import AuditAction
from opsconsole.kernel.permissions.authorization import (
    AuthorizationChecker,
    MutationKind,
    Principal,
)
from opsconsole.logging_config import bind_actor, get_logger

logger = get_logger(__name__)

T = TypeVar("T")

ENTITY_DELIVERY_NOTE = "delivery_note"
ENTITY_USER = "user"


class MutationPipeline:
    """
    Runs privileged mutations behind the authorization checker and audit recorder.

    Usage:
        pipeline = MutationPipeline(checker, recorder, reversal_engine, provisioning_engine)
        result = await pipeline.delete_delivery_note(token, note_id)
    """

    def __init__(
        self,
        checker: AuthorizationChecker,
        recorder: AuditRecorder,
        reversal_engine: DeliveryNoteReversalEngine,
        provisioning_engine: AccountProvisioningEngine,
    ):
        self.checker = checker
        self.recorder = recorder
        self.reversal_engine = reversal_engine
        self.provisioning_engine = provisioning_engine

    async def delete_delivery_note(
        self,
        credential: Optional[str],
        note_id: uuid.UUID,
    ) -> DeletionResult:
        """Authorize, reverse-and-delete, audit."""
        return await self._run(
            credential=credential,
            kind=MutationKind.DELETE_DELIVERY_NOTE,
            action=AuditAction.DELETE,
            entity_type=ENTITY_DELIVERY_NOTE,
            entity_id=note_id,
            company_id=None,
            request_details={},
            operation=lambda principal: self.reversal_engine.delete_with_reversal(note_id),
            result_entity_id=lambda result: result.delivery_note_id,
            result_company_id=lambda result: result.company_id,
            result_details=lambda result: result.audit_details(),
        )

    async def provision_account(
        self,
        credential: Optional[str],
        request: ProvisionAccountRequest,
    ) -> ProvisioningResult:
        """Authorize, create identity and profile, audit."""
        return await self._run(
            credential=credential,
            kind=MutationKind.PROVISION_ACCOUNT,
            action=AuditAction.CREATE,
            entity_type=ENTITY_USER,
            entity_id=None,
            company_id=request.company_id,
            request_details=request.audit_details(),
            operation=lambda principal: self.provisioning_engine.provision(request),
            result_entity_id=lambda result: result.user_id,
            result_company_id=lambda result: result.profile.company_id,
            result_details=lambda result: result.audit_details(),
        )

    async def _run(
        self,
        *,
        credential: Optional[str],
        kind: MutationKind,
        action: AuditAction,
        entity_type: str,
        entity_id: Optional[Union[uuid.UUID, str]],
        company_id: Optional[str],
        request_details: Dict[str, Any],
        operation: Callable[[Principal], Awaitable[T]],
        result_entity_id: Callable[[T], Union[uuid.UUID, str]],
        result_company_id: Callable[[T], Optional[str]],
        result_details: Callable[[T], Dict[str, Any]],
    ) -> T:
        decision = await self.checker.authorize_mutation(credential, kind)
        if not decision.allowed:
            denial = decision.denial_error()
            logger.warning(
                "Privileged mutation denied",
                extra={"mutation": kind.value, "reason": denial.kind.value},
            )
            await self.recorder.record_error(
                decision.principal, action, entity_type, entity_id, denial,
                company_id=company_id or _company_of(decision.principal),
                details=request_details,
            )
            raise denial

        principal = decision.raise_for_denial()
        scope = company_id or principal.company_id

        with bind_actor(str(principal.user_id)):
            try:
                result = await operation(principal)
            except MutationError as e:
                logger.warning(
                    "Privileged mutation failed",
                    extra={"mutation": kind.value, "error_kind": e.kind.value},
                )
                await self.recorder.record_error(
                    principal, action, entity_type,
                    e.details.get("identity_id", entity_id), e,
                    company_id=scope, details=request_details,
                )
                raise
            except Exception as e:
                logger.exception("Unexpected error during privileged mutation", extra={"mutation": kind.value})
                await self.recorder.record_error(
                    principal, action, entity_type, entity_id,
                    MutationError(f"Unexpected error: {e}"),
                    company_id=scope, details=request_details,
                )
                raise

            await self.recorder.record_success(
                principal, action, entity_type, result_entity_id(result),
                company_id=result_company_id(result) or scope,
                details={**request_details, **result_details(result)},
            )
        return result


def _company_of(principal: Optional[Principal]) -> Optional[str]:
    return principal.company_id if principal else None
