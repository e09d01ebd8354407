"""
Mutation Engine - reversal-aware deletion, account provisioning, gated pipeline.
"""

from opsconsole.engines.mutation.delivery_reversal import (
    DeletionResult,
    DeliveryNoteReversalEngine,
    ReversalAborted,
)
from opsconsole.engines.mutation.account_provisioning import (
    AccountProvisioningEngine,
    ProvisionAccountRequest,
    ProvisioningResult,
)
from opsconsole.engines.mutation.pipeline import (
    ENTITY_DELIVERY_NOTE,
    ENTITY_USER,
    MutationPipeline,
)

__all__ = [
    "DeletionResult",
    "DeliveryNoteReversalEngine",
    "ReversalAborted",
    "AccountProvisioningEngine",
    "ProvisionAccountRequest",
    "ProvisioningResult",
    "ENTITY_DELIVERY_NOTE",
    "ENTITY_USER",
    "MutationPipeline",
]
