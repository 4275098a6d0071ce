"""Domain errors for the territory engine.

All exceptions inherit from TerritoryError. Transient conflicts carry
``retryable = True``; permanent rejections carry ``retryable = False``.
"""

from territory.domain.errors.conflict import (
    AgentAlreadyHasTerritoryError,
    AlreadyOwnedError,
    ConcurrentModificationError,
    TransientConflictError,
)
from territory.domain.errors.exhausted import ExhaustedError
from territory.domain.errors.not_found import (
    AgentNotFoundError,
    NoEligibleResourceError,
    NotFoundError,
    ResourceNotAssignedError,
    ResourceNotFoundError,
)
from territory.domain.errors.registration import AgentAlreadyExistsError
from territory.domain.errors.rejection import (
    AgentRecoveredError,
    AgentVoidedError,
    AlreadyVoidedError,
    PermanentRejectionError,
    ReservedResourceError,
)

__all__: list[str] = [
    "AgentAlreadyExistsError",
    "AgentAlreadyHasTerritoryError",
    "AgentNotFoundError",
    "AgentRecoveredError",
    "AgentVoidedError",
    "AlreadyOwnedError",
    "AlreadyVoidedError",
    "ConcurrentModificationError",
    "ExhaustedError",
    "NoEligibleResourceError",
    "NotFoundError",
    "PermanentRejectionError",
    "ReservedResourceError",
    "ResourceNotAssignedError",
    "ResourceNotFoundError",
    "TransientConflictError",
]
