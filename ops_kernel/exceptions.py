"""
Typed Exception Hierarchy for the Operations Console Core.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Workflow callers (the UI layer) turn failures into user-visible messages.
Matching on message text is fragile, so every failure has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

Example:
    try:
        leave_service.act_on_leave(request_id, LeaveAction.APPROVE, actor)
    except InvalidTransitionError as e:
        return {"success": False, "message": f"Request is already {e.current_state}"}

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    OpsKernelError (base)
    |
    +-- ValidationError
    +-- NotFoundError
    |
    +-- WorkflowError
    |   +-- InvalidTransitionError
    |   +-- UnauthorizedActorError
    |
    +-- StoreError
    |   +-- MissingDocumentError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                      | When Raised
-------------|---------------------------|------------------------------------------
Validation   | VALIDATION_ERROR          | Malformed/missing fields, before any write
Lookup       | NOT_FOUND                 | Operation references an absent document
-------------|---------------------------|------------------------------------------
Workflow     | INVALID_TRANSITION        | Action not allowed from the current state
             | UNAUTHORIZED_ACTOR        | Actor holds none of the transition's roles
-------------|---------------------------|------------------------------------------
Store        | STORE_ERROR               | Batch commit failed, nothing persisted
             | MISSING_DOCUMENT          | Batch update targets a missing document
-------------|---------------------------|------------------------------------------
Concurrency  | OPTIMISTIC_LOCK_CONFLICT  | Document version changed since it was read
-------------|---------------------------|------------------------------------------
Config       | CONFIG_ERROR              | Configuration file malformed

Negative stock and over-drawn leave balances are NOT errors.  They are
tolerated and reported through warning logs.

===============================================================================
PROPAGATION
===============================================================================

Workflow services never swallow StoreError or ConcurrencyError.  A failed
batch is a full no-op; no retries are attempted anywhere in the core.
"""


class OpsKernelError(Exception):
    """
    Base exception for all operations console errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "OPS_KERNEL_ERROR"


class ValidationError(OpsKernelError):
    """Malformed or missing required fields; raised before any store write."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, entity_type: str, errors: list[str]):
        self.entity_type = entity_type
        self.errors = errors
        super().__init__(
            f"Invalid {entity_type}: " + "; ".join(errors)
        )


class NotFoundError(OpsKernelError):
    """Operation referenced a document that does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection} document not found: {doc_id}")


# Workflow-related exceptions


class WorkflowError(OpsKernelError):
    """Base exception for state machine errors."""

    code: str = "WORKFLOW_ERROR"


class InvalidTransitionError(WorkflowError):
    """No transition exists from the current state for the requested action."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, workflow: str, entity_id: str, current_state: str, action: str):
        self.workflow = workflow
        self.entity_id = entity_id
        self.current_state = current_state
        self.action = action
        super().__init__(
            f"No transition from '{current_state}' via action '{action}' "
            f"in workflow '{workflow}' (entity {entity_id})"
        )


class UnauthorizedActorError(WorkflowError):
    """Actor holds none of the roles allowed to fire the transition."""

    code: str = "UNAUTHORIZED_ACTOR"

    def __init__(self, actor_id: str, action: str, required_roles: tuple[str, ...]):
        self.actor_id = actor_id
        self.action = action
        self.required_roles = required_roles
        super().__init__(
            f"Actor {actor_id} may not perform '{action}' "
            f"(requires one of: {', '.join(required_roles)})"
        )


# Store-related exceptions


class StoreError(OpsKernelError):
    """
    A batch commit failed.

    Because every mutating operation is a single atomic batch, a StoreError
    guarantees that no partial state change was persisted.
    """

    code: str = "STORE_ERROR"

    def __init__(self, message: str, operation_count: int = 0):
        self.operation_count = operation_count
        super().__init__(message)


class MissingDocumentError(StoreError):
    """A batch update or delete targeted a document that does not exist."""

    code: str = "MISSING_DOCUMENT"

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Cannot update missing document {collection}/{doc_id}")


# Concurrency-related exceptions


class ConcurrencyError(OpsKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(
        self,
        collection: str,
        doc_id: str,
        expected_version: int,
        actual_version: int | None,
    ):
        self.collection = collection
        self.doc_id = doc_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Optimistic lock conflict on {collection}/{doc_id}: "
            f"expected version {expected_version}, found {actual_version}"
        )


class ConfigError(OpsKernelError):
    """Configuration could not be parsed into the typed schema."""

    code: str = "CONFIG_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in {source}: {reason}")
