"""Domain errors raised by ledger services.

Every failed operation surfaces as one of these. Routers never catch them;
the application-level handler in ``main`` renders them and the request's
unit of work is discarded, so a failed operation leaves no state behind.
"""

from __future__ import annotations

# purpose: single error taxonomy shared by identity, lots, certification and governance services
# status: active


class LedgerError(RuntimeError):
    """Base error for every rejected ledger operation."""

    status_code = 400

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def code(self) -> str:
        return type(self).__name__

    @property
    def default_message(self) -> str:
        return self.code


class AuthorizationError(LedgerError):
    status_code = 403


class NotFoundError(LedgerError):
    status_code = 404


class StateError(LedgerError):
    status_code = 409


class ResourceError(LedgerError):
    status_code = 400


# authorization


class InsufficientRole(AuthorizationError):
    """Caller (or named target) does not hold the required role."""


class YouAreNotMemberOfDao(AuthorizationError):
    """Caller is not a DAO member."""


class NotOwner(AuthorizationError):
    """Operation is reserved to the operation center owner."""


class YouDidntAcceptAnyRequestWithThisTokenId(AuthorizationError):
    """Caller is not the inspector who accepted the lot's request."""


class YouAreNotTheInspectorOfThisProposal(AuthorizationError):
    """Caller is not the inspector assigned to the proposal."""


# validation


class InvalidInput(LedgerError):
    """Registration profile fields are missing."""


class InvalidParameters(LedgerError):
    """Lot parameters must be non-zero and non-empty."""


# lookups


class TokenDoesNotExist(NotFoundError):
    """Lot is unknown or the caller holds none of it."""


class InspectionRequestNotFound(NotFoundError):
    """No open certification request exists for the lot."""


class ProposalDoesNotExist(NotFoundError):
    """No proposal has this index."""


# state


class AlreadyRegistered(StateError):
    """Account already holds a role."""


class CertificationRequestAlreadyAccepted(StateError):
    """An inspector already accepted the open request for this lot."""


class LotAlreadyCertified(StateError):
    """The lot carries a certification already."""


class ProposalAlreadyExecuted(StateError):
    pass


class DeadlineExceeded(StateError):
    pass


class DeadlineHasNotExceeded(StateError):
    pass


class YouHaveAlreadyVoted(StateError):
    pass


class ThisProtocolNotRequestedByThisProducer(StateError):
    pass


class InspectorAlreadyAssigned(StateError):
    pass


class InspectionAlreadyFinalized(StateError):
    """The outcome of a process inspection can only be recorded once."""


# resources


class NotEnoughToken(ResourceError):
    """Holder's lot balance is below the requested amount."""


class NotSufficientBalance(ResourceError):
    """Settlement-token balance is below the requested amount."""


class InsufficientAllowance(ResourceError):
    """Spender's settlement-token allowance is below the requested amount."""


# outcome


class ProposalDidntPass(LedgerError):
    """For-votes did not exceed against-votes, or the proposal was never executed."""
