# =============================================================================
# core/errors.py  —  Error taxonomy for every Brinqa call
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Defines the six failure classes a tool call can end in.  Core code RAISES
#   these; core/operations.py CATCHES them at the call boundary and turns
#   them into a failed Result ("Error: <message>").
#
#   ConfigurationError   no usable credentials / bad settings
#   AuthenticationError  login failed, or still 401 after one re-login
#   ValidationError      unsafe or malformed caller input (no network call)
#   RemoteQueryError     the service ran the query but reported errors
#   EmptyResultError     2xx response without a payload
#   NetworkError         transport failure or non-401 HTTP failure
#
# Only the 401 path is retried (once, in core/executor.py).  Everything else
# propagates to the caller immediately.
# =============================================================================


class BrinqaError(Exception):
    """Base class for every classified failure of a Brinqa call."""


class ConfigurationError(BrinqaError):
    """No usable auth source, or a setting could not be parsed."""


class AuthenticationError(BrinqaError):
    """The login exchange failed, or a retried call was still unauthorized."""


class ValidationError(BrinqaError):
    """Caller input was rejected before any network call was made."""


class RemoteQueryError(BrinqaError):
    """The service executed the request but reported logical errors inline."""


class EmptyResultError(BrinqaError):
    """A successful response carried no payload."""


class NetworkError(BrinqaError):
    """Transport-level failure: DNS, timeout, connection, non-401 HTTP status."""
