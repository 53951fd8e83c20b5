"""
Domain exceptions raised by the store, catalog and ledger modules.

Route handlers translate these into JSON responses; anything not derived from
CampusHubError is treated as an internal error by the gateway.
"""


class CampusHubError(Exception):
    """Base exception for all CampusHub domain errors."""

    pass


class DuplicateEmailError(CampusHubError):
    """Raised when a principal with the same email already exists."""

    def __init__(self, kind: str, email: str):
        """
        Args:
            kind: "user" or "admin"; uniqueness is enforced per kind.
            email: The conflicting address.
        """
        self.kind = kind
        self.email = email
        super().__init__(f"{kind} with email '{email}' already exists")


class EventNotFoundError(CampusHubError):
    """Raised when an event id does not resolve to a stored event."""

    def __init__(self, event_id: int):
        self.event_id = event_id
        super().__init__(f"Event '{event_id}' not found")


class AlreadyRegisteredError(CampusHubError):
    """Raised when a (user, event) registration already exists."""

    def __init__(self, user_id: int, event_id: int):
        self.user_id = user_id
        self.event_id = event_id
        super().__init__(f"User '{user_id}' is already registered for event '{event_id}'")


class InvalidTokenError(CampusHubError):
    """Raised when a session token fails signature or format checks."""

    pass


class NotificationError(CampusHubError):
    """Raised by a mail transport when delivery fails."""

    pass
