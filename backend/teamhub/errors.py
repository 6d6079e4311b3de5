import logging
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Type

from fastapi import status

from teamhub.db.store import StoreError

logger = logging.getLogger(__name__)


class TeamError(Exception):
    """Base for every domain outcome the engine reports to its callers.

    Subclasses fix `code`, `message` and `status_code`; the request surface
    renders exactly these and nothing from the underlying cause.
    """

    code = "team_error"
    message = "Team operation failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(TeamError):
    code = "validation_error"
    message = "Invalid input"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidRole(ValidationError):
    code = "invalid_role"
    message = "Unknown team role"


class UnknownTier(ValidationError):
    code = "unknown_tier"
    message = "Unknown subscription tier"


class NotFound(TeamError):
    code = "not_found"
    message = "Not found"
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(TeamError):
    code = "forbidden"
    message = "You do not have permission to perform this action"
    status_code = status.HTTP_403_FORBIDDEN


class Conflict(TeamError):
    code = "conflict"
    message = "Operation conflicts with the current team state"
    status_code = status.HTTP_400_BAD_REQUEST


class AlreadyInvited(Conflict):
    code = "already_invited"
    message = "This email already has a pending invitation to the team"


class AlreadyMember(Conflict):
    code = "already_member"
    message = "User is already a member of this team"


class LastOwnerProtected(Conflict):
    code = "last_owner_protected"
    message = "Cannot remove or demote the last owner of a team"


class PersonalTeamProtected(Conflict):
    code = "personal_team_protected"
    message = "Personal teams cannot be deleted or shared"


class MemberLimitExceeded(Conflict):
    code = "member_limit_exceeded"
    message = "Team has reached the maximum number of members for its tier"


class SlugTaken(Conflict):
    code = "slug_taken"
    message = "A team with this slug already exists"


class Unavailable(TeamError):
    code = "unavailable"
    message = "Team storage is currently unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


@contextmanager
def translate_store_errors(
    mapping: Optional[Dict[Type[StoreError], Type[TeamError]]] = None,
) -> Iterator[None]:
    """Map store-level violations onto domain errors.

    Store errors missing from `mapping` become `Unavailable`.
    """
    try:
        yield
    except StoreError as e:
        for store_error, team_error in (mapping or {}).items():
            if isinstance(e, store_error):
                logger.warning(f"Store rejected operation: {e}")
                raise team_error() from e
        logger.exception(f"Unhandled store failure: {e}")
        raise Unavailable() from e
