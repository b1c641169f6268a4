"""
Authorization - Capability set of privileged principals.

Privileged operations (starting and terminating auctions, modifying
parameters, managing authorizations) require the caller to be a member
of the set. Membership changes are reported as events.
"""

from typing import List, Set

from cdpauction.core.errors import UnauthorizedError
from cdpauction.core.events import AuthorizationGranted, AuthorizationRevoked
from cdpauction.crypto import short_address
from cdpauction.utils.logger import get_logger

logger = get_logger("auth")


class AuthorizationList:
    """
    Set of principals allowed to call privileged operations.
    """

    def __init__(self):
        self._accounts: Set[bytes] = set()

    def is_authorized(self, account: bytes) -> bool:
        return account in self._accounts

    def require(self, caller: bytes) -> None:
        """
        Raise unless the caller is authorized.

        Raises:
            UnauthorizedError: Caller is not in the set
        """
        if caller not in self._accounts:
            raise UnauthorizedError(
                f"account-not-authorized: {short_address(caller)}..."
            )

    def grant(self, account: bytes) -> AuthorizationGranted:
        self._accounts.add(account)
        logger.debug(f"Authorization granted: {short_address(account)}...")
        return AuthorizationGranted(account=account)

    def revoke(self, account: bytes) -> AuthorizationRevoked:
        self._accounts.discard(account)
        logger.debug(f"Authorization revoked: {short_address(account)}...")
        return AuthorizationRevoked(account=account)

    def swap(self, old: bytes, new: bytes) -> List[object]:
        """
        Revoke ``old`` and grant ``new`` as one step.

        Returns:
            The revocation and grant events, in that order
        """
        return [self.revoke(old), self.grant(new)]

    @property
    def accounts(self) -> Set[bytes]:
        return set(self._accounts)

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, account: bytes) -> bool:
        return account in self._accounts
