"""Account service HTTP client"""

import logging

import httpx

from debit_gateway.config import settings
from debit_gateway.domain.exceptions import AccountNotFoundError, UpstreamServiceError
from debit_gateway.domain.interfaces import AccountGateway
from debit_gateway.domain.models import Account
from debit_gateway.infrastructure.clients.http import raise_for_upstream_status
from debit_gateway.infrastructure.resilience import ResilientCaller

logger = logging.getLogger(__name__)

SERVICE_NAME = "account-service"


class AccountClient(AccountGateway):
    """Client for the external account service"""

    def __init__(
        self,
        caller: ResilientCaller,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.caller = caller
        self.base_url = base_url or settings.account_service_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def get_account(self, account_id: str) -> Account:
        return await self.caller.call(lambda: self._fetch_account(account_id))

    async def _fetch_account(self, account_id: str) -> Account:
        logger.debug("Calling account service", extra={"account_id": account_id})
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self.transport
        ) as client:
            response = await client.get(f"/api/accounts/{account_id}")

        if response.status_code == 404:
            raise AccountNotFoundError(account_id)
        raise_for_upstream_status(response, SERVICE_NAME)

        try:
            data = response.json()
            # A missing or null flag means the account is not usable
            return Account(id=str(data["id"]), active=data.get("active") is True)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise UpstreamServiceError(f"Invalid account data from {SERVICE_NAME}: {e}") from e
