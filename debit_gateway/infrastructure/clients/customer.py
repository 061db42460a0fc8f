"""Customer service HTTP client"""

import logging

import httpx

from debit_gateway.config import settings
from debit_gateway.domain.exceptions import CustomerNotFoundError, UpstreamServiceError
from debit_gateway.domain.interfaces import CustomerGateway
from debit_gateway.domain.models import Customer
from debit_gateway.infrastructure.clients.http import raise_for_upstream_status
from debit_gateway.infrastructure.resilience import ResilientCaller

logger = logging.getLogger(__name__)

SERVICE_NAME = "customer-service"


class CustomerClient(CustomerGateway):
    """Client for the external customer service"""

    def __init__(
        self,
        caller: ResilientCaller,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.caller = caller
        self.base_url = base_url or settings.customer_service_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def get_customer(self, customer_id: str) -> Customer:
        """
        Fetch a customer by id.

        Raises:
            CustomerNotFoundError: On 404
            ServiceUnavailableError: On timeout, 5xx or invalid response once
                retries are exhausted, or while the circuit is open
        """
        return await self.caller.call(lambda: self._fetch_customer(customer_id))

    async def _fetch_customer(self, customer_id: str) -> Customer:
        logger.debug("Calling customer service", extra={"customer_id": customer_id})
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self.transport
        ) as client:
            response = await client.get(f"/api/customers/{customer_id}")

        if response.status_code == 404:
            raise CustomerNotFoundError(customer_id)
        raise_for_upstream_status(response, SERVICE_NAME)

        try:
            data = response.json()
            return Customer(id=str(data["id"]), active=data.get("active") is True)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise UpstreamServiceError(f"Invalid customer data from {SERVICE_NAME}: {e}") from e
