"""HTTP client for the external payment gateway's order API."""
from typing import Protocol
import logging

import httpx

from utils.config import Settings
from utils.errors import GatewayUnavailableError, UpstreamFailureError

logger = logging.getLogger(__name__)


class PaymentGateway(Protocol):
    def create_order(self, amount_minor: int, currency: str, receipt: str) -> dict:
        """Registers a payment-collection request and returns the gateway's order record."""
        ...


class HttpPaymentGateway:
    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None):
        self._settings = settings
        self._transport = transport

    @property
    def configured(self) -> bool:
        return self._settings.gateway_configured

    def create_order(self, amount_minor: int, currency: str, receipt: str) -> dict:
        if not self.configured:
            raise GatewayUnavailableError()
        logger.info(f"Creating gateway order for receipt {receipt}, amount {amount_minor} {currency}")
        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "payment_capture": 1,
        }
        try:
            with httpx.Client(
                base_url=self._settings.gateway_base_url,
                auth=(self._settings.gateway_key_id, self._settings.gateway_key_secret),
                timeout=self._settings.gateway_timeout,
                transport=self._transport,
            ) as client:
                response = client.post("/orders", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Gateway rejected order for receipt {receipt}: {e.response.status_code} {e.response.text}")
            raise UpstreamFailureError("Failed to create payment order") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Gateway call failed for receipt {receipt}: {e}", exc_info=True)
            raise UpstreamFailureError("Failed to create payment order") from e

        if "id" not in data:
            logger.error(f"Gateway response for receipt {receipt} has no order id")
            raise UpstreamFailureError("Failed to create payment order")
        logger.info(f"Gateway order {data['id']} created for receipt {receipt}")
        return data
