import logging

import aiohttp

import config
from exceptions.payment import GatewayException
from models.order import GatewayOrderDTO


class PaymentGatewayClient:
    """
    Client for the gateway's orders API (Razorpay-compatible).

    Built once at application startup, shared through app.state and closed on
    shutdown. The underlying aiohttp.ClientSession is created lazily on the
    first request so the client can be constructed outside a running loop.
    """

    def __init__(self,
                 api_url: str = config.PAYMENT_GATEWAY_API_URL,
                 key_id: str = config.PAYMENT_GATEWAY_KEY_ID,
                 key_secret: str = config.PAYMENT_GATEWAY_KEY_SECRET,
                 timeout_seconds: int = config.PAYMENT_GATEWAY_TIMEOUT_SECONDS):
        self.api_url = api_url.rstrip("/")
        self.key_id = key_id
        self.key_secret = key_secret
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                auth=aiohttp.BasicAuth(self.key_id, self.key_secret),
                timeout=self.timeout
            )
        return self._session

    async def create_order(self, amount: int, currency: str, receipt: str) -> GatewayOrderDTO:
        """
        Create a payment intent on the gateway.

        Args:
            amount: Amount in minor currency units
            currency: ISO currency code, e.g. INR
            receipt: Merchant reference shown on the gateway dashboard

        Raises:
            GatewayException: Network failure, timeout or non-2xx response
        """
        payload = {"amount": amount, "currency": currency, "receipt": receipt}
        try:
            async with self._get_session().post(f"{self.api_url}/orders", json=payload) as response:
                if response.status >= 400:
                    body = await response.text()
                    logging.error(f"❌ Gateway rejected order creation: HTTP {response.status} {body[:200]}")
                    raise GatewayException(f"Gateway responded with HTTP {response.status}", response.status)
                data = await response.json()
        except aiohttp.ClientError as e:
            logging.error(f"❌ Gateway request failed: {e}")
            raise GatewayException(str(e)) from e
        except TimeoutError as e:
            logging.error(f"❌ Gateway request timed out after {self.timeout.total}s")
            raise GatewayException("Gateway request timed out") from e

        gateway_order = GatewayOrderDTO.model_validate(data)
        logging.info(f"💳 Gateway order {gateway_order.id} created ({amount} {currency}, receipt {receipt})")
        return gateway_order

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
