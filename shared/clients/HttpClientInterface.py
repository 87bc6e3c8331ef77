from abc import abstractmethod

import httpx
from httpx._types import QueryParamTypes, RequestContent

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class HttpClientInterface(ClientInterface):
    """Base for clients whose backend is reached over a REST API."""

    def __init__(self, helper_config: HelperConfig):
        self._client: httpx.AsyncClient | None = None
        super().__init__(helper_config=helper_config)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """
        Returns:
            dict: Headers carrying the backend credentials; empty when none are configured.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        """
        Returns:
            str: Scheme, host and port of the backend, e.g. "http://localhost:9200"
        """
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        """
        Returns:
            str: Path answering 2xx while the backend is usable, e.g. "/_cluster/health"
        """
        pass

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Open the shared HTTP client.

        Args:
            transport (httpx.AsyncBaseTransport | None): Replaces the network transport, e.g. with httpx.MockTransport.
        """
        self._client = httpx.AsyncClient(base_url=self._get_base_url(), timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def do_healthcheck(self) -> bool:
        response = await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck())
        return response.is_success

    async def do_request(
        self,
        method: str = "GET",
        endpoint: str = "",
        json: dict | None = None,
        content: RequestContent | None = None,
        params: QueryParamTypes | None = None,
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send one request to the backend.

        Args:
            method: HTTP verb.
            endpoint: Path below the base URL.
            json: JSON body. Takes precedence over content.
            content: Raw body; set its Content-Type through additional_headers.
            params: URL query parameters.
            additional_headers: Headers merged over the auth header.
            raise_on_error: Raise when the backend answers with a status >= 300.

        Returns:
            httpx.Response: The backend's answer.

        Raises:
            RuntimeError: If boot() has not been awaited.
            httpx.HTTPError: If the transport fails.
            httpx.HTTPStatusError: If raise_on_error is set and the status is >= 300.
        """
        if self._client is None:
            raise RuntimeError("HTTP client not initialised. Call boot() before making requests.")

        headers = {**self._get_auth_header(), **(additional_headers or {})}
        body: dict = {"json": json} if json is not None else {"content": content}
        path = "/" + endpoint.strip().lstrip("/")
        response = await self._client.request(method, path, headers=headers, params=params, **body)

        if raise_on_error and response.status_code >= 300:
            self.logging.error("%s %s answered %d: %s", method, path, response.status_code, response.text[:500])
            raise httpx.HTTPStatusError(
                f"{method} {path} failed with status {response.status_code}",
                request=response.request,
                response=response,
            )
        return response
