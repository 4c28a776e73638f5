import urllib.parse

import aiohttp

from httpchain.http.client.content import ContentStream
from httpchain.http.client.request import Request
from httpchain.http.client.response import Response
from httpchain.settings import CLIENT_SETTINGS
from httpchain.util.blocking import blocking
from httpchain.util.logging import get_logger

log = get_logger(__name__)


class Client:
    """
    Dispatches `Request` objects over an aiohttp session and returns
    streaming `Response` objects.

    The body of a returned response is read lazily from the connection;
    the response must be consumed or closed before the client exits.

    Args:
        timeout: total timeout in seconds for each request
        headers: headers merged over the configured defaults
        proxies: mapping of hostname to proxy URL
        verify_ssl: verify TLS certificates
    """
    def __init__(
        self,
        timeout: float | None = None,
        *,
        headers: dict | None = None,
        proxies: dict | None = None,
        verify_ssl: bool | None = None,
    ):
        self._timeout = aiohttp.ClientTimeout(total=timeout or CLIENT_SETTINGS.timeout)
        self._headers = dict(CLIENT_SETTINGS.headers) | (headers or {})
        self._proxies = proxies or CLIENT_SETTINGS.proxies or {}
        self._verify_ssl = CLIENT_SETTINGS.verify_ssl if verify_ssl is None else verify_ssl

        self._session: aiohttp.ClientSession | None = None

    def build_session(self) -> aiohttp.ClientSession:
        # Need to build the connector as late as possible as it requires the loop
        connector = aiohttp.TCPConnector(ssl=self._verify_ssl)
        return aiohttp.ClientSession(
            headers=self._headers,
            timeout=self._timeout,
            connector=connector,
        )

    async def __aenter__(self):
        if self._session is None:
            self._session = self.build_session()
        return self

    async def __aexit__(self, *_):
        if self._session:
            await self._session.close()
            self._session = None

    def _proxy_for(self, url: str):
        host = urllib.parse.urlsplit(url).hostname
        return self._proxies.get(host)

    async def send(self, req: Request) -> Response:
        if self._session is None:
            raise RuntimeError("client is not open; use `async with Client() as client`")

        log.debug("dispatching", extra={"url": req.url, "method": req.method})
        timeout = aiohttp.ClientTimeout(total=req.timeout) if req.timeout else self._timeout
        resp = await self._session.request(
            req.method,
            req.url,
            headers=req.headers,
            data=req.body,
            proxy=self._proxy_for(req.url),
            timeout=timeout,
        )
        return Response(
            status=resp.status,
            content=ContentStream(resp.content, on_release=resp.release),
            headers=resp.headers,
            original_request=req,
            original_response=resp,
        )


async def fetch_async(req: Request, **client_kwargs) -> Response:
    """
    Dispatch a single request with a short-lived `Client`.

    The body is buffered before the session closes, so the returned response
    can be materialized (and re-read) after this call returns.
    """
    async with Client(**client_kwargs) as client:
        response = await client.send(req)
        try:
            await response.content.load_into_buffer()
        finally:
            await response.close()
    return response


fetch_blocking = blocking(fetch_async)
