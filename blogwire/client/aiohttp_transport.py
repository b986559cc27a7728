"""
Default transports built on aiohttp.

Calls are scheduled as tasks on the running asyncio event loop and their
callbacks run on that loop, one at a time.
"""

import asyncio
import logging
import xmlrpc.client
from typing import Any, Callable, Dict, List, Optional, Set
from xml.parsers.expat import ExpatError

import aiohttp

from blogwire.interfaces.transport import (
    ErrorCallback,
    HttpResponse,
    HttpTransport,
    ResultCallback,
    XmlRpcTransport,
)
from blogwire.utils.error_handler import ParsingError, TransportError, error_for_status


class _AioTransport:
    """Session and task bookkeeping shared by both transports."""

    def __init__(
        self,
        user_agent: str = "",
        timeout: float = 50,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.user_agent = user_agent
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._tasks: Set[asyncio.Task] = set()
        self.logging = logging.getLogger(__name__)

    def _session_for_loop(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent} if self.user_agent else None,
            )
            self._owns_session = True
        return self._session

    def _schedule(self, coroutine) -> None:
        task = asyncio.get_running_loop().create_task(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait until every scheduled call has delivered its callback."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def close(self) -> None:
        await self.drain()
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None


class AioXmlRpcTransport(_AioTransport, XmlRpcTransport):
    """
    XML-RPC over aiohttp; marshalling is done by xmlrpc.client.

    XML-RPC faults are reported as TransportError carrying the fault code.
    """

    def __init__(self, url: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.url = url

    def call(
        self,
        method: str,
        args: List[Any],
        on_result: ResultCallback,
        on_error: ErrorCallback,
    ) -> None:
        self._schedule(self._call(method, args, on_result, on_error))

    async def _call(
        self,
        method: str,
        args: List[Any],
        on_result: ResultCallback,
        on_error: ErrorCallback,
    ) -> None:
        body = xmlrpc.client.dumps(tuple(args), methodname=method, encoding="utf-8")

        try:
            session = self._session_for_loop()
            async with session.post(
                self.url,
                data=body.encode("utf-8"),
                headers={"Content-Type": "text/xml; charset=utf-8"},
            ) as response:
                text = await response.text()
                status = response.status
                reason = response.reason or ""
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logging.debug(f"{method} failed: {e}")
            on_error(TransportError(f"{method} failed: {str(e) or type(e).__name__}"))
            return

        if status >= 400:
            on_error(error_for_status(status, reason, "xmlrpc"))
            return

        try:
            params, _ = xmlrpc.client.loads(text)
        except xmlrpc.client.Fault as fault:
            on_error(
                TransportError(
                    f"{method} failed: {fault.faultString}",
                    error_code=str(fault.faultCode),
                )
            )
            return
        except (ExpatError, xmlrpc.client.ResponseError) as e:
            on_error(ParsingError(f"Could not parse the response to {method}: {e}"))
            return

        on_result(params[0] if params else None)


class AioHttpTransport(_AioTransport, HttpTransport):
    """
    Plain HTTP over aiohttp, used by the GData dialect.
    """

    def request(
        self,
        verb: str,
        url: str,
        on_result: Callable[[HttpResponse], None],
        on_error: ErrorCallback,
        body: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self._schedule(self._request(verb, url, on_result, on_error, body, headers))

    async def _request(
        self,
        verb: str,
        url: str,
        on_result: Callable[[HttpResponse], None],
        on_error: ErrorCallback,
        body: bytes,
        headers: Optional[Dict[str, str]],
    ) -> None:
        try:
            session = self._session_for_loop()
            async with session.request(
                verb, url, data=body or None, headers=headers or {}
            ) as response:
                payload = await response.read()
                result = HttpResponse(
                    status=response.status,
                    body=payload,
                    headers=dict(response.headers),
                )
                reason = response.reason or ""
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logging.debug(f"{verb} {url} failed: {e}")
            on_error(TransportError(f"{verb} {url} failed: {str(e) or type(e).__name__}"))
            return

        if result.status >= 400:
            on_error(
                error_for_status(
                    result.status, reason, "gdata", retry_after=result.headers.get("Retry-After")
                )
            )
            return

        on_result(result)
