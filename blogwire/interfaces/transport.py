"""
Transport interfaces consumed by blog clients.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from blogwire.utils.error_handler import BlogError

ResultCallback = Callable[[Any], None]
ErrorCallback = Callable[[BlogError], None]


@dataclass
class HttpResponse:
    """A completed HTTP exchange with a 2xx status."""

    status: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class XmlRpcTransport(ABC):
    """
    Performs XML-RPC method calls without blocking the caller.
    """

    @abstractmethod
    def call(
        self,
        method: str,
        args: List[Any],
        on_result: ResultCallback,
        on_error: ErrorCallback,
    ) -> None:
        """
        Start a remote method call.

        Exactly one of the callbacks is invoked later, once.

        Args:
            method: XML-RPC method name, e.g. "metaWeblog.newPost"
            args: Positional arguments, already in marshallable form
            on_result: Receives the first (and only) response parameter
            on_error: Receives a BlogError describing the failure
        """
        pass


class HttpTransport(ABC):
    """
    Performs HTTP requests without blocking the caller.
    """

    @abstractmethod
    def request(
        self,
        verb: str,
        url: str,
        on_result: Callable[[HttpResponse], None],
        on_error: ErrorCallback,
        body: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        """
        Start an HTTP request.

        Exactly one of the callbacks is invoked later, once. Responses with
        a status of 400 or above are delivered to on_error.

        Args:
            verb: "GET" or "POST"
            url: Absolute request URL
            on_result: Receives the HttpResponse
            on_error: Receives a BlogError describing the failure
            body: Request body
            headers: Extra request headers
        """
        pass
