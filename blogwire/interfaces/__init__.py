"""
Interfaces package for the blog client library.
"""

from .post_codec import PostCodec
from .protocol_adapter import ProtocolAdapter
from .transport import HttpResponse, HttpTransport, XmlRpcTransport

__all__ = [
    "PostCodec",
    "ProtocolAdapter",
    "HttpResponse",
    "HttpTransport",
    "XmlRpcTransport",
]
