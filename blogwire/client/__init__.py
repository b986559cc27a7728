"""
Clients for the supported blog dialects.
"""

from .base_client import BlogClient
from .blogger1_client import Blogger1Client
from .gdata_client import ClientLoginAuthenticator, GDataClient
from .livejournal_client import LiveJournalClient
from .metaweblog_client import MetaWeblogClient
from .movabletype_client import MovableTypeClient
from .wordpressbuggy_client import WordpressBuggyClient
from .xmlrpc_client import XmlRpcBlogClient

__all__ = [
    "BlogClient",
    "XmlRpcBlogClient",
    "Blogger1Client",
    "MetaWeblogClient",
    "MovableTypeClient",
    "WordpressBuggyClient",
    "GDataClient",
    "ClientLoginAuthenticator",
    "LiveJournalClient",
]
