"""
Client for the MovableType XML-RPC API.
"""

from blogwire.client.xmlrpc_client import XmlRpcBlogClient
from blogwire.processors.xmlrpc_dialects import MovableTypeDialect


class MovableTypeClient(XmlRpcBlogClient):
    """
    MovableType: MetaWeblog plus mt_* fields, trackback pings and
    category assignment by id.

    Posts with categories are created silently through the
    PublishOrchestrator so they never appear without their categories.
    """

    dialect = "movabletype"
    dialect_class = MovableTypeDialect
    publishes_in_steps = True
