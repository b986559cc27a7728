"""
Client for the MetaWeblog XML-RPC API.
"""

from blogwire.client.xmlrpc_client import XmlRpcBlogClient
from blogwire.processors.xmlrpc_dialects import MetaWeblogDialect


class MetaWeblogClient(XmlRpcBlogClient):
    """
    MetaWeblog: Blogger 1.0 plus structured posts, categories and media uploads.

    Categories are sent by name inside the post struct, so posts are
    created in a single call.
    """

    dialect = "metaweblog"
    dialect_class = MetaWeblogDialect
