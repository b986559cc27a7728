"""
Client for the Blogger 1.0 XML-RPC API.
"""

from blogwire.client.xmlrpc_client import XmlRpcBlogClient
from blogwire.processors.xmlrpc_dialects import Blogger1Dialect


class Blogger1Client(XmlRpcBlogClient):
    """
    Blogger 1.0: user info, blogs and plain posts.

    Categories and media are not part of this API; titles and categories
    travel inside the post content (see Blogger1Dialect).
    """

    dialect = "blogger1"
    dialect_class = Blogger1Dialect
