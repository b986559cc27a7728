"""
Client for WordPress servers with the broken dateTime handling.
"""

from blogwire.client.xmlrpc_client import XmlRpcBlogClient
from blogwire.processors.xmlrpc_dialects import WordpressBuggyDialect


class WordpressBuggyClient(XmlRpcBlogClient):
    """
    MovableType as spoken by old WordPress releases.

    Dates go out in the compact yyyyMMddThh:mm:ss form, and every
    create or modify waits for the category list, even for posts without
    categories.
    """

    dialect = "wordpressbuggy"
    dialect_class = WordpressBuggyDialect
    publishes_in_steps = True
    gate_without_categories = True
