"""
Builds blog clients from environment configuration.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from blogwire.client.blogger1_client import Blogger1Client
from blogwire.client.gdata_client import GDataClient
from blogwire.client.livejournal_client import LiveJournalClient
from blogwire.client.metaweblog_client import MetaWeblogClient
from blogwire.client.movabletype_client import MovableTypeClient
from blogwire.client.wordpressbuggy_client import WordpressBuggyClient
from blogwire.client.xmlrpc_client import XmlRpcBlogClient
from blogwire.managers.category_cache import CategoryCache
from blogwire.utils.error_handler import AuthenticationError, ErrorHandler

# Load environment variables from .env file
load_dotenv()

DIALECTS = {
    "blogger1": Blogger1Client,
    "metaweblog": MetaWeblogClient,
    "movabletype": MovableTypeClient,
    "wordpressbuggy": WordpressBuggyClient,
    "gdata": GDataClient,
    "livejournal": LiveJournalClient,
}


def default_cache_dir() -> Path:
    """$XDG_DATA_HOME/blogwire, falling back to ~/.local/share/blogwire."""
    data_home = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(data_home) / "blogwire"


class BlogFactory:
    """
    Creates clients for the supported dialects.

    Settings come from the environment (optionally a .env file):
    BLOGWIRE_CACHE_DIR, BLOGWIRE_USER_AGENT, BLOGWIRE_TIMEOUT,
    BLOGWIRE_USERNAME, BLOGWIRE_PASSWORD and BLOGWIRE_BLOG_ID.
    Arguments passed to create() take precedence.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        self.logger = logging.getLogger(__name__)
        self.error_handler = ErrorHandler(self.logger)
        self.config = config if config is not None else self._load_configuration()
        self.category_cache = CategoryCache(Path(self.config["cache_dir"]))

    def _load_configuration(self) -> Dict[str, Any]:
        """
        Load configuration from environment variables.

        Returns:
            Dictionary containing configuration settings
        """
        config = {
            "cache_dir": os.environ.get("BLOGWIRE_CACHE_DIR") or str(default_cache_dir()),
            "user_agent": os.environ.get("BLOGWIRE_USER_AGENT", "blogwire"),
            "timeout": float(os.environ.get("BLOGWIRE_TIMEOUT", "50")),
            "username": os.environ.get("BLOGWIRE_USERNAME", ""),
            "password": os.environ.get("BLOGWIRE_PASSWORD", ""),
            "blog_id": os.environ.get("BLOGWIRE_BLOG_ID", ""),
        }

        # Never log the password
        loggable = {k: v for k, v in config.items() if k != "password"}
        self.logger.debug(f"Configuration loaded: {loggable}")
        return config

    def create(
        self,
        dialect: str,
        url: str,
        blog_id: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        **kwargs: Any,
    ):
        """
        Create a client for a dialect.

        Args:
            dialect: One of blogger1, metaweblog, movabletype, wordpressbuggy,
                gdata or livejournal (case-insensitive)
            url: XML-RPC endpoint, or the blog's address for gdata
            blog_id: Blog id; defaults to BLOGWIRE_BLOG_ID
            username: Defaults to BLOGWIRE_USERNAME
            password: Defaults to BLOGWIRE_PASSWORD
            **kwargs: Passed to the client constructor (e.g. transport)

        Returns:
            The client instance

        Raises:
            ValueError: For an unknown dialect
            AuthenticationError: When no username or password is configured
        """
        name = dialect.strip().lower()
        client_class = DIALECTS.get(name)
        if client_class is None:
            raise ValueError(
                f"Unknown dialect '{dialect}'. Known dialects: {', '.join(sorted(DIALECTS))}"
            )

        username = username if username is not None else self.config["username"]
        password = password if password is not None else self.config["password"]
        if not username or not password:
            self.error_handler.log_authentication_error(name, "no username or password configured")
            raise AuthenticationError(
                "A username and password are required", dialect=name
            )

        kwargs.setdefault("user_agent", self.config["user_agent"])
        kwargs.setdefault("timeout", self.config["timeout"])
        if issubclass(client_class, XmlRpcBlogClient):
            kwargs.setdefault("category_cache", self.category_cache)

        client = client_class(
            url,
            blog_id if blog_id is not None else self.config["blog_id"],
            username,
            password,
            **kwargs,
        )
        self.logger.info(f"{client_class.__name__} created for {url}")
        return client
