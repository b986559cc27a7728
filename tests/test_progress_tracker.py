"""
Tests for the progress tracker and the client factory.
"""

import io
import logging

import pytest
from rich.console import Console

from blogwire.client.gdata_client import GDataClient
from blogwire.client.livejournal_client import LiveJournalClient
from blogwire.client.metaweblog_client import MetaWeblogClient
from blogwire.client.movabletype_client import MovableTypeClient
from blogwire.managers.blog_factory import BlogFactory, default_cache_dir
from blogwire.models.blog_post import BlogMedia, BlogPost
from blogwire.utils.error_handler import AuthenticationError, ErrorType, TransportError
from blogwire.utils.progress_tracker import OperationResult, ProgressTracker

URL = "https://blog.example.com/xmlrpc.php"


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def tracker(output):
    return ProgressTracker(console=Console(file=output, width=120, force_terminal=False))


class TestProgressTracker:
    def test_attach_records_outcomes(self, tracker, xmlrpc_transport):
        client = MetaWeblogClient(URL, "1", "user", "secret", transport=xmlrpc_transport)
        tracker.attach(client)
        ok = BlogPost(title="Good")
        bad = BlogPost(title="Bad")
        media = BlogMedia(name="photo.png", data=b"x")

        client.create_post(ok)
        client.create_post(bad)
        client.create_media(media)
        xmlrpc_transport.respond(0, "42")
        xmlrpc_transport.fail(1, TransportError("refused"))
        xmlrpc_transport.respond(2, {"url": "https://blog.example.com/photo.png"})

        results = {r.title: r for r in tracker.results}
        assert results["Good"].success is True
        assert results["Good"].action == "created"
        assert results["Good"].object_id == "42"
        assert results["Bad"].success is False
        assert results["Bad"].error_type is ErrorType.TRANSPORT
        assert results["Bad"].error_message == "refused"
        assert results["photo.png"].action == "uploaded"
        assert results["photo.png"].url == "https://blog.example.com/photo.png"

    def test_errors_without_object(self, tracker, xmlrpc_transport):
        client = MetaWeblogClient(URL, "1", "user", "secret", transport=xmlrpc_transport)
        tracker.attach(client)

        client._on_result(77, True)

        assert tracker.results[0].title == "(no object)"
        assert tracker.results[0].error_type is ErrorType.OTHER

    def test_print_summary(self, tracker, output):
        tracker.add_result(OperationResult("First", "movabletype", "created", True, object_id="1"))
        tracker.add_result(
            OperationResult(
                "Second",
                "gdata",
                "failed",
                False,
                error_message="Token expired",
                error_type=ErrorType.AUTHENTICATION,
            )
        )

        tracker.print_summary()

        text = output.getvalue()
        assert "Operation Summary" in text
        assert "First" in text
        assert "AuthenticationError: Token expired" in text
        assert "Completed with 1 failures" in text

    def test_print_summary_all_successful(self, tracker, output):
        tracker.add_result(OperationResult("First", "blogger1", "modified", True))
        tracker.print_summary()
        assert "All operations completed successfully" in output.getvalue()

    def test_print_empty_summary(self, tracker, output):
        tracker.print_summary()
        assert "No operations were performed." in output.getvalue()

    def test_dialect_summary(self, tracker):
        tracker.add_result(OperationResult("A", "gdata", "created", True))
        tracker.add_result(OperationResult("B", "gdata", "failed", False))
        tracker.add_result(OperationResult("C", "livejournal", "removed", True))

        assert tracker.get_dialect_summary() == {
            "gdata": {"total": 2, "successful": 1, "failed": 1},
            "livejournal": {"total": 1, "successful": 1, "failed": 0},
        }

    def test_setup_colored_logging(self, tracker):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            tracker.setup_colored_logging(logging.DEBUG)
            assert len(root.handlers) == 1
            assert root.level == logging.DEBUG
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestBlogFactory:
    @pytest.fixture
    def env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BLOGWIRE_CACHE_DIR", str(tmp_path / "categories"))
        monkeypatch.setenv("BLOGWIRE_USER_AGENT", "blogwire-tests")
        monkeypatch.setenv("BLOGWIRE_TIMEOUT", "12")
        monkeypatch.setenv("BLOGWIRE_USERNAME", "user")
        monkeypatch.setenv("BLOGWIRE_PASSWORD", "secret")
        monkeypatch.setenv("BLOGWIRE_BLOG_ID", "1")
        return tmp_path

    def test_configuration_from_environment(self, env):
        factory = BlogFactory()

        assert factory.config["timeout"] == 12.0
        assert factory.config["user_agent"] == "blogwire-tests"
        assert factory.category_cache.cache_dir == env / "categories"

    def test_create_xmlrpc_client(self, env, xmlrpc_transport):
        client = BlogFactory().create("MovableType", URL, transport=xmlrpc_transport)

        assert isinstance(client, MovableTypeClient)
        assert (client.blog_id, client.username, client.password) == ("1", "user", "secret")
        assert client.user_agent == "blogwire-tests"
        assert client.category_cache.cache_dir == env / "categories"
        assert client.transport is xmlrpc_transport

    def test_arguments_override_environment(self, env, xmlrpc_transport):
        client = BlogFactory().create(
            "livejournal", "https://www.livejournal.com/interface/xmlrpc",
            username="other", transport=xmlrpc_transport,
        )
        assert isinstance(client, LiveJournalClient)
        assert client.username == "other"

    def test_create_gdata_client(self, env, http_transport, authenticator):
        client = BlogFactory().create(
            "gdata", "http://myblog.blogspot.com/", blog_id="123",
            transport=http_transport, authenticator=authenticator,
        )
        assert isinstance(client, GDataClient)
        assert client.blog_id == "123"

    def test_unknown_dialect(self, env):
        with pytest.raises(ValueError, match="Known dialects"):
            BlogFactory().create("typepad", URL)

    def test_missing_credentials(self, env, monkeypatch):
        monkeypatch.delenv("BLOGWIRE_PASSWORD")

        with pytest.raises(AuthenticationError):
            BlogFactory().create("metaweblog", URL)

    def test_password_is_not_logged(self, env, caplog):
        with caplog.at_level(logging.DEBUG, logger="blogwire.managers.blog_factory"):
            BlogFactory()
        assert "secret" not in caplog.text

    def test_default_cache_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
        assert default_cache_dir() == tmp_path / "blogwire"

    def test_explicit_config(self, tmp_path, xmlrpc_transport):
        factory = BlogFactory(
            {
                "cache_dir": str(tmp_path),
                "user_agent": "ua",
                "timeout": 5,
                "username": "u",
                "password": "p",
                "blog_id": "9",
            }
        )
        client = factory.create("blogger1", URL, transport=xmlrpc_transport)
        assert client.blog_id == "9"
