"""
Codecs for the XML-RPC blog dialects.

Each dialect knows its wire method names, how to lay out positional
arguments and how to read the structs the server sends back. The
dialects build on each other: MetaWeblog reuses the Blogger 1.0 calls it
does not replace, MovableType adds its mt_* fields and category calls,
and WordpressBuggy changes the date format.
"""

import logging
import re
import xmlrpc.client
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

from blogwire.interfaces.post_codec import PostCodec
from blogwire.models.blog_post import BlogMedia, BlogPost, require_aware
from blogwire.models.category import CategoryEntry, CategoryList
from blogwire.utils.error_handler import ParsingError

APP_KEY = "0123456789ABCDEF"

COMPACT_DATE_FORMAT = "%Y%m%dT%H:%M:%S"
EXTENDED_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

TITLE_TAG = re.compile(r"<title>([^<]*)</title>")
CATEGORY_TAG = re.compile(r"<category>([^<]*)</category>")


@dataclass
class Account:
    """Identifies the blog and the user a call is made for."""

    blog_id: str
    username: str
    password: str


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Read a date from a response value, assuming UTC when no offset is given.

    Accepts xmlrpc DateTime objects, datetime objects and strings in either
    the compact (20060330T18:36:28) or the extended ISO 8601 form.

    Raises:
        ParsingError: If the value is a string that is not a date
    """
    if isinstance(value, xmlrpc.client.DateTime):
        value = value.value
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.strptime(value.strip(), COMPACT_DATE_FORMAT)
        except ValueError:
            try:
                parsed = date_parser.isoparse(value.strip())
            except ValueError:
                raise ParsingError(f"Could not read date '{value}'")
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _text(value: Any) -> str:
    if isinstance(value, xmlrpc.client.Binary):
        return value.data.decode("utf-8", errors="replace")
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if value is None:
        return ""
    return str(value)


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip() not in ("", "0", "false")
    return bool(value)


def _require_struct(value: Any, what: str) -> Dict:
    if not isinstance(value, dict):
        raise ParsingError(f"Could not read {what}: expected a struct, got {type(value).__name__}")
    return value


def _require_array(value: Any, what: str) -> List:
    if not isinstance(value, list):
        raise ParsingError(f"Could not read {what}: expected an array, got {type(value).__name__}")
    return value


class Blogger1Dialect(PostCodec):
    """
    Blogger 1.0 API.

    Blogger 1.0 has no title or category fields. Like many clients, the
    title and categories are embedded as <title> and <category> tags at
    the start of the content and stripped again when reading. This is a
    heuristic some servers (notably WordPress) understand, not part of the
    protocol.
    """

    name = "blogger1"

    methods = {
        "user_info": "blogger.getUserInfo",
        "list_blogs": "blogger.getUsersBlogs",
        "recent_posts": "blogger.getRecentPosts",
        "fetch_post": "blogger.getPost",
        "create_post": "blogger.newPost",
        "modify_post": "blogger.editPost",
        "remove_post": "blogger.deletePost",
    }

    def __init__(self, categories: Optional[CategoryList] = None):
        self.categories = categories if categories is not None else CategoryList()
        self.logging = logging.getLogger(__name__)

    def supports(self, operation: str) -> bool:
        return operation in self.methods

    def method(self, operation: str) -> str:
        return self.methods[operation]

    def blogger1_args(self, account: Account, object_id: str = "") -> List[Any]:
        """Arguments of the blogger.* calls: app key, optional id, username, password."""
        args: List[Any] = [APP_KEY]
        if object_id:
            args.append(object_id)
        args += [account.username, account.password]
        return args

    def default_args(self, account: Account, object_id: str = "") -> List[Any]:
        return self.blogger1_args(account, object_id)

    def format_datetime(self, value: datetime) -> xmlrpc.client.DateTime:
        require_aware(value, "datetime")
        return xmlrpc.client.DateTime(
            value.astimezone(timezone.utc).strftime(EXTENDED_DATE_FORMAT)
        )

    # Requests

    def user_info_args(self, account: Account) -> List[Any]:
        return self.blogger1_args(account)

    def list_blogs_args(self, account: Account) -> List[Any]:
        return self.blogger1_args(account)

    def recent_posts_args(self, account: Account, count: int) -> List[Any]:
        return self.default_args(account, account.blog_id) + [count]

    def fetch_post_args(self, account: Account, post: BlogPost) -> List[Any]:
        return self.default_args(account, post.post_id)

    def create_post_args(self, account: Account, post: BlogPost, private: bool) -> List[Any]:
        return self.default_args(account, account.blog_id) + self.encode_post(post, private)

    def modify_post_args(self, account: Account, post: BlogPost, private: bool) -> List[Any]:
        return self.default_args(account, post.post_id) + self.encode_post(post, private)

    def remove_post_args(self, account: Account, post: BlogPost) -> List[Any]:
        return self.blogger1_args(account, post.post_id) + [True]

    def encode_post(self, post: BlogPost, private: bool) -> List[Any]:
        content = f"<title>{post.title}</title>"
        for category in post.categories:
            content += f"<category>{category}</category>"
        content += post.content
        return [content, not private]

    # Responses

    def read_post_id(self, result: Any) -> str:
        """Read the id a create call returns; servers send a string or an int."""
        if isinstance(result, bool) or not isinstance(result, (str, int)):
            raise ParsingError(
                f"Could not read the post id, expected a string or int, got {type(result).__name__}"
            )
        return str(result)

    def read_confirmation(self, result: Any, what: str) -> None:
        """Modify and remove calls answer with a boolean (or an int)."""
        if not isinstance(result, (bool, int)):
            raise ParsingError(
                f"Could not read the result of {what}, expected a boolean, got {type(result).__name__}"
            )

    def decode_post(self, data: Any, post: BlogPost) -> BlogPost:
        data = _require_struct(data, "the post")
        self._read_common(data, post)

        contents = _text(data.get("content"))
        title = _text(data.get("title"))
        title_match = TITLE_TAG.search(contents)
        if title_match:
            title = title_match.group(1)
        categories = CATEGORY_TAG.findall(contents)
        contents = CATEGORY_TAG.sub("", TITLE_TAG.sub("", contents))

        post.title = title
        post.content = contents
        post.categories = categories
        return post

    def _read_common(self, data: Dict, post: BlogPost) -> None:
        created = parse_datetime(data.get("dateCreated"))
        if created is not None:
            post.creation_time = created
        modified = parse_datetime(data.get("lastModified"))
        if modified is not None:
            post.modification_time = modified
        post_id = _text(data.get("postid")) or _text(data.get("postId"))
        if post_id:
            post.post_id = post_id

    def read_user_info(self, result: Any) -> Dict[str, str]:
        data = _require_struct(result, "the user info")
        return {
            key: _text(data.get(key))
            for key in ("nickname", "userid", "url", "email", "lastname", "firstname")
        }

    def read_blogs(self, result: Any) -> List[Dict[str, str]]:
        blogs = []
        for item in _require_array(result, "the list of blogs"):
            data = _require_struct(item, "a blog")
            blogs.append(
                {
                    "id": _text(data.get("blogid")),
                    "url": _text(data.get("url")),
                    "api_url": _text(data.get("xmlrpc")),
                    "title": _text(data.get("blogName")),
                }
            )
        return blogs


class MetaWeblogDialect(Blogger1Dialect):
    """
    MetaWeblog API: posts are structs with title, description and categories.
    """

    name = "metaweblog"

    methods = dict(
        Blogger1Dialect.methods,
        recent_posts="metaWeblog.getRecentPosts",
        fetch_post="metaWeblog.getPost",
        create_post="metaWeblog.newPost",
        modify_post="metaWeblog.editPost",
        list_categories="metaWeblog.getCategories",
        create_media="metaWeblog.newMediaObject",
    )

    def default_args(self, account: Account, object_id: str = "") -> List[Any]:
        args: List[Any] = []
        if object_id:
            args.append(object_id)
        return args + [account.username, account.password]

    def list_categories_args(self, account: Account) -> List[Any]:
        return self.default_args(account, account.blog_id)

    def create_media_args(self, account: Account, media: BlogMedia) -> List[Any]:
        struct = {
            "name": media.name,
            "type": media.mimetype,
            "bits": xmlrpc.client.Binary(media.data),
        }
        return self.default_args(account, account.blog_id) + [struct]

    def encode_post(self, post: BlogPost, private: bool) -> List[Any]:
        return [self.build_struct(post), not private]

    def build_struct(self, post: BlogPost) -> Dict[str, Any]:
        struct: Dict[str, Any] = {
            "categories": list(post.categories),
            "description": post.content,
            "title": post.title,
        }
        if post.modification_time is not None:
            struct["lastModified"] = self.format_datetime(post.modification_time)
        if post.creation_time is not None:
            struct["dateCreated"] = self.format_datetime(post.creation_time)
        return struct

    def decode_post(self, data: Any, post: BlogPost) -> BlogPost:
        data = _require_struct(data, "the post")
        self._read_common(data, post)
        post.title = _text(data.get("title"))
        post.content = _text(data.get("description"))
        categories = data.get("categories")
        post.categories = (
            [_text(category) for category in categories] if isinstance(categories, list) else []
        )
        if data.get("link"):
            post.link = _text(data.get("link"))
        if data.get("permaLink"):
            post.perma_link = _text(data.get("permaLink"))
        return post

    def read_categories(self, result: Any) -> List[CategoryEntry]:
        """
        Read a getCategories response.

        The MetaWeblog definition returns a struct of structs keyed by
        category name; WordPress and others return an array of structs
        carrying categoryName. Both are accepted.
        """
        entries = []
        if isinstance(result, dict):
            for name, item in result.items():
                entries.append(self._category_entry(name, _require_struct(item, "a category")))
        elif isinstance(result, list):
            for item in result:
                data = _require_struct(item, "a category")
                entries.append(self._category_entry(_text(data.get("categoryName")), data))
        else:
            raise ParsingError(
                f"Could not read the list of categories, got {type(result).__name__}"
            )
        return entries

    @staticmethod
    def _category_entry(name: str, data: Dict) -> CategoryEntry:
        return CategoryEntry(
            name=name,
            category_id=_text(data.get("categoryId")),
            description=_text(data.get("description")),
            html_url=_text(data.get("htmlUrl")),
            rss_url=_text(data.get("rssUrl")),
            parent_id=_text(data.get("parentId")),
        )

    def read_media_url(self, result: Any) -> str:
        data = _require_struct(result, "the media result")
        url = _text(data.get("url"))
        if not url:
            raise ParsingError("Could not read the media url from the result")
        return url


class MovableTypeDialect(MetaWeblogDialect):
    """
    MovableType API: MetaWeblog plus mt_* fields and category calls.

    Category assignment happens through mt.setPostCategories, which needs
    server ids, so this dialect reads and writes categories through the
    CategoryList shared with its client.
    """

    name = "movabletype"

    methods = dict(
        MetaWeblogDialect.methods,
        post_categories="mt.getPostCategories",
        set_categories="mt.setPostCategories",
        trackback_pings="mt.getTrackbackPings",
    )

    def build_struct(self, post: BlogPost) -> Dict[str, Any]:
        struct = super().build_struct(post)
        if post.additional_content:
            struct["mt_text_more"] = post.additional_content
        struct["mt_allow_comments"] = int(post.comment_allowed)
        struct["mt_allow_pings"] = int(post.trackback_allowed)
        struct["mt_excerpt"] = post.summary
        struct["mt_keywords"] = ",".join(post.tags)
        if post.slug:
            struct["wp_slug"] = post.slug
        return struct

    def decode_post(self, data: Any, post: BlogPost) -> BlogPost:
        data = _require_struct(data, "the post")
        self._read_common(data, post)
        post.title = _text(data.get("title"))
        post.content = _text(data.get("description"))
        post.slug = _text(data.get("wp_slug"))
        post.additional_content = _text(data.get("mt_text_more"))
        post.comment_allowed = _flag(data.get("mt_allow_comments"))
        post.trackback_allowed = _flag(data.get("mt_allow_pings"))
        post.summary = _text(data.get("mt_excerpt"))
        keywords = data.get("mt_keywords")
        if isinstance(keywords, list):
            post.tags = [_text(keyword) for keyword in keywords]
        else:
            post.tags = [tag.strip() for tag in _text(keywords).split(",") if tag.strip()]
        post.link = _text(data.get("link"))
        post.perma_link = _text(data.get("permaLink"))

        post_status = _text(data.get("post_status"))
        if post_status:
            post.private = post_status != "publish"

        post.categories = self.category_names(data.get("categories") or [])
        return post

    def category_names(self, values: List[Any]) -> List[str]:
        """Map the categories of a post struct, given by name or by id, to names."""
        names = []
        for value in values:
            value = _text(value)
            entry = self.categories.by_name(value) or self.categories.by_id(value)
            if entry is not None:
                names.append(entry.name)
        return names

    def category_ids(self, names: List[str]) -> List[Dict[str, Any]]:
        """
        Map category names to the structs mt.setPostCategories expects.

        Names without a cached id are logged and dropped. The first struct
        is the post's primary category.
        """
        mapped = []
        for name in names:
            entry = self.categories.by_name(name)
            if entry is None or not entry.category_id:
                self.logging.warning(f"No category id known for '{name}', skipping it")
                continue
            category_id = entry.category_id
            mapped.append(
                {"categoryId": int(category_id) if category_id.isdigit() else category_id}
            )
        return mapped

    def post_categories_args(self, account: Account, post: BlogPost) -> List[Any]:
        return self.default_args(account, post.post_id)

    def set_categories_args(self, account: Account, post: BlogPost) -> List[Any]:
        return self.default_args(account, post.post_id) + [self.category_ids(post.categories)]

    def trackback_pings_args(self, post: BlogPost) -> List[Any]:
        return [post.post_id]

    def read_post_categories(self, result: Any) -> List[str]:
        names = []
        for item in _require_array(result, "the post categories"):
            data = _require_struct(item, "a post category")
            name = _text(data.get("categoryName"))
            if not name:
                entry = self.categories.by_id(_text(data.get("categoryId")))
                name = entry.name if entry is not None else ""
            if name:
                names.append(name)
        return names

    def read_trackback_pings(self, result: Any) -> List[Dict[str, str]]:
        pings = []
        for item in _require_array(result, "the list of trackback pings"):
            data = _require_struct(item, "a trackback ping")
            pings.append(
                {
                    "title": _text(data.get("pingTitle")),
                    "url": _text(data.get("pingURL")),
                    "ip": _text(data.get("pingIP")),
                }
            )
        return pings


class WordpressBuggyDialect(MovableTypeDialect):
    """
    MovableType as spoken by old WordPress releases.

    Those servers only accept the compact yyyyMMddThh:mm:ss form for
    dateTime.iso8601 values and always expect wp_slug.
    """

    name = "wordpressbuggy"

    def format_datetime(self, value: datetime) -> xmlrpc.client.DateTime:
        require_aware(value, "datetime")
        return xmlrpc.client.DateTime(
            value.astimezone(timezone.utc).strftime(COMPACT_DATE_FORMAT)
        )

    def build_struct(self, post: BlogPost) -> Dict[str, Any]:
        struct = super().build_struct(post)
        struct["wp_slug"] = post.slug
        return struct
