"""
Atom entry codec for the GData (Blogger) dialect.
"""

import logging
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Dict, List, Optional

from dateutil import parser as date_parser

from blogwire.interfaces.post_codec import PostCodec
from blogwire.models.blog_post import BlogComment, BlogPost, require_aware
from blogwire.utils.error_handler import ParsingError

ATOM_NS = "http://www.w3.org/2005/Atom"
APP_NS = "http://purl.org/atom/app#"
BLOGGER_SCHEME = "http://www.blogger.com/atom/ns#"

POST_ID = re.compile(r"post-(\d+)")
BLOG_ID = re.compile(r"blog-(\d+)")
PUBLISHED = re.compile(r"<published>(.+?)</published>")
UPDATED = re.compile(r"<updated>(.+?)</updated>")

ET.register_namespace("", ATOM_NS)
ET.register_namespace("app", APP_NS)


def _tag(name: str) -> str:
    return f"{{{ATOM_NS}}}{name}"


def _parse_date(text: Optional[str]) -> Optional[datetime]:
    if not text:
        return None
    try:
        parsed = date_parser.isoparse(text.strip())
    except ValueError:
        raise ParsingError(f"Could not read date '{text}'")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class AtomCodec(PostCodec):
    """
    Builds Atom entries for posts and comments and reads them back.

    Server-assigned ids are recovered from the <id> element with the
    pattern post-(digits); the rest of the element is ignored.
    """

    def __init__(self, author_name: str = "", author_email: str = ""):
        self.author_name = author_name
        self.author_email = author_email
        self.logging = logging.getLogger(__name__)

    def format_datetime(self, value: datetime) -> str:
        require_aware(value, "datetime")
        return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    # Encoding

    def encode_post(self, post: BlogPost, private: bool) -> bytes:
        entry = ET.Element(_tag("entry"))

        if post.creation_time is not None:
            ET.SubElement(entry, _tag("published")).text = self.format_datetime(post.creation_time)
        if post.modification_time is not None:
            ET.SubElement(entry, _tag("updated")).text = self.format_datetime(post.modification_time)

        title = ET.SubElement(entry, _tag("title"), {"type": "text"})
        title.text = post.title

        if private:
            control = ET.SubElement(entry, f"{{{APP_NS}}}control")
            ET.SubElement(control, f"{{{APP_NS}}}draft").text = "yes"

        content = ET.SubElement(entry, _tag("content"), {"type": "html"})
        content.text = post.content

        for tag in post.tags:
            ET.SubElement(entry, _tag("category"), {"scheme": BLOGGER_SCHEME, "term": tag})

        self._add_author(entry, self.author_name, self.author_email)
        return ET.tostring(entry, encoding="utf-8")

    def encode_comment(self, comment: BlogComment) -> bytes:
        entry = ET.Element(_tag("entry"))
        ET.SubElement(entry, _tag("title"), {"type": "text"}).text = comment.title
        ET.SubElement(entry, _tag("content"), {"type": "html"}).text = comment.content
        self._add_author(entry, comment.name, comment.email)
        return ET.tostring(entry, encoding="utf-8")

    @staticmethod
    def _add_author(entry: ET.Element, name: str, email: str) -> None:
        author = ET.SubElement(entry, _tag("author"))
        if name:
            ET.SubElement(author, _tag("name")).text = name
        ET.SubElement(author, _tag("email")).text = email

    # Decoding

    def read_created(self, body: str) -> Dict[str, object]:
        """
        Read the id and timestamps from the entry a create or modify returns.

        Raises:
            ParsingError: If the id, published or updated value is missing
        """
        id_match = POST_ID.search(body)
        if not id_match:
            raise ParsingError("Could not find the post id in the response")
        published = PUBLISHED.search(body)
        if not published:
            raise ParsingError("Could not find the published time in the response")
        updated = UPDATED.search(body)
        if not updated:
            raise ParsingError("Could not find the updated time in the response")
        return {
            "id": id_match.group(1),
            "published": _parse_date(published.group(1)),
            "updated": _parse_date(updated.group(1)),
        }

    def parse_feed(self, body: str) -> List[ET.Element]:
        """Return the entry elements of a feed, or the element itself for a single entry."""
        try:
            root = ET.fromstring(body)
        except ET.ParseError as e:
            raise ParsingError(f"Could not parse the Atom document: {e}")
        if root.tag == _tag("entry"):
            return [root]
        if root.tag != _tag("feed"):
            raise ParsingError(f"Expected an Atom feed, got <{root.tag}>")
        return root.findall(_tag("entry"))

    def entry_id(self, entry: ET.Element) -> str:
        """The numeric id embedded in an entry's <id> element."""
        match = POST_ID.search(entry.findtext(_tag("id"), default=""))
        if not match:
            raise ParsingError("Could not find a post-<digits> id in the entry")
        return match.group(1)

    def decode_post(self, data: ET.Element, post: BlogPost) -> BlogPost:
        post.post_id = self.entry_id(data)
        post.title = data.findtext(_tag("title"), default="")
        post.content = self._content(data)
        post.tags = [
            category.get("term", "")
            for category in data.findall(_tag("category"))
            if category.get("term")
        ]
        published = _parse_date(data.findtext(_tag("published")))
        if published is not None:
            post.creation_time = published
        updated = _parse_date(data.findtext(_tag("updated")))
        if updated is not None:
            post.modification_time = updated
        post.private = data.find(f"{{{APP_NS}}}control/{{{APP_NS}}}draft") is not None
        for link in data.findall(_tag("link")):
            if link.get("rel") == "alternate":
                post.link = link.get("href", "")
                post.perma_link = post.link
        return post

    def decode_comment(self, data: ET.Element, comment: BlogComment) -> BlogComment:
        comment.comment_id = self.entry_id(data)
        comment.title = data.findtext(_tag("title"), default="")
        comment.content = self._content(data)
        comment.name = data.findtext(f"{_tag('author')}/{_tag('name')}", default="")
        comment.email = data.findtext(f"{_tag('author')}/{_tag('email')}", default="")
        comment.url = data.findtext(f"{_tag('author')}/{_tag('uri')}", default="")
        published = _parse_date(data.findtext(_tag("published")))
        if published is not None:
            comment.creation_time = published
        updated = _parse_date(data.findtext(_tag("updated")))
        if updated is not None:
            comment.modification_time = updated
        return comment

    def read_blogs(self, body: str) -> List[Dict[str, str]]:
        blogs = []
        for entry in self.parse_feed(body):
            match = BLOG_ID.search(entry.findtext(_tag("id"), default=""))
            if not match:
                raise ParsingError("Could not find a blog-<digits> id in the entry")
            url = ""
            api_url = ""
            for link in entry.findall(_tag("link")):
                if link.get("rel") == "alternate":
                    url = link.get("href", "")
                elif link.get("rel") == "http://schemas.google.com/g/2005#post":
                    api_url = link.get("href", "")
            blogs.append(
                {
                    "id": match.group(1),
                    "url": url,
                    "api_url": api_url,
                    "title": entry.findtext(_tag("title"), default=""),
                    "summary": entry.findtext(_tag("summary"), default=""),
                }
            )
        return blogs

    @staticmethod
    def _content(entry: ET.Element) -> str:
        content = entry.find(_tag("content"))
        if content is None:
            return ""
        if content.get("type") == "xhtml":
            # Inline markup; serialise the children of the wrapping div.
            div = content[0] if len(content) else content
            return (div.text or "") + "".join(
                ET.tostring(child, encoding="unicode") for child in div
            )
        return content.text or ""
