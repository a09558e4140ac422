"""RSS feed parser for podcast metadata and episodes.

Parses feed text with ElementTree and extracts the channel title, a
channel image (trying iTunes, standard RSS and Media RSS locations) and
the list of episodes with their audio enclosures.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

from .errors import FeedParseError
from .models import Episode

logger = logging.getLogger(__name__)

UNKNOWN_PODCAST_TITLE = "Unknown Podcast"
UNKNOWN_EPISODE_TITLE = "Unknown Episode"

# Feeds in the wild use both spellings of the iTunes namespace URI
ITUNES_NAMESPACES = (
    "http://www.itunes.com/dtds/podcast-1.0.dtd",
    "http://www.itunes.com/DTDs/Podcast-1.0.dtd",
)
MEDIA_NAMESPACES = (
    "http://search.yahoo.com/mrss/",
    "http://search.yahoo.com/mrss",
)


def _qualified(namespaces: Iterable[str], local_name: str) -> List[str]:
    return [f"{{{uri}}}{local_name}" for uri in namespaces]


ITUNES_IMAGE_TAGS = _qualified(ITUNES_NAMESPACES, "image")
MEDIA_THUMBNAIL_TAGS = _qualified(MEDIA_NAMESPACES, "thumbnail")


@dataclass
class ParsedFeed:
    """Parsed channel data from an RSS feed."""

    title: str
    image_url: Optional[str] = None

    # Oldest first
    episodes: List[Episode] = field(default_factory=list)


class FeedParser:
    """Parser for podcast RSS feeds.

    Example:
        parser = FeedParser()
        feed = parser.parse_string(xml_text)
        print(f"Podcast: {feed.title}")
        for episode in feed.episodes:
            print(f"  - {episode.title}")
    """

    def parse_string(self, content: Union[str, bytes]) -> ParsedFeed:
        """Parse a podcast feed from its raw text.

        Args:
            content: RSS feed document

        Returns:
            ParsedFeed with channel metadata and episodes in oldest-first order

        Raises:
            FeedParseError: If the document is not well-formed XML
        """
        root = self._parse_xml(content)

        channel = next(root.iter("channel"), None)
        title = self._child_text(channel, "title") if channel is not None else None
        items = list(root.iter("item"))

        episodes = [self._parse_episode(item) for item in items]
        # Feeds list newest first; callers get oldest first
        episodes.reverse()

        parsed = ParsedFeed(
            title=title or UNKNOWN_PODCAST_TITLE,
            image_url=self._extract_image_url(channel, items),
            episodes=episodes,
        )
        logger.debug(f"Parsed feed '{parsed.title}' with {len(episodes)} episodes")
        return parsed

    def _parse_xml(self, content: Union[str, bytes]) -> ET.Element:
        if isinstance(content, bytes):
            content = content.lstrip(b"\xef\xbb\xbf \t\r\n")
        else:
            content = content.lstrip("\ufeff \t\r\n")

        if not content:
            raise FeedParseError("Feed document is empty")

        try:
            return ET.fromstring(content)
        except ET.ParseError as e:
            raise FeedParseError(f"Invalid XML structure in RSS feed: {e}") from e

    def _parse_episode(self, item: ET.Element) -> Episode:
        title_el = item.find(".//title")
        title = self._text(title_el) or UNKNOWN_EPISODE_TITLE

        enclosure = item.find(".//enclosure")
        audio_url = enclosure.get("url") if enclosure is not None else None

        return Episode(title=title, audio_url=audio_url or None)

    def _extract_image_url(
        self, channel: Optional[ET.Element], items: List[ET.Element]
    ) -> Optional[str]:
        """Find the podcast artwork.

        Lookup order, first non-empty wins:
        channel itunes:image href, channel image/url text,
        item itunes:image href, item media:thumbnail url.
        """
        if channel is not None:
            href = self._first_attribute(channel, ITUNES_IMAGE_TAGS, "href")
            if href:
                return href

            for image in channel.findall("image"):
                url = self._child_text(image, "url")
                if url:
                    return url

        for item in items:
            href = self._first_attribute(item, ITUNES_IMAGE_TAGS, "href")
            if href:
                return href

        for item in items:
            url = self._first_attribute(item, MEDIA_THUMBNAIL_TAGS, "url")
            if url:
                return url

        return None

    @staticmethod
    def _first_attribute(
        parent: ET.Element, tags: List[str], attribute: str
    ) -> Optional[str]:
        # Only the first matching child counts, even if its attribute is empty
        for child in parent:
            if child.tag in tags:
                return (child.get(attribute) or "").strip() or None
        return None

    def _child_text(self, parent: ET.Element, tag: str) -> Optional[str]:
        return self._text(parent.find(tag))

    @staticmethod
    def _text(element: Optional[ET.Element]) -> Optional[str]:
        if element is None:
            return None
        text = "".join(element.itertext()).strip()
        return text or None
