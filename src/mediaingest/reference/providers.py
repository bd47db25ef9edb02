"""Video hosting provider recognition.

Knows the URL shapes of the supported platforms (YouTube, Vimeo,
Dailymotion, Twitch) and extracts their video ids.  Every function here is
total: malformed input yields ``None`` (or the input unchanged), never an
exception, so the classifier, the normalizer and the thumbnail resolver can
all lean on it.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import NamedTuple
from urllib.parse import parse_qs, urlsplit

# YouTube ids are normally 11 characters; shorter test ids are tolerated.
_YOUTUBE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_YOUTUBE_PATH_RE = re.compile(r"^/(?:shorts|embed|v|live)/([A-Za-z0-9_-]+)/?$")
_VIMEO_BARE_RE = re.compile(r"^/(\d+)/?$")
_VIMEO_PLAYER_RE = re.compile(r"^/video/(\d+)/?$")
_VIMEO_ANY_ID_RE = re.compile(r"/(\d+)(?=/|$)")
_DAILYMOTION_RE = re.compile(r"^/video/([A-Za-z0-9]+)")
_DAILY_SHORT_RE = re.compile(r"^/([A-Za-z0-9]+)/?$")
_TWITCH_VOD_RE = re.compile(r"^/videos/(\d+)/?$")

_YOUTUBE_HOSTS = frozenset({"youtube.com", "m.youtube.com", "music.youtube.com"})
_YOUTUBE_SHORT_HOST = "youtu.be"
_VIMEO_HOST = "vimeo.com"
_VIMEO_PLAYER_HOST = "player.vimeo.com"
_DAILYMOTION_HOST = "dailymotion.com"
_DAILYMOTION_SHORT_HOST = "dai.ly"
_TWITCH_HOSTS = frozenset({"twitch.tv", "m.twitch.tv"})


class Platform(str, Enum):
    """Video hosting platforms whose page URLs are accepted as videos."""

    YOUTUBE = "youtube"
    VIMEO = "vimeo"
    DAILYMOTION = "dailymotion"
    TWITCH = "twitch"


class UrlParts(NamedTuple):
    """The pieces of a web URL the provider rules look at."""

    scheme: str
    host: str
    path: str
    query: str


def ensure_scheme(url: str) -> str:
    """Return *url* trimmed, with ``https://`` prepended when no scheme is
    present and ``http://`` upgraded to ``https://``."""
    url = url.strip()
    lowered = url.lower()
    if lowered.startswith("https://"):
        return "https://" + url[8:]
    if lowered.startswith("http://"):
        return "https://" + url[7:]
    if "://" not in url:
        return "https://" + url.lstrip("/")
    return url


def split_url(url: str) -> UrlParts | None:
    """Split *url* (scheme optional) into lower-cased host and raw path.

    A leading ``www.`` is dropped from the host.  Returns ``None`` when the
    text cannot be parsed or has no host.
    """
    try:
        parts = urlsplit(ensure_scheme(url))
        host = (parts.hostname or "").lower()
    except ValueError:
        return None
    if not host:
        return None
    if host.startswith("www."):
        host = host[4:]
    return UrlParts(parts.scheme.lower(), host, parts.path or "/", parts.query)


def youtube_id(url: str) -> str | None:
    """Extract the video id from any supported YouTube URL form."""
    parts = split_url(url)
    if parts is None:
        return None
    if parts.host == _YOUTUBE_SHORT_HOST:
        candidate = parts.path.strip("/").split("/")[0]
        return candidate if _YOUTUBE_ID_RE.match(candidate) else None
    if parts.host not in _YOUTUBE_HOSTS:
        return None
    if parts.path.rstrip("/") == "/watch":
        values = parse_qs(parts.query).get("v", [])
        if values and _YOUTUBE_ID_RE.match(values[0]):
            return values[0]
        return None
    match = _YOUTUBE_PATH_RE.match(parts.path)
    return match.group(1) if match else None


def vimeo_id(url: str) -> str | None:
    """Extract the numeric id from a Vimeo page or player URL."""
    parts = split_url(url)
    if parts is None:
        return None
    if parts.host == _VIMEO_PLAYER_HOST:
        match = _VIMEO_PLAYER_RE.match(parts.path)
        return match.group(1) if match else None
    if parts.host != _VIMEO_HOST:
        return None
    found = _VIMEO_ANY_ID_RE.findall(parts.path)
    return found[-1] if found else None


def vimeo_bare_id(url: str) -> str | None:
    """Return the id of a bare ``vimeo.com/{id}`` URL, else ``None``."""
    parts = split_url(url)
    if parts is None or parts.host != _VIMEO_HOST:
        return None
    match = _VIMEO_BARE_RE.match(parts.path)
    return match.group(1) if match else None


def dailymotion_id(url: str) -> str | None:
    parts = split_url(url)
    if parts is None:
        return None
    if parts.host == _DAILYMOTION_SHORT_HOST:
        match = _DAILY_SHORT_RE.match(parts.path)
    elif parts.host in (_DAILYMOTION_HOST, "m." + _DAILYMOTION_HOST):
        match = _DAILYMOTION_RE.match(parts.path)
    else:
        return None
    return match.group(1) if match else None


def twitch_vod_id(url: str) -> str | None:
    parts = split_url(url)
    if parts is None or parts.host not in _TWITCH_HOSTS:
        return None
    match = _TWITCH_VOD_RE.match(parts.path)
    return match.group(1) if match else None


def detect_platform(url: str) -> Platform | None:
    """Return the hosting platform of a video page URL, or ``None``."""
    if youtube_id(url):
        return Platform.YOUTUBE
    if vimeo_id(url):
        return Platform.VIMEO
    if dailymotion_id(url):
        return Platform.DAILYMOTION
    if twitch_vod_id(url):
        return Platform.TWITCH
    return None


def embed_url(url: str) -> str:
    """Return the iframe-embeddable form of a platform video URL.

    YouTube URLs become ``https://www.youtube.com/embed/{id}``, Vimeo URLs
    become ``https://player.vimeo.com/video/{id}``, Dailymotion URLs become
    ``https://www.dailymotion.com/embed/video/{id}``.  Anything else is
    returned unchanged.
    """
    vid = youtube_id(url)
    if vid:
        return f"https://www.youtube.com/embed/{vid}"
    vid = vimeo_id(url)
    if vid:
        return f"https://player.vimeo.com/video/{vid}"
    vid = dailymotion_id(url)
    if vid:
        return f"https://www.dailymotion.com/embed/video/{vid}"
    return url


def host_matches(host: str, domains: list[str] | frozenset[str] | tuple[str, ...]) -> bool:
    """``True`` when *host* equals one of *domains* or is a subdomain of one."""
    host = host.lower()
    return any(host == d or host.endswith("." + d) for d in domains)


def provider_label(url: str, storage_host: str = "res.cloudinary.com") -> str:
    """Short human label for a video's origin, shown on preview tiles."""
    platform = detect_platform(url)
    if platform == Platform.YOUTUBE:
        return "YouTube"
    if platform == Platform.VIMEO:
        return "Vimeo"
    if platform == Platform.DAILYMOTION:
        return "Dailymotion"
    if platform == Platform.TWITCH:
        return "Twitch"
    parts = split_url(url)
    if parts is not None and host_matches(parts.host, (storage_host.lower(),)):
        return "Uploaded"
    return "Video"
