"""URL canonicalization.

Rewrites accepted URLs so that every spelling of a reference to the same
remote asset compares equal.  :func:`normalize_url` is idempotent, which the
collection's duplicate check depends on.
"""

from __future__ import annotations

from .providers import ensure_scheme, vimeo_bare_id, youtube_id


def normalize_url(url: str) -> str:
    """Return the canonical form of an accepted media URL.

    * A missing scheme becomes ``https://``; ``http://`` is upgraded.
    * YouTube watch, short-link, shorts, embed and mobile forms become
      ``https://www.youtube.com/watch?v={id}``.
    * A bare ``vimeo.com/{id}`` becomes ``https://vimeo.com/{id}``; player
      embeds (``player.vimeo.com/video/{id}``) keep their form.
    * Everything else passes through unchanged apart from the scheme.

    Parameters
    ----------
    url:
        A URL already classified as an image, direct video, or platform
        video.

    Returns
    -------
    str
        The canonical URL.
    """
    url = ensure_scheme(url)

    vid = youtube_id(url)
    if vid:
        return f"https://www.youtube.com/watch?v={vid}"

    vid = vimeo_bare_id(url)
    if vid:
        return f"https://vimeo.com/{vid}"

    return url


def dedup_key(url: str) -> str:
    """Key under which two URLs count as the same item."""
    return normalize_url(url)
