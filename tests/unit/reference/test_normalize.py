"""Tests for mediaingest/reference/normalize.py.

Covers canonical forms for YouTube and Vimeo, scheme handling, and the
idempotence property the collection's duplicate check depends on.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mediaingest.reference.normalize import dedup_key, normalize_url

YOUTUBE_FORMS = [
    "https://www.youtube.com/watch?v=ABC123",
    "https://youtube.com/watch?v=ABC123",
    "http://www.youtube.com/watch?v=ABC123",
    "youtube.com/watch?v=ABC123",
    "https://youtu.be/ABC123",
    "youtu.be/ABC123",
    "https://m.youtube.com/watch?v=ABC123&feature=share",
    "https://www.youtube.com/watch?feature=share&v=ABC123",
    "https://www.youtube.com/shorts/ABC123",
    "https://www.youtube.com/embed/ABC123",
    "https://www.youtube.com/v/ABC123",
]


class TestYouTube:
    @pytest.mark.parametrize("url", YOUTUBE_FORMS)
    def test_all_forms_share_one_canonical_url(self, url):
        assert normalize_url(url) == "https://www.youtube.com/watch?v=ABC123"

    def test_equivalent_forms_share_a_dedup_key(self):
        assert dedup_key("https://youtu.be/ABC123") == dedup_key(
            "https://www.youtube.com/watch?v=ABC123"
        )

    def test_real_length_id(self):
        assert (
            normalize_url("https://youtu.be/dQw4w9WgXcQ")
            == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
        )

    def test_different_ids_stay_different(self):
        assert dedup_key("https://youtu.be/AAA") != dedup_key("https://youtu.be/BBB")


class TestVimeo:
    def test_bare_vimeo_gets_https(self):
        assert normalize_url("vimeo.com/123456") == "https://vimeo.com/123456"

    def test_www_vimeo_is_canonicalized(self):
        assert normalize_url("https://www.vimeo.com/123456") == "https://vimeo.com/123456"

    def test_player_embed_keeps_its_form(self):
        url = "https://player.vimeo.com/video/123456"
        assert normalize_url(url) == url


class TestPassThrough:
    def test_image_url_unchanged(self):
        url = "https://example.com/photos/a.jpg?w=400"
        assert normalize_url(url) == url

    def test_missing_scheme_prepended(self):
        assert normalize_url("example.com/a.jpg") == "https://example.com/a.jpg"

    def test_http_upgraded(self):
        assert normalize_url("http://example.com/a.jpg") == "https://example.com/a.jpg"

    def test_surrounding_whitespace_trimmed(self):
        assert normalize_url("  https://example.com/a.jpg \n") == "https://example.com/a.jpg"

    def test_storage_urls_unchanged(self):
        url = "https://res.cloudinary.com/demo/video/upload/v1/real_estate/videos/tour.mp4"
        assert normalize_url(url) == url


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

_youtube_ids = st.text(
    alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_-",
    min_size=1,
    max_size=11,
)

_path_segments = st.lists(
    st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789-_.", min_size=1, max_size=8),
    min_size=0,
    max_size=4,
)


class TestProperties:
    @given(text=st.text(max_size=80))
    @settings(max_examples=300)
    def test_normalize_is_idempotent_on_any_text(self, text):
        once = normalize_url(text)
        assert normalize_url(once) == once

    @given(vid=_youtube_ids, short=st.booleans(), scheme=st.sampled_from(["", "http://", "https://"]))
    def test_youtube_forms_are_equivalent(self, vid, short, scheme):
        url = f"{scheme}youtu.be/{vid}" if short else f"{scheme}www.youtube.com/watch?v={vid}"
        assert normalize_url(url) == f"https://www.youtube.com/watch?v={vid}"

    @given(host=st.sampled_from(["example.com", "cdn.example.org", "images.unsplash.com"]),
           segments=_path_segments)
    def test_generic_urls_are_idempotent(self, host, segments):
        url = f"https://{host}/" + "/".join(segments)
        assert normalize_url(normalize_url(url)) == normalize_url(url)
