"""Tests for mediaingest/utils/redact.py"""

import base64

from mediaingest.utils.redact import redact


class TestRedact:
    def test_upload_preset_key_masked(self):
        assert redact({"upload_preset": "listing-preset"}) == {
            "upload_preset": "<redacted:...eset>",
        }

    def test_short_sensitive_value(self):
        assert redact({"api_key": "abc"}) == {"api_key": "<redacted>"}

    def test_non_string_sensitive_value(self):
        assert redact({"signature": {"nested": 1}}) == {"signature": "<redacted>"}

    def test_multipart_file_tuple(self):
        payload = {"files": {"file": ("kitchen.png", b"\x89PNG" + b"\x00" * 96, "image/png")}}
        assert redact(payload)["files"]["file"] == (
            "kitchen.png", "<binary:100_bytes>", "image/png",
        )

    def test_data_uri_replaced(self):
        encoded = base64.b64encode(b"x" * 30).decode()
        out = redact({"url": f"data:image/png;base64,{encoded}"})
        assert out["url"] == "<data_uri:30_bytes>"

    def test_secret_scrubbed_everywhere(self):
        out = redact(
            {"response": {"error": {"message": "Upload preset listing-preset not found"}}},
            secret="listing-preset",
        )
        message = out["response"]["error"]["message"]
        assert "listing-preset" not in message
        assert "<redacted:...eset>" in message

    def test_lists_recursed(self):
        out = redact({"parts": [b"abc", {"token": "abcdefghij"}]})
        assert out["parts"] == ["<binary:3_bytes>", {"token": "<redacted:...ghij>"}]

    def test_original_not_mutated(self):
        payload = {"upload_preset": "listing-preset", "data": {"folder": "real_estate"}}
        redact(payload)
        assert payload["upload_preset"] == "listing-preset"

    def test_plain_values_untouched(self):
        payload = {"folder": "real_estate", "resource_type": "image", "attempt": 2}
        assert redact(payload) == payload
