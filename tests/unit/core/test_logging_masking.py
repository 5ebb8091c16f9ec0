"""Unit tests for the structlog sensitive-data masking processor."""

import pytest

from config.settings import mask_sensitive_data

pytestmark = pytest.mark.unit


class TestSensitiveDataMasking:
    def test_email_masked_in_free_text(self):
        event_dict = {"event": "test", "detail": "order for jordan@example.com placed"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "jordan@example.com" not in result["detail"]
        assert "***MASKED***" in result["detail"]

    def test_password_masked_in_log_output(self):
        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked_in_log_output(self):
        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]

    def test_authorization_header_masked(self):
        event_dict = {"event": "test", "header": "Authorization: Bearer-xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "Bearer-xyz" not in result["header"]

    def test_non_string_values_untouched(self):
        event_dict = {"event": "order.placed", "line_count": 3, "total": None}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["line_count"] == 3
        assert result["total"] is None

    def test_plain_event_untouched(self):
        event_dict = {"event": "order.placed", "order_number": "ORD-20250101-ABCDEF0123"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["order_number"] == "ORD-20250101-ABCDEF0123"
