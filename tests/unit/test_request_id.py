"""Unit tests for request ID handling."""

import uuid

import pytest

from pricesurvey.api.middleware.request_id import accept_request_id


class TestAcceptRequestId:

    @pytest.mark.parametrize("value", ["req-123", "abc.DEF_9", "a" * 64])
    def test_safe_ids_kept(self, value):
        assert accept_request_id(value) == value

    @pytest.mark.parametrize(
        "value",
        [None, "", "a" * 65, "evil\nlevel=ERROR fake", "id with spaces", "quote\"d", "trailing\n"],
    )
    def test_unsafe_ids_replaced(self, value):
        replaced = accept_request_id(value)

        assert replaced != value
        uuid.UUID(replaced)
