"""Tests for structured errors."""

import pytest
from django.db import DatabaseError

from pointsman import PointsmanError as ExportedError
from pointsman.exceptions import (
    InsufficientBalance,
    InvalidStateTransition,
    NotFound,
    PointsmanError,
    RewardUnavailable,
    StorageError,
    storage_errors,
)


class TestErrors:
    def test_message_and_payload(self):
        error = InsufficientBalance("CUST-001", available=100, required=500)

        assert error.code == "INSUFFICIENT_BALANCE"
        assert str(error) == "[INSUFFICIENT_BALANCE] Insufficient points: 100 available, 500 required"
        assert error.as_dict()["data"] == {
            "customer_code": "CUST-001",
            "available": 100,
            "required": 500,
        }

    def test_default_message(self):
        error = RewardUnavailable("RWD-1")

        assert error.message == "Reward is not available for redemption"
        assert error.data == {"reward_code": "RWD-1"}

    def test_domain_errors_share_a_root(self):
        for error in (
            NotFound("Customer", "X"),
            InvalidStateTransition("RDM-1", "USED", "CANCELLED"),
        ):
            assert isinstance(error, PointsmanError)

        assert ExportedError is PointsmanError

    def test_storage_errors_wraps_database_errors(self):
        with pytest.raises(StorageError) as exc_info:
            with storage_errors("test.op"):
                raise DatabaseError("disk full")

        assert exc_info.value.data == {"operation": "test.op"}
        assert exc_info.value.message == "Storage failure"
        assert not isinstance(exc_info.value, PointsmanError)

    def test_storage_errors_passes_domain_errors(self):
        with pytest.raises(NotFound):
            with storage_errors("test.op"):
                raise NotFound("Reward", "R")
