"""Unit tests for the exception hierarchy (gymtrainer/exceptions.py)"""
import psycopg
import pytest

from gymtrainer.exceptions import (
    ConnectionError,
    GamificationRuleError,
    GymTrainerError,
    InsufficientPointsError,
    QueryError,
    RecordNotFoundError,
    RewardNotFoundError,
    ValidationError,
    WorkoutStateError,
    wrap_external_exception,
)


def test_base_error_defaults():
    error = GymTrainerError("Something broke", user_id="user_1", operation="award_points")

    assert error.http_status == 500
    assert error.user_message == "An error occurred. Please try again."
    assert error.request_id
    assert error.context == {}
    assert str(error) == "Something broke"


def test_to_dict_shape():
    error = ValidationError("Points amount must be a positive integer", field="amount", value=0)

    payload = error.to_dict()

    assert payload["error"] == "ValidationError"
    assert payload["message"] == "Points amount must be a positive integer"
    assert payload["user_message"] == "Invalid amount: Points amount must be a positive integer"
    assert payload["request_id"] == error.request_id
    assert "timestamp" in payload


@pytest.mark.parametrize("error,status", [
    (ValidationError("bad"), 422),
    (RewardNotFoundError("r1"), 404),
    (InsufficientPointsError("u1", balance=5, required=10), 409),
    (WorkoutStateError("w1", "completed", "complete"), 409),
    (ConnectionError(), 503),
    (QueryError("failed"), 500),
])
def test_http_status_by_class(error, status):
    assert error.http_status == status


def test_rule_errors_share_base():
    error = InsufficientPointsError("u1", balance=50, required=100)

    assert isinstance(error, GamificationRuleError)
    assert error.balance == 50
    assert error.required == 100
    assert "50 more points" in error.user_message


def test_not_found_carries_record():
    error = RewardNotFoundError("gold_bar")

    assert isinstance(error, RecordNotFoundError)
    assert error.record_id == "gold_bar"
    assert error.user_message == "Reward not found."


def test_wrap_operational_error():
    wrapped = wrap_external_exception(psycopg.OperationalError("server closed"), operation="redeem")

    assert isinstance(wrapped, ConnectionError)
    assert wrapped.operation == "redeem"
    assert isinstance(wrapped.cause, psycopg.OperationalError)


def test_wrap_driver_error():
    wrapped = wrap_external_exception(psycopg.Error("syntax error"), operation="award_points", user_id="u1")

    assert isinstance(wrapped, QueryError)
    assert wrapped.user_id == "u1"


def test_wrap_passes_through_own_errors():
    original = ValidationError("bad")

    assert wrap_external_exception(original, operation="x") is original


def test_wrap_unknown_error():
    wrapped = wrap_external_exception(ValueError("boom"), operation="leaderboard")

    assert type(wrapped) is GymTrainerError
    assert wrapped.message == "leaderboard failed: boom"
