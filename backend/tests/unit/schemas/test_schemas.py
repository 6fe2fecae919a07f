"""
Unit Tests for request schemas
"""
from datetime import datetime, timezone, timedelta

import pytest
from pydantic import ValidationError

from app.models.user import UserRole
from app.schemas.auth import UserRegister
from app.schemas.event import EventCreate
from app.schemas.job import JobApplicationCreate
from app.schemas.network import ConnectionUpdate
from app.schemas.pitch import PitchCreate
from app.schemas.user import UserResponse


def registration(**overrides) -> dict:
    data = {
        "username": "asha_rao",
        "password": "Founder2024pass",
        "name": "Asha Rao",
        "email": "asha@example.in",
        "role": "founder",
    }
    data.update(overrides)
    return data


class TestUserRegister:

    def test_valid(self):
        user = UserRegister(**registration(username="  asha_rao  "))
        assert user.username == "asha_rao"
        assert user.role == UserRole.FOUNDER

    @pytest.mark.parametrize("username", ["ab", "has space", "emoji😀", "x" * 51])
    def test_bad_username(self, username):
        with pytest.raises(ValidationError):
            UserRegister(**registration(username=username))

    def test_admin_cannot_self_register(self):
        with pytest.raises(ValidationError):
            UserRegister(**registration(role="admin"))

    def test_bad_email(self):
        with pytest.raises(ValidationError):
            UserRegister(**registration(email="not-an-email"))

    @pytest.mark.parametrize("role", ["founder", "student", "job_seeker", "investor", "explorer"])
    def test_public_roles(self, role):
        assert UserRegister(**registration(role=role)).role.value == role


def test_user_response_never_has_password():
    assert "hashed_password" not in UserResponse.model_fields
    assert "password" not in UserResponse.model_fields


class TestEventCreate:

    def test_aware_dates_become_naive_utc(self):
        ist = timezone(timedelta(hours=5, minutes=30))
        event = EventCreate(
            title="Founder's Fireside Chat",
            description="An intimate evening",
            start_date=datetime(2025, 6, 5, 18, 0, tzinfo=ist),
        )
        assert event.start_date == datetime(2025, 6, 5, 12, 30)
        assert event.start_date.tzinfo is None

    def test_end_before_start(self):
        with pytest.raises(ValidationError):
            EventCreate(
                title="Backwards",
                description="x",
                start_date=datetime(2025, 6, 5, 18),
                end_date=datetime(2025, 6, 4, 18),
            )

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValidationError):
            EventCreate(title="t", description="d", start_date=datetime(2025, 6, 5), capacity=0)


def test_connection_update_only_accepts_answers():
    assert ConnectionUpdate(status="accepted").status == "accepted"
    with pytest.raises(ValidationError):
        ConnectionUpdate(status="pending")


def test_application_phone_too_short():
    with pytest.raises(ValidationError):
        JobApplicationCreate(phone="12-34")
    assert JobApplicationCreate(phone="+91 98765 43210").phone == "+91 98765 43210"


def test_pitch_defaults_to_idea():
    assert PitchCreate(name="KrishiTech", description="Soil sensors").status.value == "idea"
