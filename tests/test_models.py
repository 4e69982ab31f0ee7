import pytest

from difm.errors import UnknownEnumValue
from difm.models import JobStatus, JobSummary, Role, UserProfile


def test_role_parse_accepts_members():
    assert Role.parse("PROVIDER") is Role.PROVIDER


@pytest.mark.parametrize("value", ["provider", "OWNER", "", None])
def test_role_parse_rejects_unknown(value):
    with pytest.raises(UnknownEnumValue) as exc:
        Role.parse(value)
    assert exc.value.enum_name == "Role"


def test_unknown_enum_value_is_a_value_error():
    with pytest.raises(ValueError):
        JobStatus.parse("ARCHIVED")


def test_profile_from_row_drops_internal_fields():
    row = {
        "id": "u1",
        "email": "a@b.com",
        "name": "Ann",
        "role": "ADMIN",
        "isOnline": 0,
        "passwordHash": "secret",
        "latitude": 1.0,
    }
    profile = UserProfile.from_row(row)
    assert profile.model_dump(by_alias=True, mode="json") == {
        "id": "u1",
        "email": "a@b.com",
        "name": "Ann",
        "role": "ADMIN",
        "isOnline": False,
    }


def test_profile_from_row_rejects_unknown_role():
    row = {"id": "u1", "email": "a@b.com", "name": "Ann", "role": "GUEST", "isOnline": True}
    with pytest.raises(UnknownEnumValue):
        UserProfile.from_row(row)


def test_job_summary_from_row():
    job = JobSummary.from_row({"id": 7, "status": "PAID", "fixedPrice": 40, "description": None})
    assert job.id == "7"
    assert job.status is JobStatus.PAID
    assert job.model_dump(by_alias=True, mode="json")["fixedPrice"] == 40.0
