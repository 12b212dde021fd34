"""Tests for required-field validation."""

from dataclasses import dataclass

from envi import FieldRequiredError
from envi import ValidationError
from envi import setting
from envi.validation import is_zero
from envi.validation import validate


@dataclass
class Credentials:
    user: str = setting(key="USER", required=True)
    password: str = setting(key="PASSWORD", required=True)
    port: int = setting(key="PORT")


@dataclass
class Root:
    name: str = setting(default="svc", required=True)
    token: str = setting(env="TOKEN", required=True)
    credentials: Credentials | None = setting(default="creds.yaml")


class TestIsZero:
    """Test zero value detection."""

    def test_scalars(self):
        """Test scalar zero values."""
        assert is_zero(None)
        assert is_zero("")
        assert is_zero(0)
        assert is_zero(0.0)
        assert is_zero(False)
        assert not is_zero("x")
        assert not is_zero(1)
        assert not is_zero(True)

    def test_records(self):
        """Test a record is zero when all its fields are."""
        assert is_zero(Credentials())
        assert is_zero(Credentials(user="", port=0))
        assert not is_zero(Credentials(port=1))


class TestValidate:
    """Test validate function."""

    def test_passes(self):
        """Test a complete record has no violations."""
        record = Root(name="svc", token="t", credentials=Credentials(user="u", password="p"))
        assert validate(record) == []

    def test_collects_all_violations(self):
        """Test violations across nested records are collected in order."""
        record = Root(name="svc", token="", credentials=Credentials(user="u"))
        errors = validate(record)

        assert [err.field for err in errors] == ["token", "credentials.password"]
        assert all(isinstance(err, FieldRequiredError) for err in errors)

    def test_unset_nested_record_not_descended(self):
        """Test a missing nested record produces no nested violations."""
        record = Root(name="svc", token="t")
        assert validate(record) == []

    def test_optional_zero_fields_ignored(self):
        """Test non-required zero fields are fine."""
        record = Root(name="svc", token="t", credentials=Credentials(user="u", password="p", port=0))
        assert validate(record) == []


class TestValidationError:
    """Test the aggregate error."""

    def test_one_violation_per_line(self):
        """Test the message lists every violation on its own line."""
        err = ValidationError([FieldRequiredError("token"), FieldRequiredError("credentials.password")])
        assert str(err).splitlines() == [
            "field token is required",
            "field credentials.password is required",
        ]
        assert len(err.errors) == 2
