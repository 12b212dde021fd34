"""Integration tests for Envi."""

from dataclasses import dataclass
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from envi import Envi
from envi import FieldRequiredError
from envi import ValidationError
from envi import setting


@dataclass
class Database:
    host: str = setting(key="host", default="localhost")
    port: int = setting(key="port", default="5432")
    user: str = setting(key="user", required=True)
    password: str = setting(key="password", required=True)


@dataclass
class Features:
    beta: bool = setting(key="beta", default="false")
    rollout: float = setting(key="rollout", default="0.0")


@dataclass
class ApiToken:
    token: str = setting(required=True)


@dataclass
class ServiceConfig:
    name: str = setting(env="ENVI_IT_NAME", default="billing")
    region: str = setting(env="ENVI_IT_REGION", required=True)
    database: Database | None = setting(env="ENVI_IT_DB", default="./database.json", type="json")
    features: Features | None = setting(env="ENVI_IT_FEATURES", default="./features.yml", type="yml")
    api: ApiToken | None = setting(env="ENVI_IT_TOKEN", default="./token", type="text")


class TestEnviIntegration:
    """Integration tests for realistic configuration scenarios."""

    @pytest.fixture
    def config_dir(self, monkeypatch):
        """Create a directory with one file per nested record and point the env at it."""
        with TemporaryDirectory() as tmpdir:
            tmpdir_path = Path(tmpdir)
            (tmpdir_path / "database.json").write_text('{"host": "db.internal", "user": "svc", "password": "pw"}')
            (tmpdir_path / "features.yml").write_text("beta: true\n")
            (tmpdir_path / "token").write_text("tok-123\n")

            for name in ("ENVI_IT_NAME", "ENVI_IT_REGION", "ENVI_IT_DB", "ENVI_IT_FEATURES", "ENVI_IT_TOKEN"):
                monkeypatch.delenv(name, raising=False)
            monkeypatch.chdir(tmpdir_path)
            yield tmpdir_path

    def test_realistic_service_config(self, config_dir, monkeypatch):
        """Test a service config combining env, defaults and three file formats."""
        monkeypatch.setenv("ENVI_IT_REGION", "eu-central-1")

        config = ServiceConfig()
        with Envi() as envi:
            envi.load(config)

        assert config.name == "billing"
        assert config.region == "eu-central-1"
        assert config.database.host == "db.internal"
        assert config.database.port == 5432
        assert config.features.beta is True
        assert config.features.rollout == 0.0
        assert config.api.token == "tok-123"

    def test_env_redirects_file(self, config_dir, monkeypatch):
        """Test an env variable points a record at a different file."""
        staging = config_dir / "staging"
        staging.mkdir()
        (staging / "db.json").write_text('{"host": "staging-db", "user": "stg", "password": "pw"}')
        monkeypatch.setenv("ENVI_IT_REGION", "eu-west-1")
        monkeypatch.setenv("ENVI_IT_DB", str(staging / "db.json"))

        config = ServiceConfig()
        with Envi() as envi:
            envi.load(config)

        assert config.database.host == "staging-db"
        assert config.database.user == "stg"

    def test_all_missing_required_fields_reported(self, config_dir):
        """Test every missing required field appears in one ValidationError."""
        (config_dir / "database.json").write_text('{"host": "db.internal"}')
        (config_dir / "token").write_text("")

        config = ServiceConfig()
        with Envi() as envi:
            with pytest.raises(ValidationError) as exc_info:
                envi.load(config)

        fields = [err.field for err in exc_info.value.errors]
        assert fields == ["region", "database.user", "database.password", "api.token"]
        assert all(isinstance(err, FieldRequiredError) for err in exc_info.value.errors)
        assert len(str(exc_info.value).splitlines()) == 4

    def test_values_populated_despite_validation_error(self, config_dir):
        """Test the record is populated in place even when validation fails."""
        config = ServiceConfig()
        with Envi() as envi:
            with pytest.raises(ValidationError):
                envi.load(config)

        assert config.database.host == "db.internal"
        assert config.api.token == "tok-123"
