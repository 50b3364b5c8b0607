"""Tests for configuration module"""
import os
import tempfile
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch
import pytest
from pydantic import ValidationError

from config import Config


class TestConfig:
    """Test configuration validation and parsing"""

    def test_default_config(self):
        """Test default configuration values"""
        with patch.dict(os.environ, {}, clear=True):
            config = Config()

        assert config.report_interval == 10
        assert config.reporter_name == "ElasticSearchReporter"
        assert config.elasticsearch_url == "http://localhost:9200"
        assert config.elasticsearch_index == "metrics"
        assert config.status_port == 9101
        assert config.log_level == "INFO"
        assert config.log_file is None
        assert config.global_tags == {}

    def test_environment_override(self):
        """Test configuration override from environment variables"""
        env_vars = {
            "REPORT_INTERVAL": "60",
            "REPORTER_NAME": "es",
            "ELASTICSEARCH_URL": "https://es.internal:9200/",
            "ELASTICSEARCH_INDEX": "App-Metrics",
            "STATUS_PORT": "8080",
            "LOG_LEVEL": "debug",
        }

        with patch.dict(os.environ, env_vars):
            config = Config()

            assert config.report_interval == 60
            assert config.reporter_name == "es"
            assert config.elasticsearch_url == "https://es.internal:9200"
            assert config.elasticsearch_index == "app-metrics"
            assert config.status_port == 8080
            assert config.log_level == "DEBUG"

    def test_validation_report_interval(self):
        """Test validation of report interval"""
        with patch.dict(os.environ, {"REPORT_INTERVAL": "0"}):
            with pytest.raises(ValidationError):
                Config()

    def test_validation_status_port(self):
        """Test validation of status port"""
        with patch.dict(os.environ, {"STATUS_PORT": "0"}):
            with pytest.raises(ValidationError):
                Config()

        with patch.dict(os.environ, {"STATUS_PORT": "70000"}):
            with pytest.raises(ValidationError):
                Config()

    def test_validation_elasticsearch_url(self):
        """Test that only http(s) URLs are accepted"""
        with patch.dict(os.environ, {"ELASTICSEARCH_URL": "localhost:9200"}):
            with pytest.raises(ValidationError):
                Config()

    def test_validation_elasticsearch_index(self):
        with patch.dict(os.environ, {"ELASTICSEARCH_INDEX": "  "}):
            with pytest.raises(ValidationError):
                Config()

    def test_validation_log_level(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "verbose"}):
            with pytest.raises(ValidationError):
                Config()

    def test_global_tags_parsing(self):
        """Test global tags parsing"""
        with patch.dict(os.environ, {"GLOBAL_TAGS_STR": "region=eu-west, team = core ,broken,=x"}):
            config = Config()

            assert config.global_tags == {"region": "eu-west", "team": "core"}

    def test_get_reporter_tags(self):
        """Test that host tags are added and configured globals win"""
        env_vars = {
            "APP_NAME": "billing",
            "ENVIRONMENT_NAME": "staging",
            "GLOBAL_TAGS_STR": "env=prod",
        }

        with patch.dict(os.environ, env_vars):
            with patch("socket.gethostname", return_value="host-1"):
                tags = Config().get_reporter_tags()

        assert tags == {"server": "host-1", "app": "billing", "env": "prod"}

    def test_report_interval_delta(self):
        config = Config(report_interval=15)

        assert config.report_interval_delta == timedelta(seconds=15)

    def test_log_file_directory_not_created_on_load(self):
        """Test that loading config has no filesystem side effects"""
        with tempfile.TemporaryDirectory() as tmp_dir:
            log_file = Path(tmp_dir) / "subdir" / "test.log"

            with patch.dict(os.environ, {"LOG_FILE": str(log_file)}):
                config = Config()

                assert config.log_file == log_file
                assert not config.log_file.parent.exists()
