"""Configuration for the Elasticsearch metrics reporter"""
import socket
from datetime import timedelta
from pathlib import Path
from typing import Dict, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Reporter configuration loaded from the environment"""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # Reporting
    report_interval: int = Field(default=10, ge=1, description="Report interval in seconds")
    reporter_name: str = Field(default="ElasticSearchReporter", description="Reporter name used in logs")
    name_separator: str = Field(default="__", description="Separator between context and metric name")

    # Elasticsearch
    elasticsearch_url: str = Field(default="http://localhost:9200", description="Elasticsearch base URL")
    elasticsearch_index: str = Field(default="metrics", description="Index documents are written to")
    elasticsearch_username: str = Field(default="", description="Basic auth username")
    elasticsearch_password: str = Field(default="", description="Basic auth password")
    elasticsearch_api_key: str = Field(default="", description="Encoded API key")
    request_timeout: float = Field(default=10.0, gt=0, description="HTTP request timeout in seconds")
    flush_timeout: float = Field(default=30.0, gt=0, description="Upper bound for one flush in seconds")

    # Tags
    global_tags_str: str = Field(default="", description="Global tags (k=v, comma-separated)")
    app_name: str = Field(default="", description="Value of the 'app' tag")
    environment_name: str = Field(default="", description="Value of the 'env' tag")

    # Status server
    status_port: int = Field(default=9101, ge=1, le=65535, description="Status server port")
    status_host: str = Field(default="0.0.0.0", description="Status server host")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file")

    @field_validator('elasticsearch_url')
    @classmethod
    def validate_elasticsearch_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError("ELASTICSEARCH_URL must be an http(s) URL")
        return v.rstrip('/')

    @field_validator('elasticsearch_index')
    @classmethod
    def validate_elasticsearch_index(cls, v):
        v = v.strip().lower()
        if not v:
            raise ValueError("ELASTICSEARCH_INDEX is required")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return v

    @property
    def global_tags(self) -> Dict[str, str]:
        """Get global tags as a dict"""
        tags = {}
        for pair in self.global_tags_str.split(','):
            if '=' in pair:
                key, value = pair.split('=', 1)
                if key.strip():
                    tags[key.strip()] = value.strip()
        return tags

    @property
    def report_interval_delta(self) -> timedelta:
        return timedelta(seconds=self.report_interval)

    def get_reporter_tags(self) -> Dict[str, str]:
        """Tags attached to every document: host tags, then configured globals"""
        tags = {"server": socket.gethostname()}
        if self.app_name:
            tags["app"] = self.app_name
        if self.environment_name:
            tags["env"] = self.environment_name
        tags.update(self.global_tags)
        return tags
