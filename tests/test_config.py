"""Tests for application configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from ragpdf.config import AppConfig, read_api_key, read_base_url
from ragpdf.errors import ConfigurationError


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self) -> None:
        """Should create config with default values."""
        config = AppConfig()

        assert config.document_path is None
        assert config.model_name == "gpt-3.5-turbo"
        assert config.embedding_model == "text-embedding-ada-002"
        assert config.chunk_size == 500
        assert config.chunk_overlap == 50
        assert config.top_k == 2
        assert config.validate() is config

    def test_custom_config(self) -> None:
        """Should create config with custom values."""
        config = AppConfig(
            document_path=Path("/docs/paper.pdf"),
            model_name="gpt-4o-mini",
            chunk_size=200,
            chunk_overlap=20,
        )

        assert config.document_path == Path("/docs/paper.pdf")
        assert config.model_name == "gpt-4o-mini"
        assert config.chunk_size == 200
        assert config.chunk_overlap == 20

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"chunk_size": 0}, "chunk size must be positive"),
            ({"chunk_size": 10, "chunk_overlap": 10}, "must be less than"),
            ({"chunk_size": 10, "chunk_overlap": 11}, "must be less than"),
            ({"chunk_overlap": -1}, "must not be negative"),
            ({"top_k": 0}, "top_k"),
            ({"token_budget": 0}, "token_budget"),
            ({"workers": 0}, "workers"),
            ({"embed_batch_size": 0}, "embed_batch_size"),
            ({"max_attempts": 0}, "max_attempts"),
            ({"request_timeout": 0}, "request_timeout"),
            ({"embedding_backend": "faiss"}, "unknown embedding backend"),
            ({"exit_tokens": ("  ",)}, "exit token"),
        ],
    )
    def test_validate_rejects(self, overrides: dict, message: str) -> None:
        """Should raise ConfigurationError for unusable settings."""
        with pytest.raises(ConfigurationError, match=message):
            AppConfig(**overrides).validate()

    def test_is_exit_token(self) -> None:
        """Should match exit tokens ignoring case and surrounding whitespace."""
        config = AppConfig()

        assert config.is_exit_token("exit")
        assert config.is_exit_token("  QUIT \n")
        assert not config.is_exit_token("exit now")
        assert not config.is_exit_token("")


class TestCredentials:
    """Test environment lookups."""

    def test_read_api_key(self) -> None:
        assert read_api_key({"OPENAI_API_KEY": " sk-test "}) == "sk-test"

    @pytest.mark.parametrize("env", [{}, {"OPENAI_API_KEY": "   "}])
    def test_missing_api_key(self, env: dict) -> None:
        """Should fail at startup without a credential."""
        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            read_api_key(env)

    def test_read_api_key_from_process_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")

        assert read_api_key() == "sk-env"

    def test_read_base_url(self) -> None:
        assert read_base_url({}) is None
        assert read_base_url({"OPENAI_BASE_URL": "http://localhost:8080/v1"}) == (
            "http://localhost:8080/v1"
        )
