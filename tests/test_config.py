"""Tests for environment-driven configuration."""

import pytest

from cogs.chatter.config import ChatterConfig, ProviderConfig
from cogs.chatter.exceptions import ConfigurationException

ENV_VARS = (
    "DISCORD_TOKEN",
    "XAI_API_KEY",
    "OPENAI_API_KEY",
    "COMMAND_PREFIX",
    "LOG_LEVEL",
    "SHUTDOWN_GRACE_SECONDS",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestFromEnv:

    def test_defaults(self, clean_env):
        config = ChatterConfig.from_env(env_file=None)

        assert config.discord_token is None
        assert config.command_prefix == "!"
        assert config.logging.log_level == "INFO"
        assert config.delivery.shutdown_grace_period == 30.0
        assert set(config.providers) == {"grok", "openai"}

    def test_values_are_read(self, clean_env):
        clean_env.setenv("DISCORD_TOKEN", "token")
        clean_env.setenv("XAI_API_KEY", "xai")
        clean_env.setenv("OPENAI_API_KEY", "oai")
        clean_env.setenv("LOG_LEVEL", "debug")
        clean_env.setenv("SHUTDOWN_GRACE_SECONDS", "5")

        config = ChatterConfig.from_env(env_file=None)

        assert config.discord_token == "token"
        assert config.providers["grok"].api_key == "xai"
        assert config.providers["openai"].api_key == "oai"
        assert config.logging.log_level == "DEBUG"
        assert config.delivery.shutdown_grace_period == 5.0

    def test_only_token_and_key_are_required(self, clean_env):
        clean_env.setenv("DISCORD_TOKEN", "token")
        clean_env.setenv("XAI_API_KEY", "xai")
        clean_env.setenv("DISCORD_POLITICS_CHANNEL", "")

        config = ChatterConfig.from_env(env_file=None)
        config.validate()

        assert not hasattr(config, "politics_channel")

    def test_provider_endpoints(self, clean_env):
        providers = ChatterConfig.from_env(env_file=None).providers

        assert providers["grok"].url == "https://api.x.ai/v1/chat/completions"
        assert providers["grok"].model == "grok-3"
        assert providers["openai"].url == "https://api.openai.com/v1/chat/completions"
        assert providers["openai"].model == "gpt-4o"


class TestValidate:

    @staticmethod
    def config(token="token", grok_key="xai", openai_key=None):
        return ChatterConfig(
            discord_token=token,
            providers={
                "grok": ProviderConfig("grok", grok_key, "https://grok.test", "grok-3", "grok-vision-beta"),
                "openai": ProviderConfig("openai", openai_key, "https://openai.test", "gpt-4o", "gpt-4o"),
            },
        )

    def test_valid_config(self):
        self.config().validate()
        self.config(grok_key=None, openai_key="oai").validate()

    def test_missing_token(self):
        with pytest.raises(ConfigurationException) as exc_info:
            self.config(token=None).validate()
        assert exc_info.value.field == "DISCORD_TOKEN"

    def test_missing_all_keys(self):
        with pytest.raises(ConfigurationException, match="at least one AI API key"):
            self.config(grok_key=None, openai_key=None).validate()

    def test_provider_config_validity(self):
        assert ProviderConfig("grok", "key", "https://grok.test", "grok-3", "v").is_valid()
        assert not ProviderConfig("grok", None, "https://grok.test", "grok-3", "v").is_valid()
