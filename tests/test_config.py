import pytest

from config import CHAIN_POLYGON_AMOY, ClientConfig
from exceptions import ConfigurationError


def full_config(**overrides):
    values = dict(
        sender="0xC81D8Fa063a7c73795C8455F6b766DD245d8F47a",
        sender_signer=object(),
        rpc_url="https://rpc.example",
        paymaster_url="https://paymaster.example",
        bundler_url="https://bundler.example",
        chain_id=CHAIN_POLYGON_AMOY,
    )
    values.update(overrides)
    return ClientConfig(**values)


def test_complete_config_is_valid():
    full_config().validate()


@pytest.mark.parametrize("missing", ["sender", "sender_signer", "paymaster_url", "bundler_url", "chain_id"])
def test_missing_required_value(missing):
    with pytest.raises(ConfigurationError, match=missing):
        full_config(**{missing: None}).validate()


@pytest.mark.parametrize("overrides", [
    {"entry_point_version": "0.6"},
    {"gas_price_tier": "instant"},
    {"receipt_poll_attempts": 0},
    {"receipt_poll_interval": -1},
])
def test_invalid_values(overrides):
    with pytest.raises(ConfigurationError):
        full_config(**overrides).validate()


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        full_config(sender=None).validate()


def test_from_env(monkeypatch):
    monkeypatch.setenv("ZERODEV_SENDER", "0xC81D8Fa063a7c73795C8455F6b766DD245d8F47a")
    monkeypatch.setenv("ZERODEV_RPC_URL", "https://rpc.example")
    monkeypatch.setenv("ZERODEV_PAYMASTER_URL", "https://paymaster.example")
    monkeypatch.setenv("ZERODEV_BUNDLER_URL", "https://bundler.example")
    monkeypatch.setenv("ZERODEV_CHAIN_ID", "137")
    monkeypatch.setenv("ZERODEV_GAS_PRICE_TIER", "standard")
    signer = object()

    config = ClientConfig.from_env(signer)

    assert config.sender_signer is signer
    assert config.chain_id == 137
    assert config.gas_price_tier == "standard"
    assert config.bundler_url == "https://bundler.example"


def test_from_env_defaults_to_amoy(monkeypatch):
    monkeypatch.setenv("ZERODEV_SENDER", "0xC81D8Fa063a7c73795C8455F6b766DD245d8F47a")
    monkeypatch.setenv("ZERODEV_RPC_URL", "https://rpc.example")
    monkeypatch.setenv("ZERODEV_PAYMASTER_URL", "https://paymaster.example")
    monkeypatch.setenv("ZERODEV_BUNDLER_URL", "https://bundler.example")
    monkeypatch.delenv("ZERODEV_CHAIN_ID", raising=False)
    monkeypatch.delenv("ZERODEV_GAS_PRICE_TIER", raising=False)

    config = ClientConfig.from_env(object())

    assert config.chain_id == 80002
    assert config.gas_price_tier == "fast"


def test_from_env_requires_urls(monkeypatch):
    for name in ("ZERODEV_SENDER", "ZERODEV_RPC_URL", "ZERODEV_PAYMASTER_URL", "ZERODEV_BUNDLER_URL"):
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(ConfigurationError):
        ClientConfig.from_env(object())


def test_from_env_rejects_bad_chain_id(monkeypatch):
    monkeypatch.setenv("ZERODEV_CHAIN_ID", "amoy")

    with pytest.raises(ConfigurationError):
        ClientConfig.from_env(object())
