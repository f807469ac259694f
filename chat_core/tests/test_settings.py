import pydantic
import pytest

from chat_core.config.settings import Settings


def test_defaults_match_gateway_sampling():
    s = Settings(_env_file=None)
    assert s.gateway_max_tokens == 512
    assert s.gateway_temperature == 0.2
    assert s.gateway_top_p == 0.9
    assert s.summary_max_tokens == 200


def test_yaml_config_and_env_precedence(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("gateway_model: yaml-model\nlocal_model: mistral\n", encoding="utf-8")
    monkeypatch.setenv("CHAT_CONFIG_FILE", str(cfg))
    monkeypatch.setenv("LOCAL_MODEL", "phi3")
    monkeypatch.delenv("GATEWAY_MODEL", raising=False)
    s = Settings(_env_file=None)
    assert s.gateway_model == "yaml-model"
    assert s.local_model == "phi3"


def test_short_api_key_rejected():
    with pytest.raises(pydantic.ValidationError):
        Settings(_env_file=None, gateway_api_key="short")


def test_api_key_for():
    s = Settings(_env_file=None, gateway_api_key="sk-or-1234567890", hosted_model_api_key="  ")
    assert s.api_key_for("gateway") == "sk-or-1234567890"
    assert s.api_key_for("hosted-model") is None
    assert s.api_key_for("local") is None
