import pytest

from mindweave import config


def test_config_workflow(tmp_path):
    mock_config_dir = tmp_path / ".config" / "mindweave"
    mock_config_file = mock_config_dir / "config.json"

    with pytest.MonkeyPatch.context() as mp:
        mp.setattr(config, "CONFIG_DIR", mock_config_dir)
        mp.setattr(config, "CONFIG_FILE", mock_config_file)

        # 1. Load non-existent config
        assert config.load_config() == {}
        assert config.get_default_user() is None

        # 2. Save config
        config.save_config("user_id", "user-123")
        assert mock_config_file.exists()

        # 3. Load config
        assert config.load_config()["user_id"] == "user-123"
        assert config.get_default_user() == "user-123"

        # 4. Save another key
        config.save_config("export", "/tmp/export.json")
        assert config.load_config()["export"] == "/tmp/export.json"
        assert config.get_default_user() == "user-123"


def test_load_corrupt_config(tmp_path):
    mock_config_dir = tmp_path / "corrupt"
    mock_config_file = mock_config_dir / "config.json"
    mock_config_dir.mkdir()
    mock_config_file.write_text("invalid json{")

    with pytest.MonkeyPatch.context() as mp:
        mp.setattr(config, "CONFIG_DIR", mock_config_dir)
        mp.setattr(config, "CONFIG_FILE", mock_config_file)

        assert config.load_config() == {}


def test_anthropic_api_key(monkeypatch):
    assert config.get_anthropic_api_key() is None

    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    assert config.get_anthropic_api_key() is None

    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    assert config.get_anthropic_api_key() == "sk-test"
