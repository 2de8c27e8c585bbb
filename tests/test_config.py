import os
from pathlib import Path

import pytest

from tattoo_preview.config import ENV_PREFIX, AppConfig, load_config
from tattoo_preview.errors import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name)


@pytest.fixture
def no_dotenv(tmp_path) -> Path:
    return tmp_path / "absent.env"


def test_defaults(no_dotenv):
    config = load_config(no_dotenv)
    assert config == AppConfig()
    assert config.canvas.size == (800, 600)
    assert config.canvas.render_delay_ms == 16
    assert config.segmentation.enabled is True
    assert config.segmentation.skin_labels == ("body-skin", "face-skin")
    assert config.logging.log_dir is None


def test_environment_overrides(monkeypatch, no_dotenv, tmp_path):
    monkeypatch.setenv("TATTOO_PREVIEW_CANVAS_WIDTH", "1024")
    monkeypatch.setenv("TATTOO_PREVIEW_SEGMENTATION_ENABLED", "off")
    monkeypatch.setenv("TATTOO_PREVIEW_LOG_LEVEL", "debug")
    monkeypatch.setenv("TATTOO_PREVIEW_LOG_DIR", str(tmp_path / "logs"))

    config = load_config(no_dotenv)

    assert config.canvas.size == (1024, 600)
    assert config.segmentation.enabled is False
    assert config.logging.level == "DEBUG"
    assert config.logging.log_dir == tmp_path / "logs"


def test_dotenv_file_is_read(monkeypatch, tmp_path):
    # регистрируем переменную в monkeypatch, чтобы load_dotenv не оставил её после теста
    monkeypatch.setenv("TATTOO_PREVIEW_EXPORT_DIR", "placeholder")
    monkeypatch.delenv("TATTOO_PREVIEW_EXPORT_DIR")
    env_file = tmp_path / ".env"
    env_file.write_text("TATTOO_PREVIEW_EXPORT_DIR=renders\n", encoding="utf-8")

    assert load_config(env_file).export.output_dir == Path("renders")


def test_non_integer_value(monkeypatch, no_dotenv):
    monkeypatch.setenv("TATTOO_PREVIEW_CANVAS_HEIGHT", "tall")
    with pytest.raises(ConfigurationError) as exc_info:
        load_config(no_dotenv)
    assert exc_info.value.context == {"config_key": "TATTOO_PREVIEW_CANVAS_HEIGHT"}


def test_out_of_range_value(monkeypatch, no_dotenv):
    monkeypatch.setenv("TATTOO_PREVIEW_CANVAS_WIDTH", "10")
    with pytest.raises(ConfigurationError, match="canvas/width"):
        load_config(no_dotenv)


def test_unknown_log_level(monkeypatch, no_dotenv):
    monkeypatch.setenv("TATTOO_PREVIEW_LOG_LEVEL", "chatty")
    with pytest.raises(ConfigurationError, match="logging/level"):
        load_config(no_dotenv)
