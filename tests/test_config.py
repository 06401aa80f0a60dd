"""Tests for configuration defaults and env overrides."""

import importlib
from pathlib import Path

import pytest
from pydantic import ValidationError

import config


def test_defaults():
    assert config.DEFAULT_DOWNLOAD_CONFIG.max_retries == 3
    assert config.DEFAULT_DOWNLOAD_CONFIG.retry_delay == 2.0
    assert config.DEFAULT_DOWNLOAD_CONFIG.concurrent_downloads == 5
    assert config.DEFAULT_DOWNLOAD_CONFIG.request_timeout == 30.0
    assert config.DEFAULT_WEBP_CONFIG.resolutions == [80, 88, 96, 108, 112, 120, 128, 136, 144, 256]
    assert config.DEFAULT_WEBP_CONFIG.concurrent_conversions == 3
    assert config.DEFAULT_ANIMATED_CONFIG.ffmpeg_options == {
        "lossless": "0",
        "compression_level": "6",
        "quality": "100",
        "loop": "0",
    }
    assert config.DEFAULT_SVG_CONFIG.old_color == "#212121"
    assert config.DEFAULT_ANIMATED_CONFIG.output_dir is None


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("EMOJI_ASSETS_DIR", str(tmp_path / "assets"))
    monkeypatch.setenv("EMOJI_METADATA_FILE", str(tmp_path / "catalog.json"))
    try:
        reloaded = importlib.reload(config)
        assert reloaded.ASSETS_DIR == tmp_path / "assets"
        assert reloaded.DownloadConfig().output_dir == tmp_path / "assets"
        assert reloaded.ReorganizeConfig().metadata_file == tmp_path / "catalog.json"
        assert reloaded.AnimatedConfig().output_dir is None
    finally:
        monkeypatch.undo()
        importlib.reload(config)


def test_metadata_default_location(monkeypatch):
    monkeypatch.delenv("EMOJI_METADATA_FILE", raising=False)
    try:
        reloaded = importlib.reload(config)
        expected = Path(reloaded.__file__).parent / "inputs" / "xsalazar-fluent-emoji" / "metadata.json"
        assert reloaded.METADATA_FILE == expected
    finally:
        monkeypatch.undo()
        importlib.reload(config)


def test_model_copy_overrides_single_field():
    custom = config.DEFAULT_WEBP_CONFIG.model_copy(update={"quality": 80})
    assert custom.quality == 80
    assert config.DEFAULT_WEBP_CONFIG.quality == 100


def test_batch_sizes_must_be_positive():
    with pytest.raises(ValidationError):
        config.DownloadConfig(concurrent_downloads=0)
    with pytest.raises(ValidationError):
        config.DownloadConfig(file_concurrency=0)
    with pytest.raises(ValidationError):
        config.WebpConfig(concurrent_conversions=0)
    with pytest.raises(ValidationError):
        config.AnimatedConfig(concurrent_conversions=-1)
