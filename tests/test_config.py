# tests/test_config.py
"""Tests for collection configuration."""

import tempfile
from pathlib import Path

import pytest

from artmint.config import CollectionConfig


@pytest.fixture
def home():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class TestCollectionConfig:
    """Test CollectionConfig class."""

    def test_defaults_without_file(self, home):
        config = CollectionConfig.load(home)
        assert config.store_path == home / "collection"
        assert config.identities_path == home / "identities"
        assert config.signer == ""

    def test_save_and_load(self, home):
        config = CollectionConfig(name="Gallery", symbol="GAL", signer="giles", home=home)
        config.save()

        loaded = CollectionConfig.load(home)
        assert loaded.name == "Gallery"
        assert loaded.symbol == "GAL"
        assert loaded.signer == "giles"

    def test_from_yaml(self):
        yaml_content = """
name: Gallery
store_dir: /srv/gallery
log_level: debug
"""
        config = CollectionConfig.from_yaml(yaml_content, home=Path("/home/x"))
        assert config.store_path == Path("/srv/gallery")
        assert config.log_level == "DEBUG"
        assert config.symbol == ""

    def test_home_from_environment(self, home, monkeypatch):
        monkeypatch.setenv("ARTMINT_HOME", str(home))
        assert CollectionConfig.load().home == home

    def test_rejects_non_mapping(self):
        with pytest.raises(ValueError):
            CollectionConfig.from_yaml("- a\n- b\n")
