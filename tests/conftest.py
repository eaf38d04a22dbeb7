"""Shared pytest fixtures for all tests."""

import os
from datetime import timedelta

import pytest
from cli.config import Config
from courier.config import CourierSettings


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .courier directory
    """
    config_dir = tmp_path / '.courier'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def backup_folder(tmp_path):
    """Empty backup folder."""
    folder = tmp_path / 'backups'
    folder.mkdir()
    return folder


@pytest.fixture
def publish_root(tmp_path):
    """Empty publish root on the same filesystem as the backup folder."""
    root = tmp_path / 'publish'
    root.mkdir()
    return root


@pytest.fixture
def write_backup(backup_folder):
    """
    Factory writing a backup file with a given size and modification time.

    Returns:
        Callable (name, size, mtime=None) -> Path
    """
    def _write(name, size, mtime=None):
        path = backup_folder / name
        path.write_bytes(bytes(i % 251 for i in range(size)))
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    return _write


@pytest.fixture
def settings(backup_folder, publish_root):
    """Courier settings pointing at the temporary folders."""
    return CourierSettings(
        backup_folder=backup_folder,
        publish_root=publish_root,
        public_base_url='https://example.com/backups/',
        user_cooldown=timedelta(hours=24),
        global_cooldown=timedelta(hours=2),
        max_chunk_bytes=500,
    )
