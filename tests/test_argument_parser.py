"""Tests for token resolution, the cache file and configuration building."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path

import pytest

from argument_parser import parse_arguments, resolve_token
from token_cache import TokenCache, TokenCacheError


def test_cache_write_then_read(tmp_path: Path) -> None:
    """A written value is read back and the file is private."""
    cache = TokenCache(str(tmp_path / 'cache.json'))
    cache.write('abc123')

    assert cache.read() == 'abc123'
    assert stat.S_IMODE(os.stat(cache.path).st_mode) == 0o600


def test_cache_reads_legacy_key(tmp_path: Path) -> None:
    """Cache files from older tools use the AccessToken key."""
    path = tmp_path / 'legacy.json'
    path.write_text(json.dumps({'AccessToken': 'old-value', 'TokenType': 'bearer'}))

    assert TokenCache(str(path)).read() == 'old-value'


@pytest.mark.parametrize('content', ['', '[]', '{"other": 1}', 'not json'])
def test_cache_rejects_bad_files(tmp_path: Path, content: str) -> None:
    """Unusable cache files raise TokenCacheError."""
    path = tmp_path / 'bad.json'
    path.write_text(content)

    with pytest.raises(TokenCacheError):
        TokenCache(str(path)).read()


def test_cache_missing_file(tmp_path: Path) -> None:
    with pytest.raises(TokenCacheError):
        TokenCache(str(tmp_path / 'missing.json')).read()


def test_explicit_value_is_stored_in_cache(tmp_path: Path, monkeypatch) -> None:
    """--token wins and is written to --cache."""
    monkeypatch.setenv('GITHUB_TOKEN', 'from-env')
    cache_file = str(tmp_path / 'cache.json')

    assert resolve_token('explicit', cache_file) == 'explicit'
    assert TokenCache(cache_file).read() == 'explicit'


def test_cache_is_used_without_explicit_value(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv('GITHUB_TOKEN', raising=False)
    cache_file = str(tmp_path / 'cache.json')
    TokenCache(cache_file).write('cached')

    assert resolve_token(None, cache_file) == 'cached'


def test_unreadable_cache_is_an_auth_error(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        resolve_token(None, str(tmp_path / 'missing.json'))
    assert excinfo.value.code == 40


def test_environment_fallback(monkeypatch) -> None:
    monkeypatch.setenv('GITHUB_TOKEN', 'from-env')
    assert resolve_token(None, None) == 'from-env'


def test_no_credentials_is_a_usage_error(monkeypatch) -> None:
    monkeypatch.delenv('GITHUB_TOKEN', raising=False)
    with pytest.raises(SystemExit) as excinfo:
        resolve_token(None, None)
    assert excinfo.value.code == 2


def test_parse_arguments_builds_config(tmp_path: Path, monkeypatch) -> None:
    """Flags end up in an immutable configuration with an absolute backup root."""
    monkeypatch.chdir(tmp_path)

    cfg = parse_arguments(['--token', 'abc', '--to', 'backups', '--verbose', '--workers', '3'])

    assert cfg.github.token == 'abc'
    assert cfg.github.api_url == 'https://api.github.com'
    assert cfg.backup.backup_dir == str(tmp_path / 'backups')
    assert cfg.backup.verbose is True
    assert cfg.backup.workers == 3
    with pytest.raises(Exception):
        cfg.backup.workers = 10


def test_parse_arguments_defaults_to_current_directory(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    cfg = parse_arguments(['--token', 'abc'])

    assert cfg.backup.backup_dir == str(tmp_path)
    assert cfg.backup.verbose is False


@pytest.mark.parametrize(
    'argv',
    [
        ['--token', 'abc', '--workers', '0'],
        ['--token', 'abc', '--api-url', 'ftp://example.com'],
    ],
)
def test_parse_arguments_rejects_invalid_values(argv) -> None:
    with pytest.raises(SystemExit) as excinfo:
        parse_arguments(argv)
    assert excinfo.value.code == 2
