"""Tests for token-directory publication."""

import errno
import os
import threading
from datetime import datetime, timedelta, timezone

import pytest

from common.constants import TOKEN_ALPHABET, TOKEN_LENGTH
from courier import publisher
from courier.exceptions import (
    InvalidTokenError,
    PublishError,
    SourceVanishedError,
    TokenSpaceExhaustedError,
)
from courier.locator import locate_latest

BASE_URL = 'https://example.com/backups/'


@pytest.fixture
def backup(backup_folder, write_backup):
    write_backup('backup-2024.tar.gz', 4096)
    return locate_latest(backup_folder)


def token_dirs(root):
    return sorted(p.name for p in root.iterdir())


class TestTokens:

    def test_generated_token_shape(self):
        token = publisher.generate_token()

        assert len(token) == TOKEN_LENGTH
        assert all(c in TOKEN_ALPHABET for c in token)
        assert publisher.is_valid_token(token)

    def test_tokens_differ(self):
        assert len({publisher.generate_token() for _ in range(200)}) == 200

    @pytest.mark.parametrize("value", ['', 'short', '../etc/passw', 'abcdefghijk/', 'abcdefghijklm', 'abc.defghijk'])
    def test_invalid_tokens(self, value):
        assert not publisher.is_valid_token(value)


class TestBuildUrl:

    def test_trailing_slash_is_not_doubled(self):
        url = publisher.build_url(BASE_URL, 'AbCdEf123456', 'backup.tar.gz')
        assert url == 'https://example.com/backups/AbCdEf123456/backup.tar.gz'

    def test_without_trailing_slash(self):
        url = publisher.build_url('https://example.com/backups', 'AbCdEf123456', 'backup.tar.gz')
        assert url == 'https://example.com/backups/AbCdEf123456/backup.tar.gz'

    def test_file_name_is_quoted(self):
        url = publisher.build_url(BASE_URL, 'AbCdEf123456', 'my backup.tar.gz')
        assert url.endswith('/AbCdEf123456/my%20backup.tar.gz')


class TestPublish:

    def test_publish_hard_links_backup(self, backup, publish_root):
        publication = publisher.publish(backup, publish_root, BASE_URL)

        target = publish_root / publication.token / 'backup-2024.tar.gz'
        assert target.exists()
        assert os.path.samefile(target, backup.path)
        assert publication.published_path == target
        assert publication.file_size == 4096
        assert publication.file_name == 'backup-2024.tar.gz'
        assert publication.source_path == backup.path
        assert publication.url == f'https://example.com/backups/{publication.token}/backup-2024.tar.gz'

    def test_publish_copies_across_filesystems(self, backup, publish_root, monkeypatch):
        def cross_device_link(src, dst):
            raise OSError(errno.EXDEV, 'Invalid cross-device link')

        monkeypatch.setattr(publisher.os, 'link', cross_device_link)

        publication = publisher.publish(backup, publish_root, BASE_URL)

        assert publication.published_path.read_bytes() == backup.path.read_bytes()
        assert not os.path.samefile(publication.published_path, backup.path)

    def test_other_link_errors_do_not_fall_back_to_copy(self, backup, publish_root, monkeypatch):
        def denied(src, dst):
            raise PermissionError(errno.EPERM, 'Operation not permitted')

        copied = []
        monkeypatch.setattr(publisher.os, 'link', denied)
        monkeypatch.setattr(publisher.shutil, 'copyfile', lambda s, d: copied.append(d))

        with pytest.raises(PublishError):
            publisher.publish(backup, publish_root, BASE_URL)

        assert copied == []
        assert token_dirs(publish_root) == []

    def test_publish_creates_missing_root(self, backup, tmp_path):
        root = tmp_path / 'not' / 'yet' / 'there'

        publication = publisher.publish(backup, root, BASE_URL)

        assert (root / publication.token).is_dir()

    def test_backup_deleted_before_publish(self, backup, publish_root):
        backup.path.unlink()

        with pytest.raises(SourceVanishedError):
            publisher.publish(backup, publish_root, BASE_URL)

        assert token_dirs(publish_root) == []

    def test_backup_truncated_during_copy(self, backup, publish_root, monkeypatch):
        def partial_copy(source, target):
            target.write_bytes(source.read_bytes()[:100])
            return 'copy'

        monkeypatch.setattr(publisher, '_link_or_copy', partial_copy)

        with pytest.raises(SourceVanishedError):
            publisher.publish(backup, publish_root, BASE_URL)

        assert token_dirs(publish_root) == []

    def test_unexpected_error_removes_token_directory(self, backup, publish_root, monkeypatch):
        def exploding_copy(source, target):
            target.write_bytes(b'partial')
            raise RuntimeError('disk went away')

        monkeypatch.setattr(publisher, '_link_or_copy', exploding_copy)

        with pytest.raises(RuntimeError):
            publisher.publish(backup, publish_root, BASE_URL)

        assert token_dirs(publish_root) == []


class TestTokenCollisions:

    def test_collision_draws_a_new_token(self, backup, publish_root, monkeypatch):
        (publish_root / 'AAAAAAAAAAAA').mkdir()
        tokens = iter(['AAAAAAAAAAAA', 'BBBBBBBBBBBB'])
        monkeypatch.setattr(publisher, 'generate_token', lambda: next(tokens))

        publication = publisher.publish(backup, publish_root, BASE_URL)

        assert publication.token == 'BBBBBBBBBBBB'
        assert list((publish_root / 'AAAAAAAAAAAA').iterdir()) == []

    def test_exhausted_token_space(self, backup, publish_root, monkeypatch):
        (publish_root / 'AAAAAAAAAAAA').mkdir()
        calls = []

        def always_taken():
            calls.append(1)
            return 'AAAAAAAAAAAA'

        monkeypatch.setattr(publisher, 'generate_token', always_taken)

        with pytest.raises(TokenSpaceExhaustedError):
            publisher.publish(backup, publish_root, BASE_URL)

        assert len(calls) == 5
        assert token_dirs(publish_root) == ['AAAAAAAAAAAA']
        assert list((publish_root / 'AAAAAAAAAAAA').iterdir()) == []

    def test_concurrent_publishes_get_distinct_tokens(self, backup, publish_root):
        barrier = threading.Barrier(10)
        results = []
        lock = threading.Lock()

        def run():
            barrier.wait()
            publication = publisher.publish(backup, publish_root, BASE_URL)
            with lock:
                results.append(publication.token)

        threads = [threading.Thread(target=run) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(set(results)) == 10
        assert token_dirs(publish_root) == sorted(results)


class TestPublicationManagement:

    def test_list_newest_first(self, backup, publish_root):
        older = publisher.publish(backup, publish_root, BASE_URL)
        newer = publisher.publish(backup, publish_root, BASE_URL)
        os.utime(publish_root / older.token, (1_700_000_000, 1_700_000_000))
        os.utime(publish_root / newer.token, (1_700_000_100, 1_700_000_100))

        publications = publisher.list_publications(publish_root, BASE_URL)

        assert [p.token for p in publications] == [newer.token, older.token]
        assert publications[0].url == newer.url
        assert publications[0].file_size == 4096
        assert publications[0].source_path is None

    def test_list_ignores_foreign_entries(self, backup, publish_root):
        publication = publisher.publish(backup, publish_root, BASE_URL)
        (publish_root / 'index.html').write_text('hello')
        (publish_root / 'not-a-token').mkdir()
        (publish_root / 'CCCCCCCCCCCC').mkdir()

        publications = publisher.list_publications(publish_root, BASE_URL)

        assert [p.token for p in publications] == [publication.token]

    def test_list_missing_root(self, tmp_path):
        assert publisher.list_publications(tmp_path / 'missing', BASE_URL) == []

    def test_revoke(self, backup, publish_root):
        publication = publisher.publish(backup, publish_root, BASE_URL)

        assert publisher.revoke(publish_root, publication.token) is True
        assert not (publish_root / publication.token).exists()
        assert backup.path.exists()
        assert publisher.revoke(publish_root, publication.token) is False

    def test_revoke_rejects_path_like_tokens(self, publish_root):
        with pytest.raises(InvalidTokenError):
            publisher.revoke(publish_root, '../backups')

    def test_prune_expired(self, backup, publish_root):
        old = publisher.publish(backup, publish_root, BASE_URL)
        fresh = publisher.publish(backup, publish_root, BASE_URL)
        now = datetime(2024, 1, 10, tzinfo=timezone.utc)
        old_time = (now - timedelta(days=3)).timestamp()
        fresh_time = (now - timedelta(hours=1)).timestamp()
        os.utime(publish_root / old.token, (old_time, old_time))
        os.utime(publish_root / fresh.token, (fresh_time, fresh_time))

        removed = publisher.prune_expired(publish_root, timedelta(days=1), now=now)

        assert removed == [old.token]
        assert token_dirs(publish_root) == [fresh.token]
