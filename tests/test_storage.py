"""Tests for on-disk storage helpers."""

import io
import re
from unittest.mock import patch

import pytest

from dropserver.exceptions import InvalidArgumentError, NotFoundError, StorageError
from dropserver.storage import (
    StorageSession,
    clean_upload_name,
    prepare_storage_root,
    remove_working_directory,
    resolve_stored_file,
    write_upload
)


class TestPrepareStorageRoot:

    def test_creates_root_and_subdirectory(self, storage_root):
        session = prepare_storage_root(str(storage_root))

        assert session.root_path == storage_root
        assert session.luutam_path == storage_root / 'luutam'
        assert session.luutam_path.is_dir()
        assert session.configured is True

    def test_idempotent(self, storage_root):
        (storage_root / 'luutam').mkdir(parents=True)
        (storage_root / 'luutam' / 'keep.txt').write_text('x')

        prepare_storage_root(str(storage_root))

        assert (storage_root / 'luutam' / 'keep.txt').read_text() == 'x'

    @pytest.mark.parametrize('path', ['', '   '])
    def test_empty_path(self, path):
        with pytest.raises(InvalidArgumentError):
            prepare_storage_root(path)

    def test_unwritable(self, tmp_path):
        blocker = tmp_path / 'file'
        blocker.write_text('x')

        with pytest.raises(StorageError):
            prepare_storage_root(str(blocker / 'below'))


class TestCleanUploadName:

    @pytest.mark.parametrize('raw,expected', [
        ('report.pdf', 'report.pdf'),
        ('dir/report.pdf', 'report.pdf'),
        ('C:\\Users\\me\\report.pdf', 'report.pdf'),
        ('../../etc/passwd', 'passwd'),
    ])
    def test_keeps_final_component(self, raw, expected):
        assert clean_upload_name(raw) == expected

    @pytest.mark.parametrize('raw', [None, '', 'dir/', '..', '.'])
    def test_unusable(self, raw):
        with pytest.raises(InvalidArgumentError):
            clean_upload_name(raw)


class TestWriteUpload:

    def test_timestamp_prefixed_name(self, tmp_path):
        path = write_upload(tmp_path, 'report.pdf', io.BytesIO(b'data'))

        assert re.match(r'^\d{13}-report\.pdf$', path.name)
        assert path.read_bytes() == b'data'

    def test_collision_advances_prefix(self, tmp_path):
        with patch('dropserver.storage.time.time', return_value=1700000000.0):
            first = write_upload(tmp_path, 'a.txt', io.BytesIO(b'1'))
            second = write_upload(tmp_path, 'a.txt', io.BytesIO(b'2'))

        assert first.name == '1700000000000-a.txt'
        assert second.name == '1700000000001-a.txt'
        assert first.read_bytes() == b'1'
        assert second.read_bytes() == b'2'

    def test_failed_write_removes_partial(self, tmp_path):
        class BrokenStream(io.RawIOBase):
            def readinto(self, buffer):
                raise OSError('connection reset')

        with pytest.raises(StorageError):
            write_upload(tmp_path, 'a.txt', BrokenStream())

        assert list(tmp_path.iterdir()) == []

    def test_missing_directory(self, tmp_path):
        with pytest.raises(StorageError):
            write_upload(tmp_path / 'absent', 'a.txt', io.BytesIO(b'x'))


class TestResolveStoredFile:

    def test_existing(self, tmp_path):
        (tmp_path / 'a.txt').write_text('x')
        assert resolve_stored_file(tmp_path, 'a.txt') == tmp_path / 'a.txt'

    @pytest.mark.parametrize('name', ['missing.txt', '../secret', 'sub/a.txt', '..', ''])
    def test_not_found(self, tmp_path, name):
        (tmp_path / 'sub').mkdir()
        (tmp_path / 'sub' / 'a.txt').write_text('x')

        with pytest.raises(NotFoundError):
            resolve_stored_file(tmp_path, name)

    def test_directory_is_not_a_file(self, tmp_path):
        (tmp_path / 'sub').mkdir()
        with pytest.raises(NotFoundError):
            resolve_stored_file(tmp_path, 'sub')


class TestRemoveWorkingDirectory:

    def test_removes_tree(self, storage_root):
        session = prepare_storage_root(str(storage_root))
        (session.luutam_path / 'a.txt').write_text('x')

        assert remove_working_directory(session) is True
        assert not session.luutam_path.exists()
        assert storage_root.exists()

    def test_already_gone(self, tmp_path):
        session = StorageSession(root_path=tmp_path, luutam_path=tmp_path / 'luutam')
        assert remove_working_directory(session) is True

    def test_failure_is_reported(self, storage_root):
        session = prepare_storage_root(str(storage_root))

        with patch('dropserver.storage.shutil.rmtree', side_effect=PermissionError('busy')):
            assert remove_working_directory(session) is False
