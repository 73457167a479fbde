"""Tests for storage targets"""

import pytest

from backup_core.config import StorageConfig
from backup_core.exceptions import ConfigurationError, FatalError
from backup_core.package import Package, PackageStatus
from backup_core.storage import (
    LocalStorage,
    MemoryStorage,
    StorageTarget,
    create_storage,
    storage_from_config,
)


class TestStorageTargetBase:
    """Tests for the shared StorageTarget behavior"""

    def test_is_abstract(self):
        """Test StorageTarget cannot be instantiated"""
        with pytest.raises(TypeError):
            StorageTarget()  # type: ignore[abstract]

    def test_name_defaults_to_class_name(self, logger):
        """Test default naming and keep normalization"""
        storage = MemoryStorage(logger=logger)
        assert storage.name == "MemoryStorage"
        assert storage.keep == 0

    def test_negative_keep(self, logger):
        """Test keep must be >= 0"""
        with pytest.raises(ConfigurationError):
            MemoryStorage(keep=-1, logger=logger)


class TestMemoryStorage:
    """Tests for MemoryStorage"""

    def test_store_and_list(self, make_package, logger):
        """Test stored packages are listed oldest first with status stored"""
        storage = MemoryStorage(logger=logger)
        newer, older = make_package(second=5), make_package(second=1)
        storage.store(newer)
        storage.store(older)

        listed = storage.list()
        assert [p.id for p in listed] == [older.id, newer.id]
        assert all(p.status is PackageStatus.STORED for p in listed)
        assert listed[0].chunk_set == older.chunk_set

    def test_chunk_contents_are_copied(self, make_package, logger):
        """Test chunk bytes are read at store time"""
        storage = MemoryStorage(logger=logger)
        package = make_package()
        storage.store(package)
        assert storage.read_chunk(package.id, "db_backup.tar-aaa") == b"first chunk"

    def test_store_is_idempotent(self, make_package, logger):
        """Test re-storing does not duplicate the package"""
        storage = MemoryStorage(logger=logger)
        package = make_package()
        storage.store(package)
        storage.store(package)
        assert storage.package_ids() == [package.id]

    def test_delete(self, make_package, logger):
        """Test delete removes the package and tolerates absence"""
        storage = MemoryStorage(logger=logger)
        package = make_package()
        storage.store(package)
        storage.delete(package)
        storage.delete(package)
        assert not storage.contains(package.id)
        assert storage.list() == []

    def test_clear(self, make_package, logger):
        """Test clear drops everything"""
        storage = MemoryStorage(logger=logger)
        storage.store(make_package())
        storage.clear()
        assert storage.package_ids() == []


class TestLocalStorage:
    """Tests for LocalStorage"""

    def test_store_layout(self, tmp_path, make_package, logger):
        """Test chunks end up under path/package id"""
        storage = LocalStorage(tmp_path / "remote", logger=logger)
        package = make_package()
        storage.store(package)

        stored = tmp_path / "remote" / package.id
        assert sorted(p.name for p in stored.iterdir()) == list(package.chunks)
        assert (stored / "db_backup.tar-aab").read_bytes() == b"second"
        assert not storage.staging_dir(package.id).exists()

    def test_list_rebuilds_packages(self, tmp_path, make_package, logger):
        """Test list returns packages sorted by id with their chunk sets"""
        storage = LocalStorage(tmp_path / "remote", logger=logger)
        for second in (3, 1, 2):
            storage.store(make_package(second=second))

        listed = storage.list()
        assert [p.timestamp.second for p in listed] == [1, 2, 3]
        assert listed[0].chunks == ("db_backup.tar-aaa", "db_backup.tar-aab")
        assert listed[0].status is PackageStatus.STORED

    def test_list_missing_path(self, tmp_path, logger):
        """Test an absent namespace lists as empty"""
        assert LocalStorage(tmp_path / "nothing", logger=logger).list() == []

    def test_list_ignores_staging_and_foreign_entries(self, tmp_path, make_package, logger):
        """Test partial uploads and unrelated entries are never listed"""
        remote = tmp_path / "remote"
        storage = LocalStorage(remote, logger=logger)
        package = make_package()
        storage.store(package)

        staging = storage.staging_dir(make_package(second=9).id)
        staging.mkdir()
        (staging / "db_backup.tar-aaa").write_bytes(b"half")
        (remote / "notes").mkdir()
        (remote / "notes" / "readme").write_text("x")
        (remote / "stray-file").write_text("x")

        assert [p.id for p in storage.list()] == [package.id]

    def test_retry_completes_partial_upload(self, tmp_path, make_package, logger):
        """Test a store after an interrupted attempt completes the package"""
        storage = LocalStorage(tmp_path / "remote", logger=logger)
        package = make_package()
        staging = storage.staging_dir(package.id)
        staging.mkdir(parents=True)
        (staging / "db_backup.tar-aaa").write_bytes(b"first chunk")
        (staging / "db_backup.tar-aab").write_bytes(b"sec")
        (staging / "db_backup.tar-aab.tmp").write_bytes(b"junk")

        storage.store(package)

        final = storage.package_dir(package.id)
        assert sorted(p.name for p in final.iterdir()) == list(package.chunks)
        assert (final / "db_backup.tar-aab").read_bytes() == b"second"
        assert not staging.exists()

    def test_restore_overwrites(self, tmp_path, make_package, chunk_files, logger):
        """Test re-storing a visible package replaces its chunks"""
        storage = LocalStorage(tmp_path / "remote", logger=logger)
        package = make_package()
        storage.store(package)

        chunk_files[0].write_bytes(b"updated")
        storage.store(package)

        assert (storage.package_dir(package.id) / chunk_files[0].name).read_bytes() == b"updated"
        assert [p.id for p in storage.list()] == [package.id]

    def test_missing_chunk_is_fatal(self, tmp_path, make_package, chunk_files, logger):
        """Test missing source files raise FatalError"""
        storage = LocalStorage(tmp_path / "remote", logger=logger)
        package = make_package()
        chunk_files[1].unlink()

        with pytest.raises(FatalError) as exc_info:
            storage.store(package)
        assert exc_info.value.details["missing"] == ["db_backup.tar-aab"]

    def test_store_without_local_files_is_fatal(self, tmp_path, logger):
        """Test packages reconstructed from a listing cannot be stored"""
        storage = LocalStorage(tmp_path / "remote", logger=logger)
        with pytest.raises(FatalError):
            storage.store(Package.from_id("db.2026.10.19.02.00.00", ["a"]))

    def test_delete(self, tmp_path, make_package, logger):
        """Test delete removes the package, its staging dir, and tolerates absence"""
        storage = LocalStorage(tmp_path / "remote", logger=logger)
        package = make_package()
        storage.store(package)
        storage.staging_dir(package.id).mkdir()

        storage.delete(package)
        storage.delete(package)

        assert storage.list() == []
        assert list((tmp_path / "remote").iterdir()) == []


class TestFactory:
    """Tests for create_storage and storage_from_config"""

    def test_create_memory(self, logger):
        """Test the memory backend"""
        storage = create_storage("memory", name="mem", keep=3, logger=logger)
        assert isinstance(storage, MemoryStorage)
        assert (storage.name, storage.keep) == ("mem", 3)

    def test_create_local(self, tmp_path, logger):
        """Test the local backend"""
        storage = create_storage("local", path=tmp_path, logger=logger)
        assert isinstance(storage, LocalStorage)
        assert storage.path == tmp_path

    def test_local_requires_path(self):
        """Test local without path fails"""
        with pytest.raises(ConfigurationError, match="path"):
            create_storage("local")

    def test_unknown_backend(self):
        """Test unknown backends fail"""
        with pytest.raises(ConfigurationError, match="Unknown storage backend"):
            create_storage("ftp")  # type: ignore[arg-type]

    def test_from_config(self, tmp_path, logger):
        """Test building a target from StorageConfig"""
        config = StorageConfig(backend="local", name="nas", keep=7, path=tmp_path)
        storage = storage_from_config(config, logger)
        assert isinstance(storage, LocalStorage)
        assert (storage.name, storage.keep, storage.path) == ("nas", 7, tmp_path)
