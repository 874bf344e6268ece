"""Tests for the public FileSystem API."""

import pytest

from shardfs.core import fs as fs_module
from shardfs.core.errors import (
    NotADirError,
    NotEmptyError,
    NotFoundError,
    UnsupportedDataTypeError,
)
from shardfs.core.fs import FileSystem, decode, encode


class TestEncoding:
    """Payload conversion done by the API layer."""

    def test_encode_text(self):
        assert encode("hi") == b"hi"
        assert encode("é", "latin-1") == b"\xe9"
        assert encode("é", None) == "é".encode("utf-8")

    def test_encode_bytes_like(self):
        assert encode(b"raw") == b"raw"
        assert encode(bytearray(b"raw")) == b"raw"
        assert encode(memoryview(b"raw")) == b"raw"

    @pytest.mark.parametrize("data", [42, 1.5, None, ["a"], {"a": 1}])
    def test_unsupported_types(self, data):
        with pytest.raises(UnsupportedDataTypeError):
            encode(data)

    def test_unknown_encoding(self):
        with pytest.raises(UnsupportedDataTypeError):
            encode("x", "no-such-codec")
        with pytest.raises(UnsupportedDataTypeError):
            decode(b"x", "no-such-codec")

    def test_unencodable_text(self):
        with pytest.raises(UnsupportedDataTypeError):
            encode("☃", "ascii")

    def test_decode(self):
        assert decode(b"hi", None) == b"hi"
        assert decode(b"hi", "utf8") == "hi"


class TestFileSystem:
    """Scenarios through the façade."""

    def test_text_round_trip(self, fs):
        fs.mkdir("/tmp")
        fs.write_file("/tmp/f", "hi", "utf8")
        assert fs.read_file("/tmp/f", "utf8") == "hi"
        assert fs.read_file("/tmp/f") == b"hi"
        assert fs.stat("/tmp/f").size == 2

    def test_binary_round_trip(self, fs):
        png_header = bytes([0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A])
        fs.mkdir("/Users/testuser/documents", recursive=True)
        fs.write_file("/Users/testuser/documents/test.png", png_header)
        data = fs.read_file("/Users/testuser/documents/test.png")
        assert data == png_header
        assert data[0] == 0x89

    def test_size_counts_encoded_bytes(self, fs):
        fs.write_file("/snow", "☃")
        assert fs.stat("/snow").size == 3

    def test_write_with_mode(self, fs):
        fs.write_file("/f", "x", mode=0o600)
        assert fs.stat("/f").mode == 0o600

    def test_unsupported_data_type(self, fs):
        with pytest.raises(UnsupportedDataTypeError):
            fs.write_file("/f", 123)
        assert not fs.exists("/f")

    def test_recursive_mkdir_scenario(self, fs):
        fs.mkdir("/Users/a/b/c", recursive=True)
        assert fs.readdir("/Users/a") == ["b"]
        assert fs.readdir("/Users/a/b") == ["c"]

    def test_rm_missing(self, fs):
        with pytest.raises(NotFoundError):
            fs.rm("/does/not/exist")
        fs.rm("/does/not/exist", force=True)

    def test_rm_non_empty_then_recursive(self, fs):
        fs.mkdir("/Users/bob/projects/app", recursive=True)
        with pytest.raises(NotEmptyError):
            fs.rm("/Users/bob/projects")
        fs.rm("/Users/bob/projects", recursive=True)
        assert fs.readdir("/Users/bob") == []

    def test_readdir_with_file_types(self, fs):
        fs.mkdir("/d/sub", recursive=True)
        fs.write_file("/d/file.txt", "x")
        entries = fs.readdir("/d", with_file_types=True)
        assert [(e.name, e.is_file, e.is_directory) for e in entries] == [
            ("file.txt", True, False),
            ("sub", False, True),
        ]

    def test_invalid_path_through_parent_file(self, fs):
        fs.mkdir("/Users/testuser/documents", recursive=True)
        fs.write_file("/Users/testuser/documents/readme.txt", "Hello, World!")
        with pytest.raises(NotADirError):
            fs.mkdir("/Users/testuser/documents/readme.txt/invalid")

    def test_paths_are_normalized_before_routing(self, fs):
        fs.mkdir("/Users/alice", recursive=True)
        fs.write_file("//Users//alice//note.txt/", "n")
        assert fs.read_file("/Users/alice/note.txt", "utf8") == "n"
        assert fs.registry.get("alice").exists("/Users/alice/note.txt")

    def test_exists(self, fs):
        assert fs.exists("/")
        assert not fs.exists("/nope")
        fs.mkdir("/yes")
        assert fs.exists("/yes/")

    def test_full_workflow(self, fs):
        fs.mkdir("/Users/testuser/documents", recursive=True)
        fs.mkdir("/Users/testuser/projects/myapp", recursive=True)
        fs.mkdir("/tmp", recursive=True)

        fs.write_file("/Users/testuser/documents/readme.txt", "Hello, World!")
        fs.write_file("/Users/testuser/projects/myapp/package.json", '{"name": "myapp"}')
        fs.write_file("/tmp/temp.log", "Temporary file content")
        assert fs.readdir("/Users/testuser") == ["documents", "projects"]

        fs.copy_file("/Users/testuser/documents/readme.txt", "/tmp/readme-copy.txt")
        assert fs.read_file("/tmp/readme-copy.txt", "utf8") == "Hello, World!"

        fs.cp("/Users/testuser/documents", "/tmp/documents-backup", recursive=True)
        assert fs.readdir("/tmp/documents-backup") == ["readme.txt"]

        fs.rename("/tmp/temp.log", "/tmp/renamed.log")
        assert fs.readdir("/tmp") == ["documents-backup", "readme-copy.txt", "renamed.log"]

        fs.rm("/tmp/readme-copy.txt")
        fs.rm("/tmp/documents-backup", recursive=True)
        fs.rm("/tmp/renamed.log")
        fs.rm("/Users/testuser/projects", recursive=True)
        assert fs.readdir("/Users/testuser") == ["documents"]
        assert fs.readdir("/tmp") == []


class TestModuleFunctions:
    """Module-level wrappers over the process-wide instance."""

    @pytest.fixture
    def default_fs(self, registry, monkeypatch):
        instance = FileSystem(registry)
        monkeypatch.setattr(fs_module, "_default_fs", instance)
        return instance

    def test_wrappers_forward(self, default_fs):
        assert fs_module.get_fs() is default_fs

        fs_module.mkdir("/Users/alice/docs", recursive=True)
        fs_module.write_file("/Users/alice/docs/a.txt", "a")
        assert fs_module.readdir("/Users/alice/docs") == ["a.txt"]
        assert fs_module.read_file("/Users/alice/docs/a.txt", "utf8") == "a"
        assert fs_module.stat("/Users/alice/docs/a.txt").size == 1
        assert fs_module.exists("/Users/alice/docs")

        fs_module.copy_file("/Users/alice/docs/a.txt", "/Users/bob/a.txt")
        fs_module.cp("/Users/alice/docs", "/Users/bob/docs", recursive=True)
        fs_module.rename("/Users/bob/a.txt", "/Users/bob/b.txt")
        assert default_fs.readdir("/Users/bob") == ["b.txt", "docs"]

        fs_module.rm("/Users/bob", recursive=True)
        assert not fs_module.exists("/Users/bob")

    def test_shutdown_resets_instance(self, default_fs):
        fs_module.mkdir("/tmp")
        assert default_fs.registry.shard_ids() == ["default"]
        fs_module.shutdown()
        assert fs_module._default_fs is None
        assert default_fs.registry.shard_ids() == []
