"""Tests for the local content-addressed disk cache accessor."""

from __future__ import annotations

import os
import stat
import tempfile
import unittest
from pathlib import Path

from cacheview.disk_cache import DiskCache
from cacheview.errors import BlobNotFoundError, DecodeError, LocalWriteError, OutputPathExistsError
from cacheview.remote_model import (
    Digest,
    Directory,
    DirectoryNode,
    FileNode,
    OutputDirectory,
    Tree,
    directory_digest,
)


def _populate(cache: DiskCache) -> Digest:
    """Store ``main.sh`` (executable), ``lib/util.txt`` and ``lib/deep/leaf.txt``."""
    deep = Directory(files=(FileNode("leaf.txt", cache.put_blob(b"leaf\n")),))
    lib = Directory(
        files=(FileNode("util.txt", cache.put_blob(b"util\n")),),
        directories=(DirectoryNode("deep", cache.put_directory(deep)),),
    )
    root = Directory(
        files=(FileNode("main.sh", cache.put_blob(b"#!/bin/sh\necho hi\n"), is_executable=True),),
        directories=(DirectoryNode("lib", cache.put_directory(lib)),),
    )
    return cache.put_directory(root)


class DiskCacheBlobTests(unittest.TestCase):
    def test_put_then_fetch_blob(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cache = DiskCache(Path(tmp))
            digest = cache.put_blob(b"payload")

            self.assertEqual(digest.size_bytes, 7)
            self.assertEqual(cache.fetch_blob(digest), b"payload")
            self.assertEqual(cache.blob_path(digest), Path(tmp) / "cas" / digest.hash[:2] / digest.hash)
            self.assertTrue(cache.has_blob(digest))

    def test_missing_blob_raises_not_found(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cache = DiskCache(Path(tmp))
            with self.assertRaises(BlobNotFoundError):
                cache.fetch_blob(Digest("ab" * 32, 1))

    def test_put_directory_digest_matches_directory_digest(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cache = DiskCache(Path(tmp))
            directory = Directory(files=(FileNode("a", Digest("ab" * 32, 1)),))
            self.assertEqual(cache.put_directory(directory), directory_digest(directory))


class DiskCacheTreeTests(unittest.TestCase):
    def test_fetch_tree_collects_every_reachable_directory(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cache = DiskCache(Path(tmp))
            root_digest = _populate(cache)

            tree = cache.fetch_tree(root_digest)

            self.assertEqual([node.name for node in tree.root.files], ["main.sh"])
            self.assertEqual(len(tree.children), 2)
            self.assertEqual(tree.file_count(), 3)

    def test_fetch_tree_fails_when_a_directory_blob_is_missing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cache = DiskCache(Path(tmp))
            root = Directory(directories=(DirectoryNode("gone", Digest("cd" * 32, 5)),))
            with self.assertRaises(BlobNotFoundError) as ctx:
                cache.fetch_tree(cache.put_directory(root))
            self.assertEqual(ctx.exception.purpose, "Directory")

    def test_materialize_directory_writes_files_and_modes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cache = DiskCache(Path(tmp) / "cache")
            root_digest = _populate(cache)
            target = Path(tmp) / "out"

            cache.materialize_directory(target, root_digest)

            self.assertEqual((target / "lib" / "util.txt").read_text(encoding="utf-8"), "util\n")
            self.assertEqual((target / "lib" / "deep" / "leaf.txt").read_text(encoding="utf-8"), "leaf\n")
            self.assertTrue(os.stat(target / "main.sh").st_mode & stat.S_IXUSR)

    def test_materialize_refuses_to_overwrite_existing_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cache = DiskCache(Path(tmp) / "cache")
            root_digest = _populate(cache)
            target = Path(tmp) / "out"
            target.mkdir()
            (target / "main.sh").write_text("mine\n", encoding="utf-8")

            with self.assertRaises(OutputPathExistsError):
                cache.materialize_directory(target, root_digest)
            self.assertEqual((target / "main.sh").read_text(encoding="utf-8"), "mine\n")

    def test_materialize_wraps_directory_clash_with_target_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cache = DiskCache(Path(tmp) / "cache")
            root_digest = _populate(cache)
            target = Path(tmp) / "out"
            target.mkdir()
            (target / "lib").write_text("not a directory\n", encoding="utf-8")

            with self.assertRaises(LocalWriteError) as ctx:
                cache.materialize_directory(target, root_digest)
            self.assertEqual(ctx.exception.path, target / "lib")
            self.assertEqual(ctx.exception.purpose, "directory")

    def test_materialize_rejects_escaping_names(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cache = DiskCache(Path(tmp) / "cache")
            root = Directory(files=(FileNode("../evil", cache.put_blob(b"x")),))
            with self.assertRaises(DecodeError):
                cache.materialize_directory(Path(tmp) / "out", cache.put_directory(root))
            self.assertFalse((Path(tmp) / "evil").exists())

    def test_materialize_output_directory_uses_serialized_tree(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cache = DiskCache(Path(tmp) / "cache")
            sub = Directory(files=(FileNode("gen.h", cache.put_blob(b"#pragma once\n")),))
            tree = Tree(
                root=Directory(directories=(DirectoryNode("include", directory_digest(sub)),)),
                children=(sub,),
            )
            output = OutputDirectory(path="bazel-out/gen", tree_digest=cache.put_tree(tree))
            target = Path(tmp) / "gen"

            cache.materialize_output_directory(output, target)

            self.assertEqual((target / "include" / "gen.h").read_bytes(), b"#pragma once\n")


if __name__ == "__main__":
    unittest.main()
