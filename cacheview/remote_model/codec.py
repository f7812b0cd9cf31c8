"""JSON encoding of remote-execution messages.

Field names mirror the REAPI protobuf messages in snake_case. Digests are
``{"hash": ..., "size_bytes": ...}`` objects and inline byte payloads are
base64 strings. ``encode_directory`` yields the canonical byte form that
directory digests are computed over.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from ..errors import DecodeError
from .types import (
    Action,
    ActionResult,
    Command,
    Content,
    Digest,
    DigestContent,
    Directory,
    DirectoryNode,
    EnvironmentVariable,
    FileNode,
    InlineContent,
    OutputDirectory,
    OutputFile,
    Platform,
    Property,
    Tree,
)

T = TypeVar("T")

_DIGEST_KEYS = frozenset({"hash", "size_bytes"})


def _require_dict(value: object, kind: str) -> dict:
    if not isinstance(value, dict):
        raise DecodeError(f"{kind} must be a JSON object, got {type(value).__name__}")
    return value


def _require_str(data: dict, key: str, kind: str, default: str | None = None) -> str:
    value = data.get(key, default)
    if not isinstance(value, str):
        raise DecodeError(f"{kind}.{key} must be a string")
    return value


def _require_bool(data: dict, key: str, kind: str) -> bool:
    value = data.get(key, False)
    if not isinstance(value, bool):
        raise DecodeError(f"{kind}.{key} must be a boolean")
    return value


def _str_list(data: dict, key: str, kind: str) -> tuple[str, ...]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise DecodeError(f"{kind}.{key} must be a list of strings")
    return tuple(value)


def _object_list(data: dict, key: str, kind: str, decode: Callable[[object], T]) -> tuple[T, ...]:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise DecodeError(f"{kind}.{key} must be a list")
    return tuple(decode(item) for item in value)


def _decode_bytes(value: object, kind: str) -> bytes:
    if not isinstance(value, str):
        raise DecodeError(f"{kind} must be a base64 string")
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as exc:
        raise DecodeError(f"{kind} is not valid base64: {exc}") from exc


def decode_digest(value: object) -> Digest:
    data = _require_dict(value, "Digest")
    unknown = sorted(set(data) - _DIGEST_KEYS)
    if unknown:
        raise DecodeError(f"Digest has unknown fields: {', '.join(unknown)}")
    hash_value = _require_str(data, "hash", "Digest")
    size_bytes = data.get("size_bytes", 0)
    # 64-bit sizes may arrive as decimal strings
    if isinstance(size_bytes, str) and size_bytes.isdigit():
        size_bytes = int(size_bytes)
    if isinstance(size_bytes, bool) or not isinstance(size_bytes, int) or size_bytes < 0:
        raise DecodeError("Digest.size_bytes must be a non-negative integer")
    return Digest(hash=hash_value.lower(), size_bytes=size_bytes)


def encode_digest(digest: Digest) -> dict[str, object]:
    return {"hash": digest.hash, "size_bytes": digest.size_bytes}


def decode_directory(value: object) -> Directory:
    data = _require_dict(value, "Directory")

    def file_node(item: object) -> FileNode:
        node = _require_dict(item, "FileNode")
        return FileNode(
            name=_require_str(node, "name", "FileNode"),
            digest=decode_digest(node.get("digest")),
            is_executable=_require_bool(node, "is_executable", "FileNode"),
        )

    def directory_node(item: object) -> DirectoryNode:
        node = _require_dict(item, "DirectoryNode")
        return DirectoryNode(
            name=_require_str(node, "name", "DirectoryNode"),
            digest=decode_digest(node.get("digest")),
        )

    return Directory(
        files=_object_list(data, "files", "Directory", file_node),
        directories=_object_list(data, "directories", "Directory", directory_node),
    )


def encode_directory(directory: Directory) -> bytes:
    """Return the canonical serialized form of ``directory``."""
    payload = {
        "files": [
            {"name": node.name, "digest": encode_digest(node.digest), "is_executable": node.is_executable}
            for node in directory.files
        ],
        "directories": [{"name": node.name, "digest": encode_digest(node.digest)} for node in directory.directories],
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def decode_tree(value: object) -> Tree:
    data = _require_dict(value, "Tree")
    return Tree(
        root=decode_directory(data.get("root", {})),
        children=_object_list(data, "children", "Tree", decode_directory),
    )


def encode_tree(tree: Tree) -> bytes:
    """Serialize ``tree`` with each directory in its canonical form."""
    payload = {
        "root": json.loads(encode_directory(tree.root)),
        "children": [json.loads(encode_directory(child)) for child in tree.children],
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def decode_command(value: object) -> Command:
    data = _require_dict(value, "Command")

    def env_var(item: object) -> EnvironmentVariable:
        entry = _require_dict(item, "EnvironmentVariable")
        return EnvironmentVariable(
            name=_require_str(entry, "name", "EnvironmentVariable"),
            value=_require_str(entry, "value", "EnvironmentVariable", default=""),
        )

    return Command(
        arguments=_str_list(data, "arguments", "Command"),
        environment_variables=_object_list(data, "environment_variables", "Command", env_var),
    )


def decode_platform(value: object) -> Platform:
    data = _require_dict(value, "Platform")

    def prop(item: object) -> Property:
        entry = _require_dict(item, "Property")
        return Property(
            name=_require_str(entry, "name", "Property"),
            value=_require_str(entry, "value", "Property", default=""),
        )

    return Platform(properties=_object_list(data, "properties", "Platform", prop))


def decode_action(value: object) -> Action:
    data = _require_dict(value, "Action")
    if "command_digest" not in data or "input_root_digest" not in data:
        raise DecodeError("Action requires command_digest and input_root_digest")
    return Action(
        command_digest=decode_digest(data["command_digest"]),
        input_root_digest=decode_digest(data["input_root_digest"]),
        output_files=_str_list(data, "output_files", "Action"),
        output_directories=_str_list(data, "output_directories", "Action"),
        platform=decode_platform(data.get("platform", {})),
    )


def decode_output_directory(value: object) -> OutputDirectory:
    data = _require_dict(value, "OutputDirectory")
    return OutputDirectory(
        path=_require_str(data, "path", "OutputDirectory", default=""),
        tree_digest=decode_digest(data.get("tree_digest")),
    )


def _decode_content(data: dict, digest_key: str, raw_key: str, kind: str) -> Content:
    if data.get(digest_key) is not None:
        return DigestContent(digest=decode_digest(data[digest_key]))
    if data.get(raw_key) is not None:
        return InlineContent(data=_decode_bytes(data[raw_key], f"{kind}.{raw_key}"))
    return InlineContent()


def decode_action_result(value: object) -> ActionResult:
    data = _require_dict(value, "ActionResult")

    def output_file(item: object) -> OutputFile:
        entry = _require_dict(item, "OutputFile")
        return OutputFile(
            path=_require_str(entry, "path", "OutputFile"),
            content=_decode_content(entry, "digest", "content", "OutputFile"),
            is_executable=_require_bool(entry, "is_executable", "OutputFile"),
        )

    exit_code = data.get("exit_code", 0)
    if isinstance(exit_code, bool) or not isinstance(exit_code, int):
        raise DecodeError("ActionResult.exit_code must be an integer")
    return ActionResult(
        output_files=_object_list(data, "output_files", "ActionResult", output_file),
        output_directories=_object_list(data, "output_directories", "ActionResult", decode_output_directory),
        exit_code=exit_code,
        stdout=_decode_content(data, "stdout_digest", "stdout_raw", "ActionResult"),
        stderr=_decode_content(data, "stderr_digest", "stderr_raw", "ActionResult"),
    )


def loads(data: bytes | str, decode: Callable[[object], T], kind: str) -> T:
    """Parse JSON ``data`` and decode it with ``decode``."""
    try:
        parsed = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodeError(f"{kind} is not valid JSON: {exc}") from exc
    return decode(parsed)


def load_file(path: Path, decode: Callable[[object], T], kind: str) -> T:
    """Read and decode a JSON message file."""
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise DecodeError(f"Could not read {kind} from {path}: {exc}") from exc
    return loads(data, decode, kind)


__all__ = [
    "decode_digest",
    "encode_digest",
    "decode_directory",
    "encode_directory",
    "decode_tree",
    "encode_tree",
    "decode_command",
    "decode_platform",
    "decode_action",
    "decode_output_directory",
    "decode_action_result",
    "loads",
    "load_file",
]
