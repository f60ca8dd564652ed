from __future__ import annotations

import datetime as dt
import difflib
import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Iterable

import jsonschema

TOOL_NAME = "bind_framework"
TOOL_VERSION = "1.0.0"
REPORT_SCHEMA_VERSION = 1


class BindFrameworkError(Exception):
    pass


class UnknownProfileError(BindFrameworkError):
    pass


class VersionNotFoundError(BindFrameworkError):
    pass


class OverrideError(BindFrameworkError):
    pass


class ConflictingTypemapError(BindFrameworkError):
    pass


class UnmappedTypeError(BindFrameworkError):
    def __init__(self, native_type_name: str, function_name: str | None = None):
        self.native_type_name = native_type_name
        self.function_name = function_name
        where = f" (used by '{function_name}')" if function_name else ""
        super().__init__(f"No typemap entry for native type '{native_type_name}'{where}")


class OverloadCollisionError(BindFrameworkError):
    pass


class SpecificationParseError(BindFrameworkError):
    pass


class ConfigurationError(BindFrameworkError):
    pass


class GenerationFailedError(BindFrameworkError):
    def __init__(
        self,
        failures: Mapping[str, BaseException],
        results: Mapping[str, Any] | None = None,
    ):
        self.failures = dict(failures)
        self.results = dict(results or {})
        lines = [f"{len(self.failures)} target(s) failed:"]
        for name in sorted(self.failures):
            exc = self.failures[name]
            lines.append(f"  {name}: {exc.__class__.__name__}: {exc}")
        super().__init__("\n".join(lines))


def load_json(path: Path, error_type: type[BindFrameworkError] = SpecificationParseError) -> dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise error_type(f"Unable to read JSON file '{path}': {exc}") from exc
    except json.JSONDecodeError as exc:
        raise error_type(f"Invalid JSON in '{path}': {exc}") from exc
    if not isinstance(payload, dict):
        raise error_type(f"JSON root in '{path}' must be an object")
    return payload


def write_json(path: Path, value: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(value, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def get_schema_path(kind: str) -> Path:
    base = Path(__file__).resolve().parent / "schemas"
    mapping = {
        "config": base / "config.schema.json",
        "signatures": base / "signatures.schema.json",
        "overrides": base / "overrides.schema.json",
        "typemap": base / "typemap.schema.json",
        "documentation": base / "documentation.schema.json",
    }
    if kind not in mapping:
        raise BindFrameworkError(f"Unknown schema kind: {kind}")
    return mapping[kind]


_SCHEMA_CACHE: dict[str, dict[str, Any]] = {}


def validate_with_schema(
    kind: str,
    payload: Any,
    label: str,
    error_type: type[BindFrameworkError] = SpecificationParseError,
) -> None:
    schema = _SCHEMA_CACHE.get(kind)
    if schema is None:
        # Concurrent first loads store identical dicts.
        schema = load_json(get_schema_path(kind), error_type=BindFrameworkError)
        _SCHEMA_CACHE[kind] = schema
    try:
        jsonschema.validate(payload, schema)
    except jsonschema.ValidationError as exc:
        location = "/".join(str(part) for part in exc.absolute_path) or "<root>"
        raise error_type(f"{label} failed {kind} schema validation at {location}: {exc.message}") from exc


def ensure_relative_path(root: Path, value: str) -> Path:
    path = Path(value)
    if path.is_absolute():
        return path
    return root / path


def to_repo_relative(path: Path, repo_root: Path) -> str:
    try:
        return str(path.resolve().relative_to(repo_root.resolve()))
    except ValueError:
        return str(path.resolve())


def normalize_ws(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def normalize_string_list(value: Any, key: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigurationError(f"Field '{key}' must be an array when specified.")
    out: list[str] = []
    for idx, item in enumerate(value):
        if not isinstance(item, str) or not item:
            raise ConfigurationError(f"Field '{key}[{idx}]' must be a non-empty string.")
        out.append(item)
    return out


def frozen_mapping(value: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


def now_utc() -> dt.datetime:
    return dt.datetime.now(tz=dt.timezone.utc)


def utc_timestamp_now() -> str:
    return now_utc().isoformat()


def read_text_if_exists(path: Path) -> str:
    if not path.exists():
        return ""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise BindFrameworkError(f"Unable to read file '{path}': {exc}") from exc


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def normalized_lines(value: str) -> list[str]:
    return value.replace("\r\n", "\n").splitlines()


def compute_unified_diff(old_content: str, new_content: str, old_label: str, new_label: str) -> str:
    diff_lines = difflib.unified_diff(
        normalized_lines(old_content),
        normalized_lines(new_content),
        fromfile=old_label,
        tofile=new_label,
        lineterm="",
    )
    return "\n".join(diff_lines)


def write_artifact_if_changed(
    *,
    path: Path,
    content: str,
    dry_run: bool,
    check: bool,
) -> tuple[str, str]:
    old_content = read_text_if_exists(path)
    if old_content == content:
        return "unchanged", ""
    if check:
        return "drift", compute_unified_diff(old_content, content, f"a/{path}", f"b/{path}")
    if dry_run:
        return "would_write", compute_unified_diff(old_content, content, f"a/{path}", f"b/{path}")
    write_text(path, content)
    return "updated", compute_unified_diff(old_content, content, f"a/{path}", f"b/{path}")
