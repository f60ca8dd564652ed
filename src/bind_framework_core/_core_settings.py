from __future__ import annotations

import enum
import os

from ._core_overloads import *  # noqa: F401,F403

TARGET_ALL = "all"

GL_VERSIONS = (
    "1.0", "1.1", "1.2", "1.3", "1.4", "1.5",
    "2.0", "2.1",
    "3.0", "3.1", "3.2", "3.3",
    "4.0", "4.1", "4.2", "4.3", "4.4", "4.5", "4.6",
)
GL_CORE_VERSIONS = GL_VERSIONS[GL_VERSIONS.index("3.2"):]

# Older names that select the core profile target.
TARGET_ALIASES = {"gl3": "glcore4", "gl4": "glcore4"}


class TargetKind(str, enum.Enum):
    GL2 = "gl2"
    GLCORE4 = "glcore4"
    ES10 = "es10"
    ES11 = "es11"
    ES20 = "es20"
    ES30 = "es30"
    ES31 = "es31"
    CUSTOM = "custom"


@dataclass(frozen=True)
class GeneratorSettings:
    name: str
    kind: TargetKind
    specification: str
    profile: str
    versions: tuple[str, ...]
    api_typemap: str
    language_typemap: str
    documentation: str
    namespace: str
    output: str
    overrides: tuple[str, ...] = ()
    base_profile: str | None = None
    class_name: str = "GL"
    library: str = "opengl32"
    rules: OverloadRules = field(default_factory=OverloadRules)

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "specification": self.specification,
            "overrides": list(self.overrides),
            "profile": self.profile,
            "base_profile": self.base_profile,
            "versions": list(self.versions),
            "api_typemap": self.api_typemap,
            "language_typemap": self.language_typemap,
            "documentation": self.documentation,
            "namespace": self.namespace,
            "class_name": self.class_name,
            "library": self.library,
            "output": self.output,
        }


def _builtin(kind: TargetKind, **kwargs: Any) -> GeneratorSettings:
    return GeneratorSettings(name=kind.value, kind=kind, **kwargs)


DEFAULT_TARGETS: dict[TargetKind, GeneratorSettings] = {
    TargetKind.GL2: _builtin(
        TargetKind.GL2,
        specification="GL2/signatures.json",
        overrides=("GL2/overrides.json",),
        profile="gl",
        versions=GL_VERSIONS,
        api_typemap="GL2/gl.typemap.json",
        language_typemap="csharp.typemap.json",
        documentation="GL4/documentation.json",
        namespace="OpenTK.Graphics.OpenGL",
        output="OpenGL/GL.cs",
    ),
    TargetKind.GLCORE4: _builtin(
        TargetKind.GLCORE4,
        specification="GL2/signatures.json",
        overrides=("GL2/overrides.json",),
        profile="glcore",
        base_profile="gl",
        versions=GL_CORE_VERSIONS,
        api_typemap="GL2/gl.typemap.json",
        language_typemap="csharp.typemap.json",
        documentation="GL4/documentation.json",
        namespace="OpenTK.Graphics.OpenGL4",
        output="OpenGL4/GL.cs",
    ),
    TargetKind.ES10: _builtin(
        TargetKind.ES10,
        specification="GLES/signatures.json",
        overrides=("GLES/overrides.json",),
        profile="gles1",
        versions=("1.0",),
        api_typemap="GLES/gles.typemap.json",
        language_typemap="csharp.typemap.json",
        documentation="ES1/documentation.json",
        namespace="OpenTK.Graphics.ES10",
        output="ES10/GL.cs",
        library="libGLESv1_CM",
    ),
    TargetKind.ES11: _builtin(
        TargetKind.ES11,
        specification="GLES/signatures.json",
        overrides=("GLES/overrides.json",),
        profile="gles1",
        versions=("1.0", "1.1"),
        api_typemap="GLES/gles.typemap.json",
        language_typemap="csharp.typemap.json",
        documentation="ES1/documentation.json",
        namespace="OpenTK.Graphics.ES11",
        output="ES11/GL.cs",
        library="libGLESv1_CM",
    ),
    TargetKind.ES20: _builtin(
        TargetKind.ES20,
        specification="GLES/signatures.json",
        overrides=("GLES/overrides.json",),
        profile="gles2",
        versions=("2.0",),
        api_typemap="GLES/gles.typemap.json",
        language_typemap="csharp.typemap.json",
        documentation="ES2/documentation.json",
        namespace="OpenTK.Graphics.ES20",
        output="ES20/GL.cs",
        library="libGLESv2",
    ),
    TargetKind.ES30: _builtin(
        TargetKind.ES30,
        specification="GLES/signatures.json",
        overrides=("GLES/overrides.json",),
        profile="gles2",
        versions=("2.0", "3.0"),
        api_typemap="GLES/gles.typemap.json",
        language_typemap="csharp.typemap.json",
        documentation="ES3/documentation.json",
        namespace="OpenTK.Graphics.ES30",
        output="ES30/GL.cs",
        library="libGLESv2",
    ),
    TargetKind.ES31: _builtin(
        TargetKind.ES31,
        specification="GLES/signatures.json",
        overrides=("GLES/overrides.json",),
        profile="gles2",
        versions=("2.0", "3.0", "3.1"),
        api_typemap="GLES/gles.typemap.json",
        language_typemap="csharp.typemap.json",
        documentation="ES3/documentation.json",
        namespace="OpenTK.Graphics.ES31",
        output="ES31/GL.cs",
        library="libGLESv2",
    ),
}

_TARGET_FIELDS = (
    "specification",
    "profile",
    "versions",
    "api_typemap",
    "language_typemap",
    "documentation",
    "namespace",
    "output",
)


@dataclass(frozen=True)
class RunConfiguration:
    input_path: Path
    documentation_path: Path
    output_path: Path
    targets: tuple[GeneratorSettings, ...]
    max_workers: int | None = None
    dry_run: bool = False
    check: bool = False
    emit_obsolete: bool = False

    def specification_path(self, settings: GeneratorSettings) -> Path:
        return ensure_relative_path(self.input_path, settings.specification)

    def override_paths(self, settings: GeneratorSettings) -> list[Path]:
        return [ensure_relative_path(self.input_path, item) for item in settings.overrides]

    def api_typemap_path(self, settings: GeneratorSettings) -> Path:
        return ensure_relative_path(self.input_path, settings.api_typemap)

    def language_typemap_path(self, settings: GeneratorSettings) -> Path:
        return ensure_relative_path(self.input_path, settings.language_typemap)

    def documentation_file(self, settings: GeneratorSettings) -> Path:
        return ensure_relative_path(self.documentation_path, settings.documentation)

    def output_file(self, settings: GeneratorSettings) -> Path:
        return ensure_relative_path(self.output_path, settings.output)

    @property
    def worker_count(self) -> int:
        if self.max_workers:
            return max(1, self.max_workers)
        return max(1, min(len(self.targets), os.cpu_count() or 1))


def settings_from_config(name: str, raw: Mapping[str, Any]) -> GeneratorSettings:
    kind_value = raw.get("kind")
    if kind_value is None:
        kind_value = name if name in {kind.value for kind in TargetKind} else TargetKind.CUSTOM.value
    try:
        kind = TargetKind(kind_value)
    except ValueError as exc:
        raise ConfigurationError(f"Target '{name}' has unknown kind '{kind_value}'") from exc

    base = DEFAULT_TARGETS.get(kind)
    if base is None:
        missing = [key for key in _TARGET_FIELDS if key not in raw]
        if missing:
            raise ConfigurationError(f"Custom target '{name}' is missing required keys: {', '.join(missing)}")
        base = GeneratorSettings(
            name=name,
            kind=kind,
            specification=str(raw["specification"]),
            profile=str(raw["profile"]),
            versions=tuple(normalize_string_list(raw["versions"], f"targets.{name}.versions")),
            api_typemap=str(raw["api_typemap"]),
            language_typemap=str(raw["language_typemap"]),
            documentation=str(raw["documentation"]),
            namespace=str(raw["namespace"]),
            output=str(raw["output"]),
        )

    changes: dict[str, Any] = {"name": name}
    for key in ("specification", "profile", "api_typemap", "language_typemap", "documentation", "namespace", "output", "class_name", "library"):
        if key in raw:
            changes[key] = str(raw[key])
    if "base_profile" in raw:
        changes["base_profile"] = raw["base_profile"]
    if "versions" in raw:
        changes["versions"] = tuple(normalize_string_list(raw["versions"], f"targets.{name}.versions"))
    if "overrides" in raw:
        changes["overrides"] = tuple(normalize_string_list(raw["overrides"], f"targets.{name}.overrides"))
    if "rules" in raw:
        changes["rules"] = OverloadRules.from_dict(raw["rules"])
    return replace(base, **changes)


def available_targets(config_payload: Mapping[str, Any] | None = None) -> dict[str, GeneratorSettings]:
    targets = {settings.name: settings for settings in DEFAULT_TARGETS.values()}
    raw_targets = (config_payload or {}).get("targets") or {}
    for name, raw in raw_targets.items():
        targets[name] = settings_from_config(name, raw)
    return targets


def select_targets(available: Mapping[str, GeneratorSettings], requested: Iterable[str]) -> tuple[GeneratorSettings, ...]:
    names = list(requested) or [TARGET_ALL]
    if TARGET_ALL in names:
        return tuple(available[name] for name in sorted(available))
    selected: list[GeneratorSettings] = []
    for name in names:
        settings = available.get(name)
        if settings is None and name.lower() in TARGET_ALIASES:
            settings = available.get(TARGET_ALIASES[name.lower()])
        if settings is None:
            known = ", ".join(sorted(available))
            raise ConfigurationError(f"Unknown target '{name}'. Known targets: {known}")
        if settings not in selected:
            selected.append(settings)
    return tuple(selected)


def load_config_payload(path: Path | None) -> dict[str, Any]:
    if path is None:
        return {}
    payload = load_json(path, error_type=ConfigurationError)
    validate_with_schema("config", payload, f"config '{path}'", error_type=ConfigurationError)
    return payload


def build_run_configuration(
    *,
    config_path: Path | None,
    input_path: str | None,
    documentation_path: str | None,
    output_path: str | None,
    targets: Iterable[str],
    max_workers: int | None = None,
    dry_run: bool = False,
    check: bool = False,
    emit_obsolete: bool | None = None,
) -> RunConfiguration:
    """Combine the optional config file with command-line values.

    Command-line values win; relative paths in the config file resolve
    against the config file's directory.
    """
    payload = load_config_payload(config_path)
    root = config_path.resolve().parent if config_path is not None else Path.cwd()

    def _path(cli_value: str | None, key: str, default: str) -> Path:
        if cli_value:
            return Path(cli_value).resolve()
        return ensure_relative_path(root, str(payload.get(key, default))).resolve()

    return RunConfiguration(
        input_path=_path(input_path, "input_path", "specifications"),
        documentation_path=_path(documentation_path, "documentation_path", "documentation"),
        output_path=_path(output_path, "output_path", "generated"),
        targets=select_targets(available_targets(payload), targets),
        max_workers=max_workers or payload.get("max_workers"),
        dry_run=dry_run,
        check=check,
        emit_obsolete=bool(payload.get("emit_obsolete", False)) if emit_obsolete is None else emit_obsolete,
    )
