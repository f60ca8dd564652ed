from __future__ import annotations

from typing import IO

from ._core_model import *  # noqa: F401,F403

log = logging.getLogger(__name__)

_QUALIFIER_RE = re.compile(r"\b(const|volatile|restrict|struct|enum)\b")


def normalize_c_type(value: str) -> str:
    text = normalize_ws(value)
    text = re.sub(r"\s*\*\s*", "*", text)
    return text


def parse_c_type(declaration: str, label: str) -> TypeSignature:
    """Parse a C declarator such as ``const GLfloat *`` or ``GLfloat[4]``.

    Array declarators decay to a pointer and keep the length as ``fixed_length``.
    """
    decl = normalize_c_type(declaration)
    if not decl:
        raise SpecificationParseError(f"{label}: empty type declaration")

    fixed_length: int | None = None
    array_decl = re.match(r"^(?P<left>.+?)\s*(?P<dims>(?:\[\s*\d+\s*\])+)$", decl)
    if array_decl:
        fixed_length = 1
        for dim in re.findall(r"\d+", array_decl.group("dims")):
            fixed_length *= int(dim)
        decl = normalize_c_type(array_decl.group("left")) + "*"

    pointer_depth = decl.count("*")
    is_const = bool(re.search(r"\bconst\b", decl))
    base = _QUALIFIER_RE.sub(" ", decl.replace("*", " "))
    base = normalize_ws(base)
    if not base or not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*(?: [A-Za-z_][A-Za-z0-9_]*)*", base):
        raise SpecificationParseError(f"{label}: unable to parse type declaration '{declaration}'")

    return TypeSignature(
        base_type=base,
        pointer_depth=pointer_depth,
        is_const=is_const,
        fixed_length=fixed_length,
    )


def _parse_parameter(raw: dict[str, Any], label: str) -> Parameter:
    name = str(raw["name"])
    signature = parse_c_type(str(raw["type"]), f"{label}.{name}")
    length = raw.get("length")
    if length is not None:
        signature = replace(signature, fixed_length=int(length))
    signature = replace(
        signature,
        count_parameter=raw.get("count"),
        enum_group=raw.get("group"),
    )
    return Parameter(name=name, type=signature, flow=str(raw.get("flow", FLOW_IN)))


def _parse_function(raw: dict[str, Any], profile_name: str, label: str) -> Function:
    name = str(raw["name"])
    fn_label = f"{label}.{name}"
    params = tuple(
        _parse_parameter(item, fn_label) for item in raw.get("parameters", [])
    )
    seen: set[str] = set()
    for param in params:
        if param.name in seen:
            raise SpecificationParseError(f"{fn_label}: duplicate parameter '{param.name}'")
        seen.add(param.name)
    for param in params:
        count = param.type.count_parameter
        if count is not None and count not in seen:
            raise SpecificationParseError(
                f"{fn_label}.{param.name}: count parameter '{count}' is not a parameter of the function"
            )
    return Function(
        native_name=name,
        name=name,
        return_type=parse_c_type(str(raw.get("return", "void")), f"{fn_label}.return"),
        parameters=params,
        introduced_version=ApiVersion.parse(raw["version"]),
        extension_category=raw.get("category"),
        deprecated=bool(raw.get("deprecated", False)),
        profile=profile_name,
    )


def _parse_enum(raw: dict[str, Any], profile_name: str) -> EnumDefinition:
    name = str(raw["name"])
    tokens = tuple(
        EnumToken(name=str(token["name"]), value=str(token["value"]))
        for token in raw.get("tokens", [])
    )
    return EnumDefinition(
        native_name=name,
        name=name,
        tokens=tokens,
        introduced_version=ApiVersion.parse(raw["version"]),
        flags=bool(raw.get("flags", False)),
        deprecated=bool(raw.get("deprecated", False)),
        profile=profile_name,
    )


def read_signatures(path: Path) -> tuple[ApiProfile, ...]:
    payload = load_json(path)
    validate_with_schema("signatures", payload, f"specification '{path}'")

    profiles: list[ApiProfile] = []
    seen_names: set[str] = set()
    for raw in payload["profiles"]:
        profile_name = str(raw["name"])
        if profile_name in seen_names:
            raise SpecificationParseError(f"specification '{path}': duplicate profile '{profile_name}'")
        seen_names.add(profile_name)
        label = f"{path.name}:{profile_name}"
        versions = tuple(sorted({ApiVersion.parse(item) for item in raw["versions"]}))
        functions = tuple(_parse_function(item, profile_name, label) for item in raw.get("functions", []))
        enums = tuple(_parse_enum(item, profile_name) for item in raw.get("enums", []))

        identities: set[tuple[str, tuple[TypeSignature, ...]]] = set()
        for function in functions:
            if function.identity in identities:
                raise SpecificationParseError(f"{label}: duplicate function definition '{function.native_name}'")
            identities.add(function.identity)

        profiles.append(ApiProfile(name=profile_name, versions=versions, functions=functions, enums=enums))

    log.debug("read %d profile(s) from %s", len(profiles), path)
    return tuple(profiles)


def _parse_parameter_patch(raw: dict[str, Any]) -> ParameterPatch:
    return ParameterPatch(
        name=str(raw["name"]),
        flow=raw.get("flow"),
        enum_only=raw.get("enum_only"),
        count_parameter=raw.get("count"),
        enum_group=raw.get("group"),
    )


def read_overrides(paths: Iterable[Path]) -> list[OverridePatch]:
    patches: list[OverridePatch] = []
    for path in paths:
        payload = load_json(path)
        validate_with_schema("overrides", payload, f"override file '{path}'")
        for index, raw in enumerate(payload["overrides"]):
            versions_raw = raw.get("versions")
            patches.append(
                OverridePatch(
                    kind=str(raw.get("kind", "function")),
                    name=str(raw["name"]),
                    profile=raw.get("profile"),
                    versions=(
                        tuple(ApiVersion.parse(item) for item in versions_raw)
                        if versions_raw is not None
                        else None
                    ),
                    new_name=raw.get("rename"),
                    deprecated=raw.get("deprecated"),
                    obsolete=raw.get("obsolete"),
                    documentation=raw.get("documentation"),
                    extension_category=raw.get("category"),
                    parameters=tuple(_parse_parameter_patch(item) for item in raw.get("parameters", [])),
                    source=f"{path.name}#{index}",
                )
            )
    return patches


class _PairsDict(dict):
    """Dict that also remembers every key/value pair, duplicates included."""

    def __init__(self, pairs: list[tuple[str, Any]]):
        super().__init__(pairs)
        self.pairs = list(pairs)


def read_typemap(stream: IO[str], source: str = "<stream>") -> Typemap:
    try:
        payload = json.load(stream, object_pairs_hook=_PairsDict)
    except json.JSONDecodeError as exc:
        raise SpecificationParseError(f"Invalid JSON in typemap '{source}': {exc}") from exc
    validate_with_schema("typemap", payload, f"typemap '{source}'")
    entries = tuple((str(native), str(target)) for native, target in payload["typemap"].pairs)
    return Typemap(entries=entries, source=source)


def read_typemap_file(path: Path) -> Typemap:
    try:
        with path.open("r", encoding="utf-8") as stream:
            return read_typemap(stream, source=str(path))
    except OSError as exc:
        raise SpecificationParseError(f"Unable to read typemap '{path}': {exc}") from exc


def _parse_function_docs(raw: dict[str, Any]) -> FunctionDocumentation:
    overloads = {
        str(key): _parse_function_docs(value)
        for key, value in (raw.get("overloads") or {}).items()
    }
    return FunctionDocumentation(
        summary=normalize_ws(str(raw.get("summary", ""))),
        parameters=frozen_mapping(
            {str(key): normalize_ws(str(value)) for key, value in (raw.get("parameters") or {}).items()}
        ),
        overloads=frozen_mapping(overloads),
    )


def read_documentation(path: Path) -> ProfileDocumentation:
    if not path.exists():
        log.warning("documentation file %s not found; bindings will be undocumented", path)
        return ProfileDocumentation(profile=None, functions=frozen_mapping())
    payload = load_json(path)
    validate_with_schema("documentation", payload, f"documentation '{path}'")
    functions = {
        str(name): _parse_function_docs(entry)
        for name, entry in (payload.get("functions") or {}).items()
    }
    enums = {str(name): normalize_ws(str(text)) for name, text in (payload.get("enums") or {}).items()}
    return ProfileDocumentation(
        profile=payload.get("profile"),
        functions=frozen_mapping(functions),
        enums=frozen_mapping(enums),
    )
