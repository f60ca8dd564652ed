from __future__ import annotations

import itertools

from ._core_model import *  # noqa: F401,F403

log = logging.getLogger(__name__)

DEFAULT_PRIMITIVE_TYPES = (
    "bool",
    "byte",
    "sbyte",
    "short",
    "ushort",
    "int",
    "uint",
    "long",
    "ulong",
    "nint",
    "nuint",
    "float",
    "double",
    "Half",
)
DEFAULT_STRING_TYPES = ("byte",)

VARIANT_RAW = "raw"
VARIANT_ARRAY = "array"
VARIANT_FIXED = "fixed"
VARIANT_REF = "ref"
VARIANT_STRING = "string"
VARIANT_ENUM = "enum"


@dataclass(frozen=True)
class OverloadRules:
    primitive_types: tuple[str, ...] = DEFAULT_PRIMITIVE_TYPES
    string_types: tuple[str, ...] = DEFAULT_STRING_TYPES
    string_target: str = "string"

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | None) -> "OverloadRules":
        if not payload:
            return cls()
        kwargs: dict[str, Any] = {}
        for key in ("primitive_types", "string_types"):
            if key in payload:
                kwargs[key] = tuple(normalize_string_list(payload[key], f"rules.{key}"))
        return cls(**kwargs)


ParameterVariant = tuple[str, Parameter]


def parameter_variants(
    param: Parameter,
    profile: BakedProfile,
    rules: OverloadRules,
    function_name: str,
) -> list[ParameterVariant]:
    """Return the overload family for one parameter, primary shape first."""
    signature = param.type
    raw: ParameterVariant = (VARIANT_RAW, param)

    if signature.fixed_length is not None:
        fixed = replace(signature, pointer_depth=max(0, signature.pointer_depth - 1))
        return [(VARIANT_FIXED, replace(param, type=fixed))]

    if signature.pointer_depth > 1:
        return [raw]

    if signature.pointer_depth == 1:
        primitive = signature.base_type in rules.primitive_types
        if (
            signature.is_const
            and signature.count_parameter is None
            and signature.base_type in rules.string_types
        ):
            as_string = TypeSignature(base_type=rules.string_target)
            return [raw, (VARIANT_STRING, replace(param, type=as_string))]
        if primitive and signature.count_parameter is not None:
            array = replace(signature, pointer_depth=0, array_rank=1)
            return [raw, (VARIANT_ARRAY, replace(param, type=array))]
        if primitive and param.flow in (FLOW_OUT, FLOW_INOUT):
            by_ref = replace(signature, pointer_depth=0, by_reference=True)
            return [raw, (VARIANT_REF, replace(param, type=by_ref))]
        return [raw]

    if signature.enum_group is not None:
        enum = profile.find_enum(signature.enum_group)
        if enum is None:
            if param.enum_only:
                raise OverrideError(
                    f"Parameter '{param.name}' of '{function_name}' is enum-only but enum "
                    f"'{signature.enum_group}' is not part of profile '{profile.name}'"
                )
            log.debug(
                "enum group %s of %s.%s not in profile %s; keeping raw integer only",
                signature.enum_group,
                function_name,
                param.name,
                profile.name,
            )
            return [raw]
        typed: ParameterVariant = (VARIANT_ENUM, replace(param, type=signature.with_base(enum.name)))
        if param.enum_only:
            return [typed]
        return [typed, raw]

    return [raw]


def expand_function(function: Function, profile: BakedProfile, rules: OverloadRules) -> list[Overload]:
    families = [
        parameter_variants(param, profile, rules, function.native_name)
        for param in function.parameters
    ]
    overloads: list[Overload] = []
    for combination in itertools.product(*families):
        overloads.append(
            Overload(
                declared_name=function.name,
                native_name=function.native_name,
                return_type=function.return_type,
                parameters=tuple(param for _, param in combination),
                variant=tuple(tag for tag, _ in combination),
                extension_category=function.extension_category,
                deprecated=function.deprecated,
                obsolete_reason=function.obsolete_reason,
                source=function,
            )
        )
    return overloads


def _structural_key(overload: Overload) -> tuple[Any, ...]:
    return (
        overload.native_name,
        overload.return_type,
        tuple((param.name, param.flow) for param in overload.parameters),
    )


def bake_overloads(profile: MappedProfile, rules: OverloadRules | None = None) -> OverloadedProfile:
    rules = rules or OverloadRules()
    grouped: dict[tuple[str, str], list[Overload]] = {}
    categories: dict[tuple[str, str], str | None] = {}

    for function in profile.functions:
        group_key = (function.extension_category or "", function.name)
        categories[group_key] = function.extension_category
        bucket = grouped.setdefault(group_key, [])
        seen = {overload.identity: overload for overload in bucket}
        for overload in expand_function(function, profile, rules):
            previous = seen.get(overload.identity)
            if previous is None:
                seen[overload.identity] = overload
                bucket.append(overload)
                continue
            if _structural_key(previous) == _structural_key(overload):
                continue
            raise OverloadCollisionError(
                f"Overload '{overload.declared_name}({overload.key})' is produced by both "
                f"'{previous.native_name}' ({'/'.join(previous.variant)}) and "
                f"'{overload.native_name}' ({'/'.join(overload.variant)}) with different signatures"
            )

    overload_sets = tuple(
        OverloadSet(category=categories[key], declared_name=key[1], overloads=tuple(grouped[key]))
        for key in sorted(grouped)
    )
    log.debug(
        "expanded %d functions of %s into %d overloads in %d sets",
        len(profile.functions),
        profile.name,
        sum(len(item.overloads) for item in overload_sets),
        len(overload_sets),
    )
    return OverloadedProfile(
        name=profile.name,
        versions=profile.versions,
        functions=profile.functions,
        enums=profile.enums,
        overload_sets=overload_sets,
    )
