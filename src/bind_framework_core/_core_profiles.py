from __future__ import annotations

from ._core_model import *  # noqa: F401,F403

log = logging.getLogger(__name__)

FunctionIdentity = tuple[str, tuple[TypeSignature, ...]]


def function_sort_key(function: Function) -> tuple[str, str]:
    return (function.native_name, overload_key(param.type for param in function.parameters))


class ProfileBaker:
    """Resolve one concrete profile out of a family of versioned profiles.

    The base profile supplies every definition up to the requested version
    ceiling, the requested profile is layered on top of it, and the override
    patches are applied last in declaration order.
    """

    def __init__(self, profiles: Iterable[ApiProfile], overrides: Iterable[OverridePatch] = ()):
        self._profiles: dict[str, ApiProfile] = {}
        for profile in profiles:
            if profile.name in self._profiles:
                raise SpecificationParseError(f"Profile '{profile.name}' is defined more than once")
            self._profiles[profile.name] = profile
        self._overrides = tuple(overrides)

    @property
    def profile_names(self) -> list[str]:
        return sorted(self._profiles)

    def _require_profile(self, name: str) -> ApiProfile:
        profile = self._profiles.get(name)
        if profile is None:
            known = ", ".join(self.profile_names) or "<none>"
            raise UnknownProfileError(f"Unknown profile '{name}'. Known profiles: {known}")
        return profile

    def bake_profile(
        self,
        profile_name: str,
        versions: Iterable[str | ApiVersion],
        base_profile_name: str | None = None,
    ) -> BakedProfile:
        base_name = base_profile_name or profile_name
        base = self._require_profile(base_name)
        profile = self._require_profile(profile_name)

        requested = tuple(sorted({ApiVersion.parse(item) for item in versions}))
        if not requested:
            raise VersionNotFoundError(f"No versions requested for profile '{profile_name}'")
        ceiling = requested[-1]
        declared = set(base.versions) | set(profile.versions)
        undeclared = [str(version) for version in requested if version not in declared]
        if undeclared:
            log.debug(
                "profile %s (base %s) declares no version(s) %s; gating at %s",
                profile_name,
                base_name,
                ", ".join(undeclared),
                ceiling,
            )

        functions: dict[FunctionIdentity, Function] = {
            function.identity: function
            for function in base.functions
            if function.introduced_version <= ceiling
        }
        enums: dict[str, EnumDefinition] = {
            enum.identity: enum for enum in base.enums if enum.introduced_version <= ceiling
        }
        if profile.name != base.name:
            for function in profile.functions:
                if function.introduced_version <= ceiling:
                    functions[function.identity] = function
            for enum in profile.enums:
                if enum.introduced_version <= ceiling:
                    enums[enum.identity] = enum

        if not functions and not enums:
            raise VersionNotFoundError(
                f"No definitions in profile '{profile_name}' (base '{base_name}') "
                f"are available at version {ceiling}"
            )

        patched_functions, patched_enums = self._apply_overrides(
            profile_name=profile_name,
            base_name=base_name,
            requested=requested,
            functions=sorted(functions.values(), key=function_sort_key),
            enums=sorted(enums.values(), key=lambda item: item.native_name),
        )

        log.debug(
            "baked profile %s (base %s) at %s: %d functions, %d enums",
            profile_name,
            base_name,
            ceiling,
            len(patched_functions),
            len(patched_enums),
        )
        return BakedProfile(
            name=profile_name,
            base_name=base_name,
            versions=requested,
            functions=tuple(patched_functions),
            enums=tuple(patched_enums),
        )

    def _patch_applies(
        self,
        patch: OverridePatch,
        profile_name: str,
        base_name: str,
        requested: tuple[ApiVersion, ...],
    ) -> bool:
        if patch.profile is not None and patch.profile not in {profile_name, base_name}:
            return False
        if patch.versions is not None and not set(patch.versions) & set(requested):
            return False
        return True

    def _apply_overrides(
        self,
        *,
        profile_name: str,
        base_name: str,
        requested: tuple[ApiVersion, ...],
        functions: list[Function],
        enums: list[EnumDefinition],
    ) -> tuple[list[Function], list[EnumDefinition]]:
        for patch in self._overrides:
            if not self._patch_applies(patch, profile_name, base_name, requested):
                continue
            matched = False
            if patch.kind == "function":
                for index, function in enumerate(functions):
                    if function.native_name == patch.name:
                        functions[index] = apply_function_patch(function, patch)
                        matched = True
            elif patch.kind == "enum":
                for index, enum in enumerate(enums):
                    if enum.native_name == patch.name:
                        enums[index] = apply_enum_patch(enum, patch)
                        matched = True
            else:
                raise OverrideError(f"Override {patch.source} has unknown kind '{patch.kind}'")
            if not matched:
                log.debug("override %s (%s '%s') matched nothing in %s", patch.source, patch.kind, patch.name, profile_name)
        return functions, enums


def _apply_parameter_patch(function: Function, param: Parameter, patch: ParameterPatch, source: str) -> Parameter:
    signature = param.type
    if patch.count_parameter is not None:
        if function.parameter(patch.count_parameter) is None:
            raise OverrideError(
                f"Override {source}: count parameter '{patch.count_parameter}' "
                f"does not exist on '{function.native_name}'"
            )
        signature = replace(signature, count_parameter=patch.count_parameter)
    if patch.enum_group is not None:
        signature = replace(signature, enum_group=patch.enum_group)

    changes: dict[str, Any] = {}
    if signature != param.type:
        changes["type"] = signature
    if patch.flow is not None:
        if patch.flow not in PARAMETER_FLOWS:
            raise OverrideError(f"Override {source}: invalid flow '{patch.flow}' for parameter '{param.name}'")
        changes["flow"] = patch.flow
    if patch.enum_only is not None:
        changes["enum_only"] = patch.enum_only
    return replace(param, **changes) if changes else param


def apply_function_patch(function: Function, patch: OverridePatch) -> Function:
    changes: dict[str, Any] = {}
    if patch.new_name is not None:
        changes["name"] = patch.new_name
    if patch.deprecated is not None:
        changes["deprecated"] = patch.deprecated
    if patch.obsolete is not None:
        changes["obsolete_reason"] = patch.obsolete
    if patch.documentation is not None:
        changes["documentation"] = patch.documentation
    if patch.extension_category is not None:
        changes["extension_category"] = patch.extension_category

    if patch.parameters:
        params = list(function.parameters)
        for param_patch in patch.parameters:
            for index, param in enumerate(params):
                if param.name == param_patch.name:
                    params[index] = _apply_parameter_patch(function, param, param_patch, patch.source)
                    break
            else:
                raise OverrideError(
                    f"Override {patch.source}: parameter '{param_patch.name}' "
                    f"does not exist on '{function.native_name}'"
                )
        if tuple(params) != function.parameters:
            changes["parameters"] = tuple(params)

    return replace(function, **changes) if changes else function


def apply_enum_patch(enum: EnumDefinition, patch: OverridePatch) -> EnumDefinition:
    if patch.parameters:
        raise OverrideError(f"Override {patch.source}: enum '{enum.native_name}' has no parameters to patch")
    if patch.extension_category is not None:
        raise OverrideError(f"Override {patch.source}: enum '{enum.native_name}' cannot carry a category")
    changes: dict[str, Any] = {}
    if patch.new_name is not None:
        changes["name"] = patch.new_name
    if patch.deprecated is not None:
        changes["deprecated"] = patch.deprecated
    if patch.obsolete is not None:
        changes["obsolete_reason"] = patch.obsolete
    if patch.documentation is not None:
        changes["documentation"] = patch.documentation
    return replace(enum, **changes) if changes else enum
