from __future__ import annotations

from ._core_model import *  # noqa: F401,F403

log = logging.getLogger(__name__)


class DocumentationBaker:
    """Align parsed documentation with the definitions of one baked profile.

    Entries are matched by native name first and by declared name second.
    Text injected by an override replaces the parsed summary. Missing
    documentation is never an error; the entry is simply left empty.
    """

    def __init__(self, profile: BakedProfile):
        self.profile = profile

    def bake_documentation(self, docs: ProfileDocumentation) -> BakedDocumentation:
        if docs.profile is not None and docs.profile not in {self.profile.name, self.profile.base_name}:
            log.warning(
                "documentation for profile '%s' applied to profile '%s' (base '%s')",
                docs.profile,
                self.profile.name,
                self.profile.base_name,
            )
        functions: dict[str, FunctionDocumentation] = {}
        undocumented = 0
        for function in self.profile.functions:
            entry = docs.functions.get(function.native_name)
            if entry is None:
                entry = docs.functions.get(function.name)
            if function.documentation:
                entry = replace(entry or EMPTY_DOCUMENTATION, summary=normalize_ws(function.documentation))
            if entry is None:
                undocumented += 1
                continue
            functions[function.native_name] = entry

        enums: dict[str, str] = {}
        for enum in self.profile.enums:
            text = enum.documentation or docs.enums.get(enum.native_name) or docs.enums.get(enum.name)
            if text:
                enums[enum.native_name] = normalize_ws(text)

        if undocumented:
            log.debug("%d of %d functions in %s have no documentation", undocumented, len(self.profile.functions), self.profile.name)
        return BakedDocumentation(functions=frozen_mapping(functions), enums=frozen_mapping(enums))


def attach_overloads(docs: BakedDocumentation, profile: OverloadedProfile) -> BakedDocumentation:
    overloads: dict[tuple[str, str], FunctionDocumentation] = {}
    for overload in profile.iter_overloads():
        shared = docs.for_function(overload.native_name)
        specific = shared.overloads.get(overload.key)
        if specific is None:
            overloads[(overload.native_name, overload.key)] = shared
            continue
        merged_params = dict(shared.parameters)
        merged_params.update(specific.parameters)
        overloads[(overload.native_name, overload.key)] = FunctionDocumentation(
            summary=specific.summary or shared.summary,
            parameters=frozen_mapping(merged_params),
        )
    return replace(docs, overloads=frozen_mapping(overloads))
