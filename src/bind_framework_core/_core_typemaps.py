from __future__ import annotations

from ._core_model import *  # noqa: F401,F403

log = logging.getLogger(__name__)


def collapse_typemap(typemap: Typemap) -> dict[str, str]:
    """Fold a source's entries into a dict, rejecting contradictory repeats."""
    out: dict[str, str] = {}
    for native, target in typemap.entries:
        existing = out.get(native)
        if existing is not None and existing != target:
            raise ConflictingTypemapError(
                f"Typemap '{typemap.source}' maps '{native}' to both '{existing}' and '{target}'"
            )
        out[native] = target
    return out


def bake_typemaps(api_typemap: Typemap, language_typemap: Typemap) -> BakedTypemap:
    api_entries = collapse_typemap(api_typemap)
    language_entries = collapse_typemap(language_typemap)

    entries: dict[str, str] = {}
    origins: dict[str, str] = {}
    overridden = 0
    for native in sorted(set(api_entries) | set(language_entries)):
        if native in language_entries:
            entries[native] = language_entries[native]
            origins[native] = language_typemap.source
            if native in api_entries and api_entries[native] != language_entries[native]:
                overridden += 1
        else:
            entries[native] = api_entries[native]
            origins[native] = api_typemap.source

    log.debug(
        "baked typemap from %s + %s: %d entries (%d api entries overridden by language map)",
        api_typemap.source,
        language_typemap.source,
        len(entries),
        overridden,
    )
    return BakedTypemap(entries=frozen_mapping(entries), origins=frozen_mapping(origins))


class ProfileMapper:
    def __init__(self, typemap: BakedTypemap):
        self.typemap = typemap

    def map_type(self, signature: TypeSignature, owner: str) -> TypeSignature:
        target = self.typemap.lookup(signature.base_type)
        if target is None:
            raise UnmappedTypeError(signature.base_type, owner)
        return signature.with_base(target)

    def map_function(self, function: Function) -> Function:
        params = tuple(
            replace(param, type=self.map_type(param.type, function.native_name))
            for param in function.parameters
        )
        return replace(
            function,
            return_type=self.map_type(function.return_type, function.native_name),
            parameters=params,
        )

    def map_profile(self, profile: BakedProfile) -> MappedProfile:
        # Built in full before construction; an unmapped type aborts the whole profile.
        functions = tuple(self.map_function(function) for function in profile.functions)
        return MappedProfile(
            name=profile.name,
            base_name=profile.base_name,
            versions=profile.versions,
            functions=functions,
            enums=profile.enums,
            typemap=self.typemap,
        )
