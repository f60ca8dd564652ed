from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed

from ._core_base import *  # noqa: F401,F403
from ._core_profiles import *  # noqa: F401,F403
from ._core_typemaps import *  # noqa: F401,F403
from ._core_docs import *  # noqa: F401,F403
from ._core_cache import *  # noqa: F401,F403
from ._core_writer import *  # noqa: F401,F403

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BakedTarget:
    settings: GeneratorSettings
    profile: OverloadedProfile
    documentation: BakedDocumentation
    typemap: BakedTypemap

    def as_dict(self) -> dict[str, Any]:
        return {
            "target": self.settings.as_dict(),
            "profile": self.profile.as_dict(),
            "typemap": dict(sorted(self.typemap.entries.items())),
            "documentation": {
                name: {"summary": entry.summary, "parameters": dict(entry.parameters)}
                for name, entry in sorted(self.documentation.functions.items())
            },
        }


def bake_target(config: RunConfiguration, settings: GeneratorSettings, cache: ResourceCache) -> BakedTarget:
    """Run every baking stage for one target and return the resolved model.

    Stages run in order: profile baking, documentation baking, typemap
    baking, type mapping, overload expansion and overload documentation.
    Any stage failure aborts the whole target.
    """
    profiles = cache.get_profiles(config.specification_path(settings))
    overrides = read_overrides(config.override_paths(settings))
    log.info("[%s] loaded %d profile(s), %d override(s)", settings.name, len(profiles), len(overrides))

    baked = ProfileBaker(profiles, overrides).bake_profile(
        settings.profile,
        settings.versions,
        base_profile_name=settings.base_profile,
    )
    log.info(
        "[%s] baked profile %s at %s: %d functions, %d enums",
        settings.name,
        baked.name,
        baked.ceiling,
        len(baked.functions),
        len(baked.enums),
    )

    documentation = DocumentationBaker(baked).bake_documentation(
        read_documentation(config.documentation_file(settings))
    )

    typemap = bake_typemaps(
        cache.get_typemap(config.api_typemap_path(settings)),
        cache.get_typemap(config.language_typemap_path(settings)),
    )
    mapped = ProfileMapper(typemap).map_profile(baked)
    log.info("[%s] mapped types with %d typemap entries", settings.name, len(typemap))

    overloaded = bake_overloads(mapped, settings.rules)
    documentation = attach_overloads(documentation, overloaded)
    log.info(
        "[%s] expanded %d overload set(s)",
        settings.name,
        len(overloaded.overload_sets),
    )
    return BakedTarget(settings=settings, profile=overloaded, documentation=documentation, typemap=typemap)


def generate_bindings_for_target(
    config: RunConfiguration,
    settings: GeneratorSettings,
    cache: ResourceCache,
) -> dict[str, Any]:
    target = bake_target(config, settings, cache)
    artifact = write_bindings(config, settings, target.profile, target.documentation)
    log.info("[%s] bindings %s: %s", settings.name, artifact["path"], artifact["status"])
    return {
        "target": settings.name,
        "profile": target.profile.name,
        "versions": [str(version) for version in target.profile.versions],
        "function_count": len(target.profile.functions),
        "enum_count": len(target.profile.enums),
        "overload_count": sum(len(item.overloads) for item in target.profile.overload_sets),
        "artifact": artifact,
        "has_drift": artifact["status"] == "drift",
    }


def run_generation(config: RunConfiguration, cache: ResourceCache | None = None) -> dict[str, dict[str, Any]]:
    """Generate bindings for every configured target concurrently.

    Runs are independent; a failing target never cancels its siblings. Once
    every run has finished, all failures are raised together as
    ``GenerationFailedError``.
    """
    if not config.targets:
        raise ConfigurationError("No targets selected")
    cache = cache or ResourceCache()
    results: dict[str, dict[str, Any]] = {}
    failures: dict[str, BaseException] = {}

    with ThreadPoolExecutor(max_workers=config.worker_count, thread_name_prefix="bind") as executor:
        futures = {
            executor.submit(generate_bindings_for_target, config, settings, cache): settings.name
            for settings in config.targets
        }
        for future in as_completed(futures):
            name = futures[future]
            try:
                results[name] = future.result()
            except Exception as exc:
                log.error("[%s] generation failed: %s", name, exc)
                failures[name] = exc

    ordered = {name: results[name] for name in sorted(results)}
    if failures:
        raise GenerationFailedError(failures, results=ordered)
    return ordered
