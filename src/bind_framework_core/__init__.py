from .core import (
    ApiProfile,
    ApiVersion,
    BakedDocumentation,
    BakedProfile,
    BakedTarget,
    BakedTypemap,
    BindFrameworkError,
    ConfigurationError,
    ConflictingTypemapError,
    DocumentationBaker,
    EnumDefinition,
    Function,
    GenerationFailedError,
    GeneratorSettings,
    MappedProfile,
    Overload,
    OverloadCollisionError,
    OverloadedProfile,
    OverloadRules,
    OverrideError,
    OverridePatch,
    Parameter,
    ProfileBaker,
    ProfileMapper,
    ResourceCache,
    RunConfiguration,
    SingleFlightCache,
    SpecificationParseError,
    TargetKind,
    Typemap,
    TypeSignature,
    UnknownProfileError,
    UnmappedTypeError,
    VersionNotFoundError,
    attach_overloads,
    bake_overloads,
    bake_target,
    bake_typemaps,
    build_run_configuration,
    generate_bindings_for_target,
    read_documentation,
    read_overrides,
    read_signatures,
    read_typemap,
    render_bindings,
    run_generation,
)

__all__ = [
    "ApiProfile",
    "ApiVersion",
    "BakedDocumentation",
    "BakedProfile",
    "BakedTarget",
    "BakedTypemap",
    "BindFrameworkError",
    "ConfigurationError",
    "ConflictingTypemapError",
    "DocumentationBaker",
    "EnumDefinition",
    "Function",
    "GenerationFailedError",
    "GeneratorSettings",
    "MappedProfile",
    "Overload",
    "OverloadCollisionError",
    "OverloadedProfile",
    "OverloadRules",
    "OverrideError",
    "OverridePatch",
    "Parameter",
    "ProfileBaker",
    "ProfileMapper",
    "ResourceCache",
    "RunConfiguration",
    "SingleFlightCache",
    "SpecificationParseError",
    "TargetKind",
    "Typemap",
    "TypeSignature",
    "UnknownProfileError",
    "UnmappedTypeError",
    "VersionNotFoundError",
    "attach_overloads",
    "bake_overloads",
    "bake_target",
    "bake_typemaps",
    "build_run_configuration",
    "generate_bindings_for_target",
    "read_documentation",
    "read_overrides",
    "read_signatures",
    "read_typemap",
    "render_bindings",
    "run_generation",
]
