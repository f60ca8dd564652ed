from __future__ import annotations

from ._core_base import *  # noqa: F401,F403

FLOW_IN = "in"
FLOW_OUT = "out"
FLOW_INOUT = "inout"
PARAMETER_FLOWS = (FLOW_IN, FLOW_OUT, FLOW_INOUT)


@dataclass(frozen=True, order=True)
class ApiVersion:
    major: int
    minor: int

    @classmethod
    def parse(cls, value: str | "ApiVersion") -> "ApiVersion":
        if isinstance(value, ApiVersion):
            return value
        match = re.fullmatch(r"\s*(\d+)\.(\d+)\s*", str(value))
        if not match:
            raise SpecificationParseError(f"Invalid API version '{value}', expected '<major>.<minor>'")
        return cls(int(match.group(1)), int(match.group(2)))

    def as_tuple(self) -> tuple[int, int]:
        return (self.major, self.minor)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


@dataclass(frozen=True)
class TypeSignature:
    """Native or target type descriptor.

    Only ``base_type`` is rewritten by the typemap; every other field describes
    the shape around it and survives mapping untouched.
    """

    base_type: str
    pointer_depth: int = 0
    array_rank: int = 0
    is_const: bool = False
    fixed_length: int | None = None
    count_parameter: str | None = None
    enum_group: str | None = None
    by_reference: bool = False

    def with_base(self, base_type: str) -> "TypeSignature":
        return replace(self, base_type=base_type)

    @property
    def is_pointer(self) -> bool:
        return self.pointer_depth > 0

    def managed_shape(self) -> tuple[Any, ...]:
        """Project onto the parts an emitted C# parameter type shows.

        Constness, count markers and enum groups never reach the managed
        signature, and C# cannot overload on ref versus out.
        """
        if self.by_reference:
            return (self.base_type, "&")
        if self.fixed_length is not None:
            return (self.base_type, "span", self.is_const)
        return (self.base_type, self.pointer_depth, self.array_rank)

    def display(self) -> str:
        prefix = "const " if self.is_const else ""
        if self.by_reference:
            return f"ref {prefix}{self.base_type}"
        text = f"{prefix}{self.base_type}{'*' * self.pointer_depth}"
        if self.fixed_length is not None:
            text += f"[{self.fixed_length}]"
        text += "[]" * self.array_rank
        return text

    def as_dict(self) -> dict[str, Any]:
        return {
            "base_type": self.base_type,
            "pointer_depth": self.pointer_depth,
            "array_rank": self.array_rank,
            "is_const": self.is_const,
            "fixed_length": self.fixed_length,
            "count_parameter": self.count_parameter,
            "enum_group": self.enum_group,
            "by_reference": self.by_reference,
        }


@dataclass(frozen=True)
class Parameter:
    name: str
    type: TypeSignature
    flow: str = FLOW_IN
    enum_only: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.as_dict(),
            "flow": self.flow,
            "enum_only": self.enum_only,
        }


@dataclass(frozen=True)
class Function:
    native_name: str
    name: str
    return_type: TypeSignature
    parameters: tuple[Parameter, ...]
    introduced_version: ApiVersion
    extension_category: str | None = None
    deprecated: bool = False
    obsolete_reason: str | None = None
    documentation: str | None = None
    profile: str | None = None

    @property
    def identity(self) -> tuple[str, tuple[TypeSignature, ...]]:
        return (self.native_name, tuple(param.type for param in self.parameters))

    @property
    def is_obsolete(self) -> bool:
        return self.obsolete_reason is not None

    def parameter(self, name: str) -> Parameter | None:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def as_dict(self) -> dict[str, Any]:
        return {
            "native_name": self.native_name,
            "name": self.name,
            "return_type": self.return_type.as_dict(),
            "parameters": [param.as_dict() for param in self.parameters],
            "introduced_version": str(self.introduced_version),
            "extension_category": self.extension_category,
            "deprecated": self.deprecated,
            "obsolete_reason": self.obsolete_reason,
            "documentation": self.documentation,
            "profile": self.profile,
        }


@dataclass(frozen=True)
class EnumToken:
    name: str
    value: str


@dataclass(frozen=True)
class EnumDefinition:
    native_name: str
    name: str
    tokens: tuple[EnumToken, ...]
    introduced_version: ApiVersion
    flags: bool = False
    deprecated: bool = False
    obsolete_reason: str | None = None
    documentation: str | None = None
    profile: str | None = None

    @property
    def identity(self) -> str:
        return self.native_name

    @property
    def is_obsolete(self) -> bool:
        return self.obsolete_reason is not None

    def as_dict(self) -> dict[str, Any]:
        return {
            "native_name": self.native_name,
            "name": self.name,
            "tokens": [{"name": token.name, "value": token.value} for token in self.tokens],
            "introduced_version": str(self.introduced_version),
            "flags": self.flags,
            "deprecated": self.deprecated,
            "obsolete_reason": self.obsolete_reason,
            "documentation": self.documentation,
            "profile": self.profile,
        }


@dataclass(frozen=True)
class ApiProfile:
    name: str
    versions: tuple[ApiVersion, ...]
    functions: tuple[Function, ...]
    enums: tuple[EnumDefinition, ...]


@dataclass(frozen=True)
class ParameterPatch:
    name: str
    flow: str | None = None
    enum_only: bool | None = None
    count_parameter: str | None = None
    enum_group: str | None = None


@dataclass(frozen=True)
class OverridePatch:
    """Sparse delta over one function or enum; ``None`` fields leave the base untouched."""

    kind: str
    name: str
    profile: str | None = None
    versions: tuple[ApiVersion, ...] | None = None
    new_name: str | None = None
    deprecated: bool | None = None
    obsolete: str | None = None
    documentation: str | None = None
    extension_category: str | None = None
    parameters: tuple[ParameterPatch, ...] = ()
    source: str = "<inline>"


@dataclass(frozen=True)
class Typemap:
    entries: tuple[tuple[str, str], ...]
    source: str = "<inline>"

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str], source: str = "<inline>") -> "Typemap":
        return cls(entries=tuple(mapping.items()), source=source)


@dataclass(frozen=True)
class BakedTypemap:
    entries: Mapping[str, str]
    origins: Mapping[str, str] = field(default_factory=frozen_mapping, compare=False)

    def lookup(self, native_type_name: str) -> str | None:
        return self.entries.get(native_type_name)

    def __contains__(self, native_type_name: object) -> bool:
        return native_type_name in self.entries

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class BakedProfile:
    name: str
    base_name: str
    versions: tuple[ApiVersion, ...]
    functions: tuple[Function, ...]
    enums: tuple[EnumDefinition, ...]

    @property
    def ceiling(self) -> ApiVersion:
        return max(self.versions)

    def find_enum(self, name: str) -> EnumDefinition | None:
        for enum in self.enums:
            if enum.native_name == name or enum.name == name:
                return enum
        return None

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "base_name": self.base_name,
            "versions": [str(version) for version in self.versions],
            "functions": [function.as_dict() for function in self.functions],
            "enums": [enum.as_dict() for enum in self.enums],
        }


@dataclass(frozen=True)
class MappedProfile(BakedProfile):
    typemap: BakedTypemap | None = None


@dataclass(frozen=True)
class Overload:
    declared_name: str
    native_name: str
    return_type: TypeSignature
    parameters: tuple[Parameter, ...]
    variant: tuple[str, ...]
    extension_category: str | None = None
    deprecated: bool = False
    obsolete_reason: str | None = None
    # Mapped function the overload forwards to.
    source: Function | None = field(default=None, compare=False, repr=False)

    @property
    def identity(self) -> tuple[str, tuple[tuple[Any, ...], ...]]:
        return (self.declared_name, tuple(param.type.managed_shape() for param in self.parameters))

    @property
    def key(self) -> str:
        return overload_key(param.type for param in self.parameters)

    @property
    def is_obsolete(self) -> bool:
        return self.obsolete_reason is not None

    def as_dict(self) -> dict[str, Any]:
        return {
            "declared_name": self.declared_name,
            "native_name": self.native_name,
            "return_type": self.return_type.as_dict(),
            "parameters": [param.as_dict() for param in self.parameters],
            "variant": list(self.variant),
            "key": self.key,
            "extension_category": self.extension_category,
            "deprecated": self.deprecated,
            "obsolete_reason": self.obsolete_reason,
        }


def overload_key(types: Iterable[TypeSignature]) -> str:
    return ", ".join(item.display() for item in types)


@dataclass(frozen=True)
class OverloadSet:
    category: str | None
    declared_name: str
    overloads: tuple[Overload, ...]


@dataclass(frozen=True)
class OverloadedProfile:
    name: str
    versions: tuple[ApiVersion, ...]
    functions: tuple[Function, ...]
    enums: tuple[EnumDefinition, ...]
    overload_sets: tuple[OverloadSet, ...]

    def iter_overloads(self) -> Iterable[Overload]:
        for overload_set in self.overload_sets:
            yield from overload_set.overloads

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "versions": [str(version) for version in self.versions],
            "enums": [enum.as_dict() for enum in self.enums],
            "overload_sets": [
                {
                    "category": item.category,
                    "declared_name": item.declared_name,
                    "overloads": [overload.as_dict() for overload in item.overloads],
                }
                for item in self.overload_sets
            ],
        }


@dataclass(frozen=True)
class FunctionDocumentation:
    summary: str = ""
    parameters: Mapping[str, str] = field(default_factory=frozen_mapping)
    overloads: Mapping[str, "FunctionDocumentation"] = field(default_factory=frozen_mapping)

    @property
    def is_empty(self) -> bool:
        return not self.summary and not self.parameters


EMPTY_DOCUMENTATION = FunctionDocumentation()


@dataclass(frozen=True)
class ProfileDocumentation:
    profile: str | None
    functions: Mapping[str, FunctionDocumentation]
    enums: Mapping[str, str] = field(default_factory=frozen_mapping)


@dataclass(frozen=True)
class BakedDocumentation:
    functions: Mapping[str, FunctionDocumentation]
    enums: Mapping[str, str]
    overloads: Mapping[tuple[str, str], FunctionDocumentation] = field(default_factory=frozen_mapping)

    def for_function(self, native_name: str) -> FunctionDocumentation:
        return self.functions.get(native_name, EMPTY_DOCUMENTATION)

    def for_overload(self, overload: Overload) -> FunctionDocumentation:
        found = self.overloads.get((overload.native_name, overload.key))
        if found is not None:
            return found
        return self.for_function(overload.native_name)
