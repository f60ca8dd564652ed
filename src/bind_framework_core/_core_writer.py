from __future__ import annotations

import html

from ._core_settings import *  # noqa: F401,F403

log = logging.getLogger(__name__)

CSHARP_KEYWORDS = {
    "abstract", "as", "base", "bool", "break", "byte", "case", "catch", "char", "checked",
    "class", "const", "continue", "decimal", "default", "delegate", "do", "double", "else",
    "enum", "event", "explicit", "extern", "false", "finally", "fixed", "float", "for",
    "foreach", "goto", "if", "implicit", "in", "int", "interface", "internal", "is", "lock",
    "long", "namespace", "new", "null", "object", "operator", "out", "override", "params",
    "private", "protected", "public", "readonly", "ref", "return", "sbyte", "sealed",
    "short", "sizeof", "stackalloc", "static", "string", "struct", "switch", "this", "throw",
    "true", "try", "typeof", "uint", "ulong", "unchecked", "unsafe", "ushort", "using",
    "virtual", "void", "volatile", "while",
}


def escape_identifier(name: str) -> str:
    return f"@{name}" if name in CSHARP_KEYWORDS else name


def to_managed_member_name(token: str) -> str:
    parts = [part for part in token.lower().split("_") if part]
    if not parts:
        return "None"
    value = "".join(part[:1].upper() + part[1:] for part in parts)
    if value[0].isdigit():
        value = "_" + value
    return value


def common_token_prefix(names: list[str]) -> str:
    if not names:
        return ""
    prefix = names[0]
    for item in names[1:]:
        i = 0
        while i < len(prefix) and i < len(item) and prefix[i] == item[i]:
            i += 1
        prefix = prefix[:i]
        if not prefix:
            break
    if "_" in prefix:
        return prefix[: prefix.rfind("_") + 1]
    return ""


def xml_doc(text: str) -> str:
    return html.escape(text, quote=False)


def render_type(signature: TypeSignature, flow: str = FLOW_IN) -> str:
    base = signature.base_type
    if signature.by_reference:
        return f"{'out' if flow == FLOW_OUT else 'ref'} {base}"
    if signature.fixed_length is not None:
        span = "ReadOnlySpan" if signature.is_const else "Span"
        return f"{span}<{base}>"
    if signature.array_rank:
        return base + "[]" * signature.array_rank
    return base + "*" * signature.pointer_depth


def render_native_type(signature: TypeSignature) -> str:
    # Extern parameters stay blittable; fixed arrays arrive as pointers.
    return signature.base_type + "*" * signature.pointer_depth


def _enum_underlying_type(enum_def: EnumDefinition) -> str:
    for token in enum_def.tokens:
        try:
            value = int(token.value, 0)
        except ValueError:
            continue
        if value > 0xFFFFFFFF or value < 0:
            return "ulong" if value > 0 else "long"
    return "uint"


def render_enum(enum_def: EnumDefinition, docs: BakedDocumentation) -> list[str]:
    lines: list[str] = []
    summary = docs.enums.get(enum_def.native_name)
    if summary:
        lines.append(f"/// <summary>{xml_doc(summary)}</summary>")
    if enum_def.deprecated:
        lines.append('[Obsolete("Deprecated")]')
    if enum_def.flags:
        lines.append("[Flags]")
    lines.append(f"public enum {enum_def.name} : {_enum_underlying_type(enum_def)}")
    lines.append("{")
    prefix = common_token_prefix([token.name for token in enum_def.tokens])
    seen: set[str] = set()
    for token in enum_def.tokens:
        trimmed = token.name[len(prefix):] if prefix else token.name
        member = to_managed_member_name(trimmed)
        if member in seen:
            member = to_managed_member_name(token.name)
        seen.add(member)
        lines.append(f"    {member} = {token.value},")
    lines.append("}")
    lines.append("")
    return lines


def _entry_point_names(functions: tuple[Function, ...]) -> dict[tuple[str, tuple[TypeSignature, ...]], str]:
    names: dict[tuple[str, tuple[TypeSignature, ...]], str] = {}
    used: dict[str, int] = {}
    for function in functions:
        count = used.get(function.native_name, 0)
        used[function.native_name] = count + 1
        suffix = f"_{count}" if count else ""
        names[function.identity] = f"_{function.native_name}{suffix}"
    return names


def render_entry_point(function: Function, extern_name: str) -> list[str]:
    params = ", ".join(
        f"{render_native_type(param.type)} {escape_identifier(param.name)}" for param in function.parameters
    )
    return [
        f'    [DllImport(Library, EntryPoint = "{function.native_name}", ExactSpelling = true)]',
        f"    private static extern {render_native_type(function.return_type)} {extern_name}({params});",
        "",
    ]


def render_overload_body(overload: Overload, extern_name: str) -> list[str]:
    source = overload.source
    if source is None:
        raise BindFrameworkError(f"Overload '{overload.declared_name}' has no source function")

    openers: list[tuple[str, str | None]] = []
    args: list[str] = []
    for tag, param, raw in zip(overload.variant, overload.parameters, source.parameters):
        name = escape_identifier(param.name)
        pointer_type = f"{raw.type.base_type}{'*' * max(1, raw.type.pointer_depth)}"
        if tag == VARIANT_ENUM:
            args.append(f"({render_type(raw.type)}){name}")
        elif tag in (VARIANT_ARRAY, VARIANT_FIXED):
            openers.append((f"fixed ({pointer_type} {param.name}_ptr = {name})", None))
            args.append(f"{param.name}_ptr")
        elif tag == VARIANT_REF:
            openers.append((f"fixed ({pointer_type} {param.name}_ptr = &{name})", None))
            args.append(f"{param.name}_ptr")
        elif tag == VARIANT_STRING:
            openers.append(
                (
                    f"IntPtr {param.name}_ptr = Marshal.StringToHGlobalAnsi({name});",
                    f"Marshal.FreeHGlobal({param.name}_ptr);",
                )
            )
            args.append(f"({pointer_type}){param.name}_ptr")
        else:
            args.append(name)

    call = f"{extern_name}({', '.join(args)});"
    if overload.return_type != TypeSignature("void"):
        call = "return " + call

    lines: list[str] = []
    depth = 2
    closers: list[list[str]] = []
    for opener, cleanup in openers:
        pad = "    " * depth
        if cleanup is None:
            lines.append(f"{pad}{opener}")
            lines.append(f"{pad}{{")
            closers.append([f"{pad}}}"])
        else:
            lines.append(f"{pad}{opener}")
            lines.append(f"{pad}try")
            lines.append(f"{pad}{{")
            closers.append([f"{pad}}}", f"{pad}finally", f"{pad}{{", f"{pad}    {cleanup}", f"{pad}}}"])
        depth += 1
    lines.append(f"{'    ' * depth}{call}")
    for closer in reversed(closers):
        lines.extend(closer)
    return lines


def render_overload(overload: Overload, docs: BakedDocumentation, extern_name: str, indent: str) -> list[str]:
    lines: list[str] = []
    doc = docs.for_overload(overload)
    if doc.summary:
        lines.append(f"/// <summary>{xml_doc(doc.summary)}</summary>")
    for param in overload.parameters:
        text = doc.parameters.get(param.name)
        if text:
            lines.append(f'/// <param name="{param.name}">{xml_doc(text)}</param>')
    if overload.is_obsolete:
        reason = overload.obsolete_reason.replace("\\", "\\\\").replace('"', '\\"')
        lines.append(f'[Obsolete("{reason}")]')
    elif overload.deprecated:
        lines.append('[Obsolete("Deprecated")]')
    params = ", ".join(
        f"{render_type(param.type, param.flow)} {escape_identifier(param.name)}" for param in overload.parameters
    )
    lines.append(f"public static {render_type(overload.return_type)} {overload.declared_name}({params})")
    lines.append("{")
    for line in render_overload_body(overload, extern_name):
        lines.append(line[4:])
    lines.append("}")
    lines.append("")
    return [f"{indent}{line}" if line else line for line in lines]


def render_bindings(
    settings: GeneratorSettings,
    profile: OverloadedProfile,
    docs: BakedDocumentation,
    *,
    emit_obsolete: bool = False,
) -> str:
    versions = ", ".join(str(version) for version in profile.versions)
    lines: list[str] = [
        "// <auto-generated />",
        f"// Generated by {TOOL_NAME} {TOOL_VERSION} for target '{settings.name}'",
        f"// Profile: {profile.name}; versions: {versions}",
        "using System;",
        "using System.Runtime.InteropServices;",
        "",
        f"namespace {settings.namespace};",
        "",
    ]

    for enum_def in profile.enums:
        if enum_def.is_obsolete and not emit_obsolete:
            continue
        lines.extend(render_enum(enum_def, docs))

    extern_names = _entry_point_names(profile.functions)
    by_category: dict[str, list[OverloadSet]] = {}
    for overload_set in profile.overload_sets:
        by_category.setdefault(overload_set.category or "", []).append(overload_set)

    lines.append(f"public static unsafe partial class {settings.class_name}")
    lines.append("{")
    lines.append(f'    private const string Library = "{settings.library}";')
    lines.append("")

    skipped = 0
    for category in sorted(by_category):
        indent = "    "
        if category:
            lines.append(f"    public static partial class {category}")
            lines.append("    {")
            indent = "        "
        for overload_set in by_category[category]:
            for overload in overload_set.overloads:
                if overload.is_obsolete and not emit_obsolete:
                    skipped += 1
                    continue
                extern_name = extern_names[overload.source.identity]
                lines.extend(render_overload(overload, docs, extern_name, indent))
        if category:
            if lines[-1] == "":
                lines.pop()
            lines.append("    }")
            lines.append("")

    for function in profile.functions:
        if function.is_obsolete and not emit_obsolete:
            continue
        lines.extend(render_entry_point(function, extern_names[function.identity]))

    if lines[-1] == "":
        lines.pop()
    lines.append("}")

    if skipped:
        log.debug("%s: skipped %d obsolete overload(s)", settings.name, skipped)
    return "\n".join(lines) + "\n"


def write_bindings(
    config: RunConfiguration,
    settings: GeneratorSettings,
    profile: OverloadedProfile,
    docs: BakedDocumentation,
) -> dict[str, Any]:
    content = render_bindings(settings, profile, docs, emit_obsolete=config.emit_obsolete)
    path = config.output_file(settings)
    status, diff = write_artifact_if_changed(
        path=path,
        content=content,
        dry_run=config.dry_run,
        check=config.check,
    )
    return {
        "path": to_repo_relative(path, config.output_path),
        "status": status,
        "diff": diff,
    }
