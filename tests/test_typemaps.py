from __future__ import annotations

import io
import unittest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
from bind_framework_core import core as bind_core  # noqa: E402


def make_baked_profile() -> bind_core.BakedProfile:
    buffer_data = bind_core.Function(
        native_name="glBufferData",
        name="glBufferData",
        return_type=bind_core.TypeSignature("void"),
        parameters=(
            bind_core.Parameter("size", bind_core.TypeSignature("GLsizei")),
            bind_core.Parameter(
                "data",
                bind_core.TypeSignature("GLfloat", pointer_depth=1, is_const=True, count_parameter="size"),
            ),
        ),
        introduced_version=bind_core.ApiVersion(1, 5),
    )
    get_string = bind_core.Function(
        native_name="glGetString",
        name="glGetString",
        return_type=bind_core.TypeSignature("GLubyte", pointer_depth=1, is_const=True),
        parameters=(bind_core.Parameter("name", bind_core.TypeSignature("GLenum", enum_group="StringName")),),
        introduced_version=bind_core.ApiVersion(1, 0),
    )
    return bind_core.BakedProfile(
        name="gl",
        base_name="gl",
        versions=(bind_core.ApiVersion(1, 5),),
        functions=(buffer_data, get_string),
        enums=(),
    )


class TypemapBakerTests(unittest.TestCase):
    def test_language_typemap_wins_over_api_typemap(self) -> None:
        api = bind_core.Typemap.from_mapping({"GLenum": "int", "GLfloat": "float"}, source="gl.tm")
        language = bind_core.Typemap.from_mapping({"GLenum": "uint"}, source="csharp.tm")
        baked = bind_core.bake_typemaps(api, language)
        self.assertEqual(baked.lookup("GLenum"), "uint")
        self.assertEqual(baked.lookup("GLfloat"), "float")
        self.assertEqual(baked.origins["GLenum"], "csharp.tm")
        self.assertEqual(baked.origins["GLfloat"], "gl.tm")

    def test_contradictory_entries_within_one_source_are_rejected(self) -> None:
        api = bind_core.Typemap(entries=(("GLenum", "int"), ("GLenum", "uint")), source="gl.tm")
        language = bind_core.Typemap(entries=())
        with self.assertRaises(bind_core.ConflictingTypemapError):
            bind_core.bake_typemaps(api, language)

    def test_repeated_identical_entries_are_accepted(self) -> None:
        api = bind_core.Typemap(entries=(("GLenum", "int"), ("GLenum", "int")))
        baked = bind_core.bake_typemaps(api, bind_core.Typemap(entries=()))
        self.assertEqual(dict(baked.entries), {"GLenum": "int"})

    def test_disjoint_typemaps_commute(self) -> None:
        first = bind_core.Typemap.from_mapping({"GLenum": "int", "GLfloat": "float"})
        second = bind_core.Typemap.from_mapping({"GLsizei": "int", "GLchar": "byte"})
        self.assertEqual(
            dict(bind_core.bake_typemaps(first, second).entries),
            dict(bind_core.bake_typemaps(second, first).entries),
        )

    def test_overlapping_entries_follow_the_language_map_in_either_order(self) -> None:
        first = bind_core.Typemap.from_mapping({"GLenum": "int", "GLfloat": "float"}, source="first.tm")
        second = bind_core.Typemap.from_mapping({"GLenum": "uint", "GLchar": "byte"}, source="second.tm")
        forward = bind_core.bake_typemaps(first, second)
        backward = bind_core.bake_typemaps(second, first)

        self.assertEqual(forward.lookup("GLenum"), "uint")
        self.assertEqual(forward.origins["GLenum"], "second.tm")
        self.assertEqual(backward.lookup("GLenum"), "int")
        self.assertEqual(backward.origins["GLenum"], "first.tm")

        self.assertEqual(set(forward.entries), set(backward.entries))
        for native in ("GLfloat", "GLchar"):
            self.assertEqual(forward.lookup(native), backward.lookup(native))

    def test_read_typemap_keeps_duplicate_keys_for_conflict_detection(self) -> None:
        stream = io.StringIO('{"typemap": {"GLenum": "int", "GLenum": "uint"}}')
        typemap = bind_core.read_typemap(stream, source="dup.json")
        self.assertEqual(typemap.entries, (("GLenum", "int"), ("GLenum", "uint")))
        with self.assertRaises(bind_core.ConflictingTypemapError):
            bind_core.bake_typemaps(typemap, bind_core.Typemap(entries=()))


class ProfileMapperTests(unittest.TestCase):
    def test_identity_typemap_leaves_functions_unchanged(self) -> None:
        profile = make_baked_profile()
        names = {"void", "GLsizei", "GLfloat", "GLubyte", "GLenum"}
        identity = bind_core.bake_typemaps(
            bind_core.Typemap.from_mapping({name: name for name in names}),
            bind_core.Typemap(entries=()),
        )
        mapped = bind_core.ProfileMapper(identity).map_profile(profile)
        self.assertEqual(mapped.functions, profile.functions)
        self.assertEqual(mapped.enums, profile.enums)

    def test_mapping_rewrites_base_type_and_keeps_shape(self) -> None:
        typemap = bind_core.bake_typemaps(
            bind_core.Typemap.from_mapping(
                {"void": "void", "GLsizei": "int", "GLfloat": "float", "GLubyte": "byte", "GLenum": "uint"}
            ),
            bind_core.Typemap(entries=()),
        )
        mapped = bind_core.ProfileMapper(typemap).map_profile(make_baked_profile())
        data = mapped.functions[0].parameters[1].type
        self.assertEqual(data.base_type, "float")
        self.assertEqual(data.pointer_depth, 1)
        self.assertTrue(data.is_const)
        self.assertEqual(data.count_parameter, "size")
        self.assertEqual(mapped.functions[1].return_type.display(), "const byte*")
        self.assertEqual(mapped.functions[1].parameters[0].type.enum_group, "StringName")
        self.assertIs(mapped.typemap, typemap)

    def test_missing_entry_aborts_the_whole_profile(self) -> None:
        typemap = bind_core.bake_typemaps(
            bind_core.Typemap.from_mapping({"void": "void", "GLsizei": "int", "GLfloat": "float", "GLenum": "uint"}),
            bind_core.Typemap(entries=()),
        )
        with self.assertRaises(bind_core.UnmappedTypeError) as ctx:
            bind_core.ProfileMapper(typemap).map_profile(make_baked_profile())
        self.assertEqual(ctx.exception.native_type_name, "GLubyte")
        self.assertEqual(ctx.exception.function_name, "glGetString")


if __name__ == "__main__":
    unittest.main()
