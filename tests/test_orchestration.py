from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
from bind_framework_core import core as bind_core  # noqa: E402


SIGNATURES = {
    "profiles": [
        {
            "name": "gl",
            "versions": ["1.0", "1.1", "1.5"],
            "functions": [
                {"name": "glFlush", "version": "1.0"},
                {
                    "name": "glDrawArrays",
                    "version": "1.1",
                    "parameters": [
                        {"name": "mode", "type": "GLenum", "group": "PrimitiveType"},
                        {"name": "first", "type": "GLint"},
                        {"name": "count", "type": "GLsizei"},
                    ],
                },
                {
                    "name": "glBufferData",
                    "version": "1.5",
                    "parameters": [
                        {"name": "size", "type": "GLsizei"},
                        {"name": "data", "type": "const GLfloat *", "count": "size"},
                    ],
                },
                {
                    "name": "glGetIntegerv",
                    "version": "1.0",
                    "parameters": [
                        {"name": "pname", "type": "GLenum"},
                        {"name": "params", "type": "GLint *", "flow": "out"},
                    ],
                },
            ],
            "enums": [
                {
                    "name": "PrimitiveType",
                    "version": "1.0",
                    "tokens": [
                        {"name": "GL_POINTS", "value": "0x0000"},
                        {"name": "GL_LINES", "value": "0x0001"},
                    ],
                }
            ],
        },
        {
            "name": "glcore",
            "versions": ["1.5"],
            "functions": [
                {
                    "name": "glUseProgram",
                    "version": "1.5",
                    "category": "Arb",
                    "parameters": [{"name": "program", "type": "GLuint"}],
                }
            ],
        },
    ]
}

OVERRIDES = {
    "overrides": [
        {
            "name": "glDrawArrays",
            "rename": "DrawPrimitives",
            "parameters": [{"name": "mode", "enum_only": True}],
        },
        {"name": "glFlush", "obsolete": "Implicit in swap"},
    ]
}

API_TYPEMAP = {
    "typemap": {
        "void": "void",
        "GLenum": "int",
        "GLint": "int",
        "GLsizei": "int",
        "GLuint": "uint",
        "GLfloat": "float",
    }
}
LANGUAGE_TYPEMAP = {"typemap": {"GLenum": "uint"}}

DOCUMENTATION = {
    "profile": "gl",
    "functions": {
        "DrawPrimitives": {"summary": "Render primitives from array data.", "parameters": {"mode": "Kind of primitive."}},
        "glBufferData": {
            "summary": "Upload buffer data.",
            "overloads": {"int, const float[]": {"summary": "Upload an array."}},
        },
    },
    "enums": {"PrimitiveType": "Primitive kinds & topologies."},
}


def custom_target(profile: str, versions: list[str], output: str, **extra: object) -> dict[str, object]:
    target: dict[str, object] = {
        "kind": "custom",
        "specification": "gl/signatures.json",
        "overrides": ["gl/overrides.json"],
        "profile": profile,
        "versions": versions,
        "api_typemap": "gl.typemap.json",
        "language_typemap": "csharp.typemap.json",
        "documentation": "gl.json",
        "namespace": "Demo.Graphics",
        "output": output,
    }
    target.update(extra)
    return target


class OrchestrationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self._create_inputs()

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _create_inputs(self) -> None:
        bind_core.write_json(self.root / "specifications" / "gl" / "signatures.json", SIGNATURES)
        bind_core.write_json(self.root / "specifications" / "gl" / "overrides.json", OVERRIDES)
        bind_core.write_json(self.root / "specifications" / "gl.typemap.json", API_TYPEMAP)
        bind_core.write_json(self.root / "specifications" / "csharp.typemap.json", LANGUAGE_TYPEMAP)
        bind_core.write_json(self.root / "documentation" / "gl.json", DOCUMENTATION)
        bind_core.write_json(
            self.root / "bind.json",
            {
                "targets": {
                    "gl11": custom_target("gl", ["1.0", "1.1"], "GL11/GL.cs"),
                    "gl15": custom_target("gl", ["1.0", "1.1", "1.5"], "GL15/GL.cs"),
                    "core": custom_target("glcore", ["1.5"], "Core/GL.cs", base_profile="gl", class_name="GLCore"),
                    "broken": custom_target("glcore", ["1.5"], "Broken/GL.cs", base_profile="glx"),
                }
            },
        )

    def _config(self, targets: list[str], **kwargs: object) -> bind_core.RunConfiguration:
        return bind_core.build_run_configuration(
            config_path=self.root / "bind.json",
            input_path=None,
            documentation_path=None,
            output_path=None,
            targets=targets,
            **kwargs,
        )

    def _bake(self, name: str) -> bind_core.BakedTarget:
        config = self._config([name])
        return bind_core.bake_target(config, config.targets[0], bind_core.ResourceCache())

    def test_renamed_enum_only_function_has_single_overload(self) -> None:
        baked = self._bake("gl11")
        sets = {item.declared_name: item for item in baked.profile.overload_sets}
        self.assertNotIn("glDrawArrays", sets)
        self.assertNotIn("glBufferData", sets)
        (overload,) = sets["DrawPrimitives"].overloads
        self.assertEqual(overload.native_name, "glDrawArrays")
        self.assertEqual([param.type.base_type for param in overload.parameters], ["PrimitiveType", "int", "int"])
        self.assertEqual(baked.documentation.for_overload(overload).summary, "Render primitives from array data.")

    def test_counted_pointer_gets_raw_and_array_overloads(self) -> None:
        baked = self._bake("gl15")
        sets = {item.declared_name: item for item in baked.profile.overload_sets}
        keys = [overload.key for overload in sets["glBufferData"].overloads]
        self.assertEqual(keys, ["int, const float*", "int, const float[]"])
        array = sets["glBufferData"].overloads[1]
        self.assertEqual(baked.documentation.for_overload(array).summary, "Upload an array.")

    def test_language_typemap_overrides_api_typemap(self) -> None:
        baked = self._bake("gl11")
        get_integer = next(item for item in baked.profile.functions if item.native_name == "glGetIntegerv")
        self.assertEqual(get_integer.parameters[0].type.base_type, "uint")
        self.assertEqual(baked.typemap.lookup("GLint"), "int")

    def test_core_profile_layers_over_base(self) -> None:
        baked = self._bake("core")
        natives = sorted(function.native_name for function in baked.profile.functions)
        self.assertEqual(natives, ["glBufferData", "glDrawArrays", "glFlush", "glGetIntegerv", "glUseProgram"])
        categories = {item.declared_name: item.category for item in baked.profile.overload_sets}
        self.assertEqual(categories["glUseProgram"], "Arb")

    def test_generation_writes_csharp_bindings(self) -> None:
        results = bind_core.run_generation(self._config(["gl15"]))
        self.assertEqual(results["gl15"]["artifact"]["status"], "updated")
        text = (self.root / "generated" / "GL15" / "GL.cs").read_text(encoding="utf-8")
        self.assertIn("namespace Demo.Graphics;", text)
        self.assertIn("/// <summary>Primitive kinds &amp; topologies.</summary>", text)
        self.assertIn("public enum PrimitiveType : uint", text)
        self.assertIn("    Points = 0x0000,", text)
        self.assertIn("public static void DrawPrimitives(PrimitiveType mode, int first, int count)", text)
        self.assertIn("_glDrawArrays((uint)mode, first, count);", text)
        self.assertIn('[DllImport(Library, EntryPoint = "glDrawArrays", ExactSpelling = true)]', text)
        self.assertIn("public static void glBufferData(int size, float[] data)", text)
        self.assertIn("fixed (float* data_ptr = data)", text)
        self.assertIn("public static void glGetIntegerv(uint pname, out int @params)", text)
        self.assertNotIn("public static void glFlush()", text)

    def test_obsolete_functions_can_be_emitted(self) -> None:
        bind_core.run_generation(self._config(["gl11"], emit_obsolete=True))
        text = (self.root / "generated" / "GL11" / "GL.cs").read_text(encoding="utf-8")
        self.assertIn('[Obsolete("Implicit in swap")]', text)
        self.assertIn("public static void glFlush()", text)

    def test_failing_target_does_not_stop_siblings(self) -> None:
        with self.assertRaises(bind_core.GenerationFailedError) as ctx:
            bind_core.run_generation(self._config(["broken", "gl11", "core"]))
        error = ctx.exception
        self.assertEqual(sorted(error.failures), ["broken"])
        self.assertIsInstance(error.failures["broken"], bind_core.UnknownProfileError)
        self.assertEqual(sorted(error.results), ["core", "gl11"])
        self.assertIn("broken", str(error))
        self.assertTrue((self.root / "generated" / "GL11" / "GL.cs").exists())
        self.assertTrue((self.root / "generated" / "Core" / "GL.cs").exists())

    def test_shared_inputs_are_parsed_once(self) -> None:
        cache = bind_core.ResourceCache()
        bind_core.run_generation(self._config(["gl11", "gl15", "core"], max_workers=3), cache)
        spec = (self.root / "specifications" / "gl" / "signatures.json").resolve()
        typemap = (self.root / "specifications" / "csharp.typemap.json").resolve()
        self.assertEqual(cache.profiles.computation_count(spec), 1)
        self.assertEqual(cache.typemaps.computation_count(typemap), 1)

    def test_check_mode_reports_drift_without_writing(self) -> None:
        bind_core.run_generation(self._config(["gl11"]))
        output = self.root / "generated" / "GL11" / "GL.cs"
        output.write_text("// stale\n", encoding="utf-8")

        results = bind_core.run_generation(self._config(["gl11"], check=True))
        self.assertEqual(results["gl11"]["artifact"]["status"], "drift")
        self.assertTrue(results["gl11"]["has_drift"])
        self.assertIn("-// stale", results["gl11"]["artifact"]["diff"])
        self.assertEqual(output.read_text(encoding="utf-8"), "// stale\n")

    def test_regeneration_is_stable(self) -> None:
        bind_core.run_generation(self._config(["gl15"]))
        results = bind_core.run_generation(self._config(["gl15"]))
        self.assertEqual(results["gl15"]["artifact"]["status"], "unchanged")

    def test_dry_run_does_not_write(self) -> None:
        results = bind_core.run_generation(self._config(["gl11"], dry_run=True))
        self.assertEqual(results["gl11"]["artifact"]["status"], "would_write")
        self.assertFalse((self.root / "generated" / "GL11" / "GL.cs").exists())


class BindingsWriterTests(unittest.TestCase):
    def _render(self, function: bind_core.Function) -> str:
        profile = bind_core.MappedProfile(
            name="gl",
            base_name="gl",
            versions=(bind_core.ApiVersion(1, 0),),
            functions=(function,),
            enums=(),
        )
        docs = bind_core.BakedDocumentation(functions=bind_core.frozen_mapping(), enums=bind_core.frozen_mapping())
        settings = bind_core.available_targets()["gl2"]
        return bind_core.render_bindings(settings, bind_core.bake_overloads(profile), docs)

    def test_fixed_array_entry_point_takes_a_pointer(self) -> None:
        function = bind_core.Function(
            native_name="glColor4fv",
            name="glColor4fv",
            return_type=bind_core.TypeSignature("void"),
            parameters=(
                bind_core.Parameter(
                    "v", bind_core.TypeSignature("float", pointer_depth=1, is_const=True, fixed_length=4)
                ),
            ),
            introduced_version=bind_core.ApiVersion(1, 0),
        )
        text = self._render(function)
        self.assertIn("private static extern void _glColor4fv(float* v);", text)
        self.assertIn("public static void glColor4fv(ReadOnlySpan<float> v)", text)
        self.assertIn("fixed (float* v_ptr = v)", text)
        self.assertIn("_glColor4fv(v_ptr);", text)
        self.assertNotIn("extern void _glColor4fv(ReadOnlySpan", text)

    def test_entry_points_keep_raw_pointer_returns(self) -> None:
        function = bind_core.Function(
            native_name="glGetString",
            name="glGetString",
            return_type=bind_core.TypeSignature("byte", pointer_depth=1, is_const=True),
            parameters=(bind_core.Parameter("name", bind_core.TypeSignature("uint")),),
            introduced_version=bind_core.ApiVersion(1, 0),
        )
        text = self._render(function)
        self.assertIn("private static extern byte* _glGetString(uint name);", text)


if __name__ == "__main__":
    unittest.main()
