"""Tests for source loading and the class-registry pre-pass."""

import textwrap

import pytest

from conftest import run

from hmscript.interpret import ConversionError, SourceError, parse_program, read_source
from hmscript.interpret._source import main_body, register_classes
from hmscript.model.values import IntValue, ListValue, MapValue, StringValue, ValueKind


SOURCE = textwrap.dedent("""\
    $Main
    #math
    @util
    class Point {
        int x = 1
        int y
        str label = "p"
        int[] tags
        map meta
        float weight
        fn move(int dx, int dy) {
            x = x + dx
            y = y + dy
        }
    }
    class Main {
        Point p = Point()
        print(p.x)
        fn helper() {
            print("never")
        }
        int after = 2
    }
""")


def _lines(text=SOURCE):
    return text.splitlines()


class TestParseProgram:
    def test_main_class(self):
        assert parse_program(_lines()).main_class == "Main"

    def test_imports_recorded(self):
        assert parse_program(_lines()).imports == ["#math", "@util"]

    def test_classes_registered(self):
        assert set(parse_program(_lines()).classes) == {"Point", "Main"}

    def test_path_recorded(self):
        assert parse_program(_lines(), path="demo.hm").path == "demo.hm"

    def test_main_body_excludes_methods(self):
        body = [ln.strip() for ln in parse_program(_lines()).main_body]
        assert body == ["Point p = Point()", "print(p.x)", "int after = 2"]

    def test_missing_declaration(self):
        with pytest.raises(SourceError, match="Main class not found"):
            parse_program(["class Main {", "}"])

    def test_declared_but_undefined(self):
        with pytest.raises(SourceError, match="Main class not found"):
            parse_program(["$Main", "class Other {", "}"])

    def test_main_declaration_with_comment(self):
        program = parse_program(["$App // entry", "class App {", "int x = 1", "}"])
        assert program.main_class == "App"


class TestClassRegistry:
    def test_field_defaults(self):
        point = register_classes(_lines(), "Main")["Point"]
        assert point.variables["x"] == IntValue(value=1)
        assert point.variables["y"] == IntValue(value=0)
        assert point.variables["label"] == StringValue(value="p")
        assert point.variables["tags"] == ListValue()
        assert point.variables["meta"] == MapValue()
        assert point.variables["weight"].kind == ValueKind.NONE

    def test_method_lines_are_not_fields(self):
        point = register_classes(_lines(), "Main")["Point"]
        assert set(point.variables) == {"x", "y", "label", "tags", "meta", "weight"}

    def test_methods_recorded(self):
        move = register_classes(_lines(), "Main")["Point"].methods["move"]
        assert move.params == ["dx", "dy"]
        assert [ln.strip() for ln in move.body] == ["x = x + dx", "y = y + dy"]

    def test_main_class_statements_not_evaluated(self):
        lines = ["$Main", "class Main {", "int n = int(input())", "print(1)", "}"]
        main = register_classes(lines, "Main")["Main"]
        assert main.variables == {}

    def test_main_class_methods_recorded(self):
        main = register_classes(_lines(), "Main")["Main"]
        assert set(main.methods) == {"helper"}
        assert main.methods["helper"].params == []

    def test_earlier_class_usable_as_default(self):
        lines = [
            "class Inner {", "int v = 3", "}",
            "class Outer {", "Inner child = Inner()", "}",
        ]
        outer = register_classes(lines)["Outer"]
        child = outer.variables["child"]
        assert child.kind == ValueKind.CLASS_INSTANCE
        assert child.instance_vars["v"] == IntValue(value=3)

    def test_field_conversion_error_propagates(self):
        with pytest.raises(ConversionError):
            register_classes(["class Bad {", 'int n = int("x")', "}"])


class TestMainBody:
    def test_unknown_class_is_empty(self):
        assert main_body(_lines(), "Nope") == []

    def test_nested_blocks_kept(self):
        lines = ["class Main {", "while (true) {", "x++", "}", "}"]
        assert main_body(lines, "Main") == ["while (true) {", "x++", "}"]


class TestReadSource:
    def test_reads_lines(self, tmp_path):
        path = tmp_path / "p.hm"
        path.write_text("$Main\nclass Main {\n}\n")
        assert read_source(str(path)) == ["$Main", "class Main {", "}"]

    def test_missing_file(self, tmp_path):
        missing = tmp_path / "nope.hm"
        with pytest.raises(SourceError, match="Could not open file"):
            read_source(str(missing))


class TestInstances:
    def test_instances_are_independent(self):
        interp, out = run("""
            Point a = Point()
            Point b = Point()
            a.x = 5
            print(a.x, ",", b.x)
        """, classes="""
            class Point {
                int x = 1
            }
        """)
        assert out == "5,1"
        assert interp["b"].instance_vars["x"] == IntValue(value=1)

    def test_definition_unchanged_by_instance(self):
        interp, _ = run("""
            Point a = Point()
            a.x = 5
        """, classes="""
            class Point {
                int x = 1
            }
        """)
        assert interp.program.classes["Point"].variables["x"] == IntValue(value=1)

    def test_methods_are_not_invoked(self):
        interp, out = run("""
            Point a = Point()
            a.move(3)
            print(a.x)
        """, classes="""
            class Point {
                int x = 1
                fn move(int dx) {
                    x = x + dx
                }
            }
        """)
        assert out == "1"
