"""Tests for the single-line statement dispatcher."""

import pytest

from conftest import ints, make_dispatcher

from hmscript.interpret import ConversionError
from hmscript.interpret._statements import declared_default, strip_comment
from hmscript.interpret._values import make_float, make_int, make_str
from hmscript.model.values import (
    ClassDefinition,
    IntValue,
    ListValue,
    MapValue,
    StringValue,
    ValueKind,
)


def _env(dispatcher):
    return dispatcher.env


class TestHelpers:
    def test_strip_comment(self):
        assert strip_comment("x = 1 // set x") == "x = 1 "
        assert strip_comment("// only") == ""
        assert strip_comment("no comment") == "no comment"

    @pytest.mark.parametrize("type_name, is_array, expected", [
        ("int", False, ValueKind.INT),
        ("map", False, ValueKind.MAP),
        ("str", True, ValueKind.LIST),
        ("int", True, ValueKind.LIST),
        ("float", False, ValueKind.NONE),
        ("str", False, ValueKind.NONE),
        ("bool", False, ValueKind.NONE),
    ])
    def test_declared_default(self, type_name, is_array, expected):
        assert declared_default(type_name, is_array).kind == expected


# ---------------------------------------------------------------------------
# Declarations and assignment
# ---------------------------------------------------------------------------

class TestDeclarations:
    def test_typed_initializer(self):
        d = make_dispatcher()
        d.execute("int x = 5")
        assert _env(d).get("x") == IntValue(value=5)

    def test_typed_initializer_with_negative_operands(self):
        d = make_dispatcher()
        d.execute("int q = -9 / -2")
        assert _env(d).get("q") == IntValue(value=4)

    def test_typed_string_containing_equals(self):
        d = make_dispatcher()
        d.execute('str s = "a = b"')
        assert _env(d).get("s") == StringValue(value="a = b")

    def test_array_initializer(self):
        d = make_dispatcher()
        d.execute("int[] nums = [1, 2]")
        assert _env(d).get("nums") == ints(1, 2)

    def test_class_typed_initializer(self):
        point = ClassDefinition(name="Point", variables={"x": make_int(0)})
        d = make_dispatcher(classes={"Point": point})
        d.execute("Point p = Point()")
        assert _env(d).get("p").kind == ValueKind.CLASS_INSTANCE

    def test_int_default(self):
        d = make_dispatcher()
        d.execute("int x")
        assert _env(d).get("x") == IntValue(value=0)

    def test_map_default(self):
        d = make_dispatcher()
        d.execute("map m")
        assert _env(d).get("m") == MapValue()

    def test_array_default(self):
        d = make_dispatcher()
        d.execute("str[] names")
        assert _env(d).get("names") == ListValue()

    def test_scalar_default_is_none(self):
        d = make_dispatcher()
        d.execute("float f")
        assert "f" in _env(d)
        assert _env(d).get("f").kind == ValueKind.NONE

    def test_redeclaration_rebinds(self):
        d = make_dispatcher(x=make_int(9))
        d.execute("int x")
        assert _env(d).get("x") == IntValue(value=0)


class TestAssignment:
    def test_creates_binding(self):
        d = make_dispatcher()
        d.execute("x = 3")
        assert _env(d).get("x") == IntValue(value=3)

    def test_rebinds_to_other_kind(self):
        d = make_dispatcher(x=make_int(1))
        d.execute('x = "now a string"')
        assert _env(d).get("x").kind == ValueKind.STRING

    def test_self_reference(self):
        d = make_dispatcher(total=make_int(4))
        d.execute("total = total + 1")
        assert _env(d).get("total") == IntValue(value=5)

    def test_copy_not_alias(self):
        d = make_dispatcher(a=ints(1))
        d.execute("b = a")
        d.execute("b.append(2)")
        assert _env(d).get("a") == ints(1)
        assert _env(d).get("b") == ints(1, 2)

    def test_equality_is_not_assignment(self):
        d = make_dispatcher(x=make_int(1))
        d.execute("x == 3")
        assert _env(d).get("x") == IntValue(value=1)

    def test_trailing_comment(self):
        d = make_dispatcher()
        d.execute("x = 1 // set")
        assert _env(d).get("x") == IntValue(value=1)


class TestMemberAssignment:
    def test_sets_instance_field(self):
        point = ClassDefinition(name="Point", variables={"x": make_int(0)}).instantiate()
        d = make_dispatcher(p=point)
        d.execute("p.x = 5")
        assert _env(d).ref("p").instance_vars["x"] == IntValue(value=5)

    def test_adds_new_field(self):
        point = ClassDefinition(name="Point").instantiate()
        d = make_dispatcher(p=point)
        d.execute('p.label = "a"')
        assert _env(d).ref("p").instance_vars["label"] == StringValue(value="a")

    def test_non_instance_is_noop(self):
        d = make_dispatcher(x=make_int(1))
        d.execute("x.y = 5")
        assert _env(d).get("x") == IntValue(value=1)


class TestIndexAssignment:
    def test_list_element(self):
        d = make_dispatcher(nums=ints(1, 2, 3))
        d.execute("nums[0] = 9")
        assert _env(d).get("nums") == ints(9, 2, 3)

    def test_negative_index(self):
        d = make_dispatcher(nums=ints(1, 2, 3))
        d.execute("nums[-1] = 9")
        assert _env(d).get("nums") == ints(1, 2, 9)

    def test_out_of_range_is_noop(self):
        d = make_dispatcher(nums=ints(1))
        d.execute("nums[3] = 9")
        assert _env(d).get("nums") == ints(1)

    def test_map_key(self):
        d = make_dispatcher(m=MapValue())
        d.execute('m["k"] = 1')
        assert _env(d).ref("m").items == {"k": IntValue(value=1)}

    def test_unbound_is_noop(self):
        d = make_dispatcher()
        d.execute("nums[0] = 1")
        assert "nums" not in _env(d)


# ---------------------------------------------------------------------------
# In-place updates
# ---------------------------------------------------------------------------

class TestIncrement:
    def test_int(self):
        d = make_dispatcher(i=make_int(1))
        d.execute("i++")
        assert _env(d).get("i") == IntValue(value=2)

    def test_wraps(self):
        d = make_dispatcher(i=make_int(2 ** 31 - 1))
        d.execute("i++")
        assert _env(d).get("i") == IntValue(value=-(2 ** 31))

    def test_string_is_noop(self):
        d = make_dispatcher(s=make_str("a"))
        d.execute("s++")
        assert _env(d).get("s") == StringValue(value="a")

    def test_unbound_is_noop(self):
        d = make_dispatcher()
        d.execute("i++")
        assert "i" not in _env(d)


class TestMultiplyAssign:
    def test_int(self):
        d = make_dispatcher(x=make_int(4))
        d.execute("x *= 3")
        assert _env(d).get("x") == IntValue(value=12)

    def test_expression_operand(self):
        d = make_dispatcher(x=make_int(2), y=make_int(5))
        d.execute("x *= y + 1")
        assert _env(d).get("x") == IntValue(value=12)

    def test_float_operand_is_noop(self):
        d = make_dispatcher(x=make_int(4), f=make_float(2.0))
        d.execute("x *= f")
        assert _env(d).get("x") == IntValue(value=4)

    def test_float_target_is_noop(self):
        d = make_dispatcher(f=make_float(2.0))
        d.execute("f *= 2")
        assert _env(d).get("f").value == pytest.approx(2.0)


# ---------------------------------------------------------------------------
# Calls and no-ops
# ---------------------------------------------------------------------------

class TestCallStatements:
    def test_print(self):
        d = make_dispatcher()
        d.execute('print("hi")')
        assert d.evaluator.io.stdout.getvalue() == "hi"

    def test_print_with_index_argument(self):
        d = make_dispatcher(nums=ints(7, 8))
        d.execute("print(nums[1])")
        assert d.evaluator.io.stdout.getvalue() == "8"

    def test_method_call(self):
        d = make_dispatcher(nums=ints(1))
        d.execute("nums.append(4)")
        assert _env(d).get("nums") == ints(1, 4)

    def test_conversion_error_propagates(self):
        d = make_dispatcher()
        with pytest.raises(ConversionError):
            d.execute('int n = int("abc")')


class TestNoops:
    @pytest.mark.parametrize("line", ["", "   ", "// comment", "garbage", "x == 3"])
    def test_leaves_environment_unchanged(self, line):
        d = make_dispatcher(x=make_int(1))
        d.execute(line)
        assert _env(d).names() == ["x"]
        assert _env(d).get("x") == IntValue(value=1)
