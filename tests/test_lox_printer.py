import math

import pytest

from lox.lox_datatypes import LoxClass, LoxInstance, NativeFunction
from lox.lox_printer import Printer
from lox.lox_runtime import ScriptRunner


@pytest.fixture
def printer():
    return Printer()


@pytest.mark.parametrize("value, expected", [
    (None, "nil"),
    (True, "true"),
    (False, "false"),
    (3.0, "3"),
    (2.5, "2.5"),
    (-0.0, "-0"),
    (100.0, "100"),
    (0.1, "0.1"),
    ("hi", "hi"),
    ("", ""),
])
def test_stringify_primitives(printer, value, expected):
    assert printer.stringify(value) == expected


def test_stringify_non_finite_numbers(printer):
    assert printer.stringify(math.inf) == "Infinity"
    assert printer.stringify(-math.inf) == "-Infinity"
    assert printer.stringify(math.nan) == "NaN"


def test_stringify_callables_and_instances(printer):
    klass = LoxClass("Point", None, {})
    assert printer.stringify(klass) == "Point"
    assert printer.stringify(LoxInstance(klass)) == "Point instance"
    assert printer.stringify(NativeFunction("clock", lambda: 0.0, 0)) == "<native fn>"


def test_stringify_user_function():
    runner = ScriptRunner()
    res = runner.handle_script("fun greet() {}\ngreet")
    assert res.status == 'success'
    assert runner.printer.stringify(res.value) == "<fn greet>"


def test_pformat_statement_list_joins_lines(printer):
    from lox.lox_parser import parse
    from lox.lox_scanner import scan
    statements = parse(scan("print 1; { var a = -2; }"))
    assert printer.pformat(statements) == "(print 1)\n(block (var a = (- 2)))"
