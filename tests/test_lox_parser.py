from lox.lox_ast import Block, Expression, Print, Var, While
from lox.lox_errors import ErrorReporter
from lox.lox_parser import parse
from lox.lox_printer import Printer
from lox.lox_scanner import scan


def parse_src(src: str):
    reporter = ErrorReporter()
    statements = parse(scan(src, reporter), reporter)
    return statements, reporter


def pf(src: str) -> str:
    statements, reporter = parse_src(src)
    assert not reporter.had_error, reporter.format_all()
    return Printer().pformat(statements)


def errors(src: str):
    _, reporter = parse_src(src)
    return [d.format() for d in reporter.diagnostics]


# --- Precedence and associativity ---

def test_factor_binds_tighter_than_term():
    assert pf("1 + 2 * 3;") == "(; (+ 1 (* 2 3)))"


def test_grouping_overrides_precedence():
    assert pf("(1 + 2) * 3;") == "(; (* (group (+ 1 2)) 3))"


def test_binary_operators_are_left_associative():
    assert pf("10 - 2 - 3;") == "(; (- (- 10 2) 3))"
    assert pf("8 / 4 / 2;") == "(; (/ (/ 8 4) 2))"


def test_assignment_is_right_associative():
    assert pf("a = b = c;") == "(; (= a (= b c)))"


def test_unary_operators_nest():
    assert pf("!-x;") == "(; (! (- x)))"


def test_and_binds_tighter_than_or():
    assert pf("a or b and c;") == "(; (or a (and b c)))"


def test_comparison_binds_tighter_than_equality():
    assert pf("1 < 2 == true;") == "(; (== (< 1 2) true))"


def test_string_and_nil_literals():
    assert pf('print "hi"; print nil;') == '(print "hi")\n(print nil)'


# --- Calls, properties and assignment targets ---

def test_chained_calls():
    assert pf("f(1)(2);") == "(; (call (call f 1) 2))"


def test_property_set_on_get_chain():
    assert pf("a.b.c = 1;") == "(; (= (. a b) c 1))"


def test_super_and_this_expressions():
    assert pf("class B < A { m() { return super.m(this); } }") == \
        "(class B < A (fun m() (return (call (super m) this))))"


def test_invalid_assignment_target_is_reported_without_unwinding():
    statements, reporter = parse_src("a + b = c;")
    assert [d.format() for d in reporter.diagnostics] == ["[line 1] Error at '=': Invalid assignment target."]
    assert len(statements) == 1


# --- Statements ---

def test_var_with_and_without_initializer():
    assert pf("var a; var b = 1;") == "(var a)\n(var b = 1)"


def test_if_else_and_while():
    assert pf("if (a) print 1; else print 2;") == "(if-else a (print 1) (print 2))"
    assert pf("while (a) print 1;") == "(while a (print 1))"


def test_dangling_else_binds_to_nearest_if():
    assert pf("if (a) if (b) print 1; else print 2;") == "(if a (if-else b (print 1) (print 2)))"


def test_for_loop_desugars_to_block_with_while():
    assert pf("for (var i = 0; i < 3; i = i + 1) print i;") == \
        "(block (var i = 0) (while (< i 3) (block (print i) (; (= i (+ i 1))))))"


def test_for_loop_without_clauses_loops_on_true():
    statements, _ = parse_src("for (;;) print 1;")
    assert isinstance(statements[0], While)
    assert Printer().pformat(statements) == "(while true (print 1))"


def test_function_and_class_declarations():
    assert pf("fun add(a, b) { return a + b; }") == "(fun add(a b) (return (+ a b)))"
    assert pf("class B < A { init(x) { this.x = x; } }") == \
        "(class B < A (fun init(x) (; (= this x x))))"


def test_bare_return():
    assert pf("fun f() { return; }") == "(fun f() (return))"


def test_semicolons_optional_after_print_and_expression_statements():
    statements, reporter = parse_src("print 1 print 2\nx")
    assert not reporter.had_error
    assert [type(s) for s in statements] == [Print, Print, Expression]


def test_block_statement():
    statements, _ = parse_src("{ var a = 1; print a; }")
    assert isinstance(statements[0], Block)
    assert [type(s) for s in statements[0].statements] == [Var, Print]


# --- Errors and recovery ---

def test_missing_expression():
    assert errors("1 +;") == ["[line 1] Error at ';': Expect expression."]


def test_missing_close_paren_at_end():
    assert errors("(1") == ["[line 1] Error at end: Expect ')' after expression."]


def test_missing_semicolon_after_var():
    assert errors("var a = 1 print a;")[0] == \
        "[line 1] Error at 'print': Expect ';' after variable declaration."


def test_missing_semicolon_after_return_value():
    assert errors("fun f() { return 1 }")[0] == \
        "[line 1] Error at '}': Expect ';' after return value."


def test_recovers_at_statement_boundary_and_reports_every_error():
    src = "var = 1;\nprint 2;\nvar 3;\nprint 4;"
    statements, reporter = parse_src(src)
    assert [d.format() for d in reporter.diagnostics] == [
        "[line 1] Error at '=': Expect variable name.",
        "[line 3] Error at '3': Expect variable name.",
    ]
    assert Printer().pformat(statements) == "(print 2)\n(print 4)"


def test_too_many_arguments_reported_but_call_still_parsed():
    src = "f(" + ", ".join(["1"] * 256) + ");"
    statements, reporter = parse_src(src)
    assert [d.message for d in reporter.diagnostics] == ["Can't have more than 255 arguments."]
    assert len(statements) == 1
    assert len(statements[0].expression.arguments) == 256


def test_too_many_parameters_reported():
    params = ", ".join(f"p{i}" for i in range(256))
    assert errors(f"fun f({params}) {{}}") == \
        ["[line 1] Error at 'p255': Can't have more than 255 parameters."]


def test_class_body_requires_braces():
    assert errors("class A") == ["[line 1] Error at end: Expect '{' before class body."]


def test_nesting_too_deep_is_reported_and_parsing_resumes():
    src = "print " + "(" * 3000 + "1" + ")" * 3000 + ";\nprint 2;"
    statements, reporter = parse_src(src)
    assert [d.message for d in reporter.diagnostics] == ["Too much nesting."]
    assert Printer().pformat(statements) == "(print 2)"
