from lox.lox_runtime import ScriptRunner


def run_lox(src: str):
    runner = ScriptRunner()
    return runner.handle_script(src)


def stdout(res):
    return [e['message'] for e in res.side_effects if e.get('topics') == ['stdout']]


def assert_prints(src: str, expected):
    res = run_lox(src)
    assert res.status == 'success', res.error_message
    assert stdout(res) == expected


def assert_error(res, fragment: str):
    assert res.status == 'error', f"expected error, got value {res.value!r}"
    assert fragment in (res.error_message or ''), res.error_message

# 13.1 Inheriting methods

def test_subclass_inherits_methods():
    src = """
class Doughnut { cook() { print "Fry until golden brown."; } }
class BostonCream < Doughnut {}
BostonCream().cook();
"""
    assert_prints(src, ["Fry until golden brown."])


def test_subclass_overrides_method():
    src = """
class A { name() { return "A"; } }
class B < A { name() { return "B"; } }
print B().name();
print A().name();
"""
    assert_prints(src, ["B", "A"])

# 13.2 Calling superclass methods

def test_super_is_bound_statically_to_the_declaring_class():
    src = """
class A { method() { print "A method"; } }
class B < A {
  method() { print "B method"; }
  test() { super.method(); }
}
class C < B {}
C().test();
"""
    assert_prints(src, ["A method"])


def test_super_init_chain():
    src = """
class A { init(x) { this.x = x; } }
class B < A {
  init(x, y) {
    super.init(x);
    this.y = y;
  }
}
var b = B(1, 2);
print b.x + b.y;
"""
    assert_prints(src, ["3"])


def test_super_method_binds_current_instance():
    src = """
class A { describe() { return "I am " + this.name; } }
class B < A {
  init() { this.name = "b"; }
  describe() { return super.describe() + "!"; }
}
print B().describe();
"""
    assert_prints(src, ["I am b!"])


def test_super_method_can_be_returned_unbound_from_call():
    src = """
class A { say() { print "A says"; } }
class B < A { get() { return super.say; } }
var f = B().get();
f();
"""
    assert_prints(src, ["A says"])

# 13.3 Inheritance errors

def test_superclass_must_be_a_class():
    assert_error(run_lox('var NotClass = "x"; class Sub < NotClass {}'), "Superclass must be a class.")


def test_undefined_super_method():
    assert_error(
        run_lox("class A {} class B < A { f() { super.g(); } } B().f();"),
        "Undefined property 'g'.",
    )


def test_inheriting_from_itself_is_static():
    res = run_lox("class Oops < Oops {}")
    assert res.status == 'error'
    assert res.diagnostics[0].kind == 'static'
    assert "A class can't inherit from itself." in res.error_message
