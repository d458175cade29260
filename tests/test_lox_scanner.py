from lox.lox_errors import ErrorReporter
from lox.lox_scanner import Scanner, scan
from lox.lox_tokens import TokenType as T


def types(tokens):
    return [t.type for t in tokens]


def test_simple_arithmetic_tokens_and_literals():
    tokens = scan("1+2")
    assert types(tokens) == [T.NUMBER, T.PLUS, T.NUMBER, T.EOF]
    assert tokens[0].literal == 1.0
    assert tokens[2].literal == 2.0


def test_keywords_are_reserved_but_prefixes_are_identifiers():
    tokens = scan("var orchid = or;")
    assert types(tokens) == [T.VAR, T.IDENTIFIER, T.EQUAL, T.OR, T.SEMICOLON, T.EOF]
    assert tokens[1].lexeme == "orchid"


def test_all_keywords():
    src = "and class else false for fun if nil or print return super this true var while"
    assert types(scan(src))[:-1] == [
        T.AND, T.CLASS, T.ELSE, T.FALSE, T.FOR, T.FUN, T.IF, T.NIL,
        T.OR, T.PRINT, T.RETURN, T.SUPER, T.THIS, T.TRUE, T.VAR, T.WHILE,
    ]


def test_one_and_two_character_operators():
    tokens = scan("! != = == < <= > >=")
    assert types(tokens) == [
        T.BANG, T.BANG_EQUAL, T.EQUAL, T.EQUAL_EQUAL,
        T.LESS, T.LESS_EQUAL, T.GREATER, T.GREATER_EQUAL, T.EOF,
    ]


def test_number_with_fraction():
    tokens = scan("12.5")
    assert types(tokens) == [T.NUMBER, T.EOF]
    assert tokens[0].literal == 12.5


def test_trailing_dot_is_not_part_of_number():
    tokens = scan("123.")
    assert types(tokens) == [T.NUMBER, T.DOT, T.EOF]
    assert tokens[0].literal == 123.0
    assert tokens[0].lexeme == "123"


def test_string_literal_strips_quotes():
    tokens = scan('"hi there"')
    assert tokens[0].type == T.STRING
    assert tokens[0].lexeme == '"hi there"'
    assert tokens[0].literal == "hi there"


def test_multiline_string_advances_line_count():
    tokens = scan('"a\nb"\nx')
    assert tokens[0].literal == "a\nb"
    assert tokens[0].line == 2
    assert tokens[1].lexeme == "x"
    assert tokens[1].line == 3


def test_comments_and_whitespace_are_skipped():
    tokens = scan("// leading comment\n1 / 2 // trailing\n")
    assert types(tokens) == [T.NUMBER, T.SLASH, T.NUMBER, T.EOF]
    assert tokens[0].line == 2


def test_eof_carries_final_line():
    tokens = scan("\n\n")
    assert types(tokens) == [T.EOF]
    assert tokens[0].line == 3


def test_lexemes_concatenate_back_to_source():
    src = "(a+b)*c-d/e,f.g;{}"
    assert "".join(t.lexeme for t in scan(src)) == src


def test_unterminated_string_reports_and_adds_no_token():
    reporter = ErrorReporter()
    tokens = Scanner('"abc', reporter).scan_tokens()
    assert types(tokens) == [T.EOF]
    assert reporter.had_error
    assert reporter.format_all() == "[line 1] Error: Unterminated string."


def test_unexpected_character_is_reported_and_scanning_continues():
    reporter = ErrorReporter()
    tokens = scan("1 @ 2", reporter)
    assert types(tokens) == [T.NUMBER, T.NUMBER, T.EOF]
    assert [d.format() for d in reporter.diagnostics] == ["[line 1] Error: Unexpected character."]


def test_every_bad_character_is_reported():
    reporter = ErrorReporter()
    scan("@\n#", reporter)
    assert [d.line for d in reporter.diagnostics] == [1, 2]
