"""Tests for the precedence-layered parser."""

import pytest
from pydantic import ValidationError

from calc import (
    Call,
    Function,
    Number,
    Op,
    Operator,
    ParseError,
    ParserConfig,
    Print,
    Program,
    Variable,
    parse,
    parse_expression,
)


def shape(expr):
    """Nested tuples describing an expression, ignoring spans."""
    match expr:
        case Number(value=value):
            return value
        case Variable(id=var):
            return var.text
        case Call(function=fn, args=args):
            return (fn.text, [shape(a) for a in args])
        case Op(left=left, op=op, right=right):
            return (shape(left), op.value, shape(right))
    raise TypeError(f"not an expression: {expr!r}")


class TestPrecedence:
    def test_subtraction_is_left_associative(self):
        assert shape(parse_expression("1-2-3")) == ((1.0, "-", 2.0), "-", 3.0)

    def test_division_is_left_associative(self):
        assert shape(parse_expression("8/4/2")) == ((8.0, "/", 4.0), "/", 2.0)

    def test_multiplication_binds_tighter(self):
        assert shape(parse_expression("1+2*3")) == (1.0, "+", (2.0, "*", 3.0))
        assert shape(parse_expression("1*2+3")) == ((1.0, "*", 2.0), "+", 3.0)

    def test_mixed_chain(self):
        # (1 + (2 * 3)) + 4
        assert shape(parse_expression("1 + 2 * 3 + 4")) == (
            (1.0, "+", (2.0, "*", 3.0)),
            "+",
            4.0,
        )
        assert shape(parse_expression("a + b * c - d / e")) == (
            ("a", "+", ("b", "*", "c")),
            "-",
            ("d", "/", "e"),
        )

    def test_parentheses_override_precedence(self):
        assert shape(parse_expression("(1+2)*3")) == ((1.0, "+", 2.0), "*", 3.0)
        assert shape(parse_expression("1-(2-3)")) == (1.0, "-", (2.0, "-", 3.0))
        assert shape(parse_expression("((7))")) == 7.0

    def test_operator_enum(self):
        expr = parse_expression("x / y")
        assert isinstance(expr, Op)
        assert expr.op is Operator.DIVIDE


class TestAtoms:
    def test_number_is_widened_to_float(self):
        expr = parse_expression("42")
        assert isinstance(expr, Number)
        assert isinstance(expr.value, float)
        assert expr.value == 42.0

    def test_variable(self, interner):
        expr = parse_expression("width", interner)
        assert isinstance(expr, Variable)
        assert expr.id is interner.variable("width")

    def test_call(self, interner):
        expr = parse_expression("area(3, w * 2)", interner)
        assert isinstance(expr, Call)
        assert expr.function is interner.function("area")
        assert shape(expr) == ("area", [3.0, ("w", "*", 2.0)])

    def test_call_without_arguments(self):
        assert shape(parse_expression("now()")) == ("now", [])

    def test_call_trailing_comma(self):
        assert shape(parse_expression("f(1, 2,)")) == shape(parse_expression("f(1, 2)"))
        assert shape(parse_expression("f(1,)")) == ("f", [1.0])

    def test_nested_calls(self):
        assert shape(parse_expression("f(g(1), h())")) == ("f", [("g", [1.0]), ("h", [])])

    def test_expression_must_consume_all_input(self):
        with pytest.raises(ParseError) as exc:
            parse_expression("1 2")
        assert exc.value.at == 2
        assert "EOF" in exc.value.expected


class TestStatements:
    def test_function_definition(self, interner):
        program = parse("fn f(x, y) = x+y;", interner)
        assert len(program.statements) == 1
        fn = program.statements[0]
        assert isinstance(fn, Function)
        assert fn.name is interner.function("f")
        assert fn.params == [interner.variable("x"), interner.variable("y")]
        assert shape(fn.body) == ("x", "+", "y")

    def test_function_without_params(self):
        fn = parse("fn pi() = 3;").statements[0]
        assert fn.params == []

    def test_param_trailing_comma(self, interner):
        fn = parse("fn f(x,) = x;", interner).statements[0]
        assert fn.params == [interner.variable("x")]

    def test_duplicate_params_are_accepted(self, interner):
        fn = parse("fn f(x, x) = x;", interner).statements[0]
        assert fn.params == [interner.variable("x"), interner.variable("x")]

    def test_print(self):
        program = parse("print 42;")
        stmt = program.statements[0]
        assert isinstance(stmt, Print)
        assert isinstance(stmt.expression, Number)
        assert stmt.expression.value == 42.0

    def test_statement_order_is_preserved(self):
        program = parse(
            """
            fn area_rectangle(w, h) = w * h;
            fn area_circle(r) = 3 * r * r;
            print area_rectangle(3, 4);
            print area_circle(1);
            print 11 * 2;
            """
        )
        assert [s.type for s in program.statements] == [
            "function", "function", "print", "print", "print",
        ]
        assert [f.name.text for f in program.functions] == ["area_rectangle", "area_circle"]
        assert shape(program.statements[4].expression) == (11.0, "*", 2.0)

    def test_variable_and_function_namespaces_are_distinct(self, interner):
        fn = parse("fn x(x) = x(x);", interner).statements[0]
        assert fn.body.function is fn.name
        assert fn.body.args[0].id is fn.params[0]
        assert fn.name is not fn.params[0]

    def test_comments_only_program_is_empty(self):
        program = parse("// nothing here\n/* or\nhere */\n   \n")
        assert program == Program()
        assert program.statements == []

    def test_empty_source(self):
        assert parse("").statements == []


class TestParseErrors:
    def test_missing_closing_paren(self):
        with pytest.raises(ParseError) as exc:
            parse("fn f(x = x;")
        err = exc.value
        assert err.at == 7
        assert err.found.type == "EQUALS"
        assert err.expected == {"COMMA", "RPAREN"}

    def test_operator_without_operand(self):
        with pytest.raises(ParseError) as exc:
            parse("print 1 + + 2;")
        assert exc.value.at == 10
        assert exc.value.found.type == "PLUS"
        assert exc.value.expected == {"INT", "IDENT", "LPAREN"}

    def test_missing_semicolon(self):
        with pytest.raises(ParseError) as exc:
            parse("print 1")
        assert exc.value.found.type == "EOF"
        assert exc.value.at == 7
        assert exc.value.expected == {"PLUS", "MINUS", "STAR", "SLASH", "SEMI"}

    def test_statement_must_start_with_keyword(self):
        with pytest.raises(ParseError) as exc:
            parse("print 1; 2;")
        assert exc.value.at == 9
        assert exc.value.expected == {"FN", "PRINT", "EOF"}

    def test_keyword_is_not_a_function_name(self):
        with pytest.raises(ParseError) as exc:
            parse("fn print(x) = x;")
        assert exc.value.at == 3
        assert exc.value.expected == {"IDENT"}

    def test_error_aborts_whole_unit(self):
        # the valid first statement is not returned
        with pytest.raises(ParseError):
            parse("fn ok() = 1; print ;")

    def test_message(self):
        with pytest.raises(ParseError) as exc:
            parse("fn f(x = x;")
        assert str(exc.value) == "offset 7: unexpected EQUALS, expected one of COMMA, RPAREN"


class TestIntegerLiterals:
    def test_largest_unsigned_64_bit_literal(self):
        expr = parse_expression("18446744073709551615")
        assert expr.value == float(2**64 - 1)

    def test_overflow_is_a_parse_error(self):
        with pytest.raises(ParseError) as exc:
            parse("print 18446744073709551616;")
        assert exc.value.at == 6
        assert "out of range" in str(exc.value)

    def test_leading_zeros_do_not_overflow(self):
        expr = parse_expression("000000000000000000000000255", config=ParserConfig(int_bits=8))
        assert expr.value == 255.0

    def test_configured_width(self):
        config = ParserConfig(int_bits=8)
        assert parse_expression("255", config=config).value == 255.0
        with pytest.raises(ParseError):
            parse_expression("256", config=config)

    def test_width_is_capped_below_float_range(self):
        with pytest.raises(ValidationError):
            ParserConfig(int_bits=1024)
        config = ParserConfig(int_bits=1023)
        assert parse_expression(str(2**1023 - 1), config=config).value == float(2**1023 - 1)
        with pytest.raises(ParseError):
            parse_expression(str(2**1024 - 1), config=config)

    def test_widen(self):
        config = ParserConfig(overflow="widen")
        expr = parse_expression("18446744073709551616", config=config)
        assert expr.value == float(2**64)


class TestDeepNesting:
    DEPTH = 1000

    def test_nested_parentheses(self):
        source = "print " + "(" * self.DEPTH + "1 + 2" + ")" * self.DEPTH + ";"
        stmt = parse(source).statements[0]
        assert shape(stmt.expression) == (1.0, "+", 2.0)
        # spans are relative to the print statement
        start = len("print ") + self.DEPTH
        assert (stmt.expression.span.start, stmt.expression.span.end) == (start, start + 5)

    def test_nested_calls(self, interner):
        source = "print " + "f(" * self.DEPTH + "x" + ")" * self.DEPTH + ";"
        expr = parse(source, interner).statements[0].expression
        for _ in range(self.DEPTH):
            assert isinstance(expr, Call)
            assert expr.function is interner.function("f")
            [expr] = expr.args
        assert expr.id is interner.variable("x")

    def test_unbalanced_nesting_is_a_parse_error(self):
        source = "print " + "(" * self.DEPTH + "1" + ")" * (self.DEPTH - 1) + ";"
        with pytest.raises(ParseError) as exc:
            parse(source)
        assert exc.value.found.type == "SEMI"
        assert "RPAREN" in exc.value.expected

    def test_operator_after_parenthesized_operand(self):
        assert shape(parse_expression("2 * (3 + 4) - f((5), 6)")) == (
            (2.0, "*", (3.0, "+", 4.0)),
            "-",
            ("f", [5.0, 6.0]),
        )
