"""Tests for :mod:`modsplit.extraction.balance`."""

from __future__ import annotations

import pytest

from modsplit.extraction import (
    BalanceMismatchError,
    Balancer,
    ContextEvent,
    ContextStack,
)
from modsplit.lexing import JavaScriptTokenSource, Location


def _drive(source) -> ContextStack:
    """Feed every token of ``source`` through a fresh context stack."""

    context = ContextStack()
    location = None
    while (token := source.next_token()) is not None:
        location = token.location
        context.sync(source.state_depth, location=location)
        context.observe(token, source)
        assert len(context) >= 0
    context.finish(location=location)
    return context


def test_balancer_push_and_close() -> None:
    balancer = Balancer()
    balancer.push("{")
    balancer.push("(")

    balancer.close(")")
    assert balancer.stack == ("{",)
    balancer.close("}")
    assert balancer.depth == 0


def test_balancer_reports_expected_closer() -> None:
    balancer = Balancer()
    balancer.push("[")

    with pytest.raises(BalanceMismatchError) as exc:
        balancer.close(")")

    assert exc.value.actual == ")"
    assert exc.value.expected == "]"
    assert exc.value.stack == ("[",)


def test_balancer_close_on_empty_stack() -> None:
    with pytest.raises(BalanceMismatchError) as exc:
        Balancer().close("}")

    assert exc.value.expected is None
    assert exc.value.stack == ()


def test_balanced_code_with_templates_finishes_empty() -> None:
    source = JavaScriptTokenSource(
        "const f = (a) => { return `x${ {k: [a]}.k }y${`z${a}`}`; };"
    )

    context = _drive(source)

    assert context.is_empty
    assert source.state_depth == 0


def test_interpolation_end_event_pops_source_state() -> None:
    source = JavaScriptTokenSource("`a${b}c`")
    context = ContextStack()
    events = []
    while (token := source.next_token()) is not None:
        context.sync(source.state_depth)
        events.append((token.lexeme, context.observe(token, source)))

    assert events == [
        ("`a${", ContextEvent.NONE),
        ("b", ContextEvent.NONE),
        ("}", ContextEvent.INTERPOLATION_END),
        ("c`", ContextEvent.NONE),
    ]
    assert len(context) == 0


def test_mismatched_closer_reports_whole_snapshot() -> None:
    source = JavaScriptTokenSource("f(a, [b)")

    with pytest.raises(BalanceMismatchError) as exc:
        _drive(source)

    assert exc.value.actual == ")"
    assert exc.value.expected == "]"
    assert exc.value.stack == ("(", "[")
    assert exc.value.location.column == 8


def test_unclosed_bracket_at_end_of_input() -> None:
    with pytest.raises(BalanceMismatchError) as exc:
        _drive(JavaScriptTokenSource("if (x) { y();"))

    assert exc.value.actual is None
    assert exc.value.expected == "}"
    assert "end of input" in str(exc.value)


def test_template_with_unclosed_interpolation(scripted_source) -> None:
    # `a${ {x:1 }b` : the object literal closes, the interpolation never does.
    source = scripted_source(
        [
            ("`a${", "templateLiteral"),
            (" ", "whitespace"),
            ("{", "punctuator"),
            ("x", "identifier"),
            (":", "punctuator"),
            ("1", "numericLiteral"),
            (" ", "whitespace"),
            ("}", "punctuator"),
            ("b", "identifier"),
        ]
    )

    with pytest.raises(BalanceMismatchError) as exc:
        _drive(source)

    assert exc.value.actual is None
    assert exc.value.stack == ("{",)
    assert exc.value.expected == "}"
    assert source.pops == 0


def test_pop_with_open_bracket_is_rejected() -> None:
    context = ContextStack()
    context.push()
    context.top.push("(")

    with pytest.raises(BalanceMismatchError) as exc:
        context.pop(location=Location(line=1, column=4, offset=3))

    assert exc.value.expected == ")"
    assert exc.value.stack == ("{", "(")


def test_pop_at_depth_zero_never_goes_negative() -> None:
    context = ContextStack()

    with pytest.raises(BalanceMismatchError):
        context.pop()
    assert len(context) == 0


def test_sync_follows_reported_depth() -> None:
    context = ContextStack()
    context.sync(2)
    assert len(context) == 2
    assert context.snapshot() == ("{", "{")

    context.sync(0)
    assert context.is_empty
