# translate.py
"""
Rewrites spreadsheet formulas into Guesstimate's expression dialect.

Guesstimate understands arithmetic, ``sum(a, b, ...)`` and ``log10`` but none
of the range-based spreadsheet functions, so those are inlined:

    =SUM(A1:A3)              ->  =(A1+A2+A3)
    =SUM(A1,B2)              ->  =sum(A1,B2)
    =AVERAGE(A1:A2,B1)       ->  =((A1+A2+B1)/3)
    =SUMPRODUCT(A1:A2,B1:B2) ->  =(+A1*B1+A2*B2)
    =LN(5)                   ->  =(1 / log10(2.71828) * log10(5))
    =PV(0.1,10,100)          ->  =(-(100)*(1-(1+(0.1))^(-(10)))/(0.1))
    =50%*A1                  ->  =0.5*A1

Anything else passes through untouched. A recognised call that cannot be
inlined safely is left as written and reported in ``Translation.unresolved``.
"""

from typing import Callable, NamedTuple, Optional

from .formula import (
    Call,
    Expression,
    Range,
    Ref,
    Token,
    format_number,
    only,
    parse,
    rewrite,
    rewrite_sequences,
    serialize,
    strip,
    walk,
)


class Translation(NamedTuple):
    formula: str
    unresolved: list[str]


# A call handler returns the replacement nodes, or None when it can't inline.
Handler = Callable[[Call], Optional[Expression]]


def _splice(text: str) -> Expression:
    return parse(text)


# ──────────────────────────────────────────────────────────────
# Call handlers
# ──────────────────────────────────────────────────────────────
def inline_sumproduct(call: Call) -> Optional[Expression]:
    args = call.arguments()
    if len(args) != 2:
        return None
    first, second = only(args[0]), only(args[1])
    if not (isinstance(first, Range) and isinstance(second, Range)):
        return None
    left, right = first.cells(), second.cells()
    if not left or len(left) != len(right):
        return None
    return _splice("(" + "".join(f"+{a}*{b}" for a, b in zip(left, right)) + ")")


def inline_average(call: Call) -> Optional[Expression]:
    terms = []
    for arg in call.arguments():
        node = only(arg)
        if isinstance(node, Range):
            cells = node.cells()
            if not cells:
                return None
            terms.extend(str(r) for r in cells)
        else:
            terms.append(serialize(arg))
    if not terms:
        return None
    return _splice(f"(({'+'.join(terms)})/{len(terms)})")


def replace_ln(call: Call) -> Optional[Expression]:
    args = call.arguments()
    if len(args) != 1:
        return None
    return _splice(f"(1 / log10(2.71828) * log10({serialize(args[0])}))")


def replace_pv(call: Call) -> Optional[Expression]:
    # PV(rate, nper, pmt) and PV(rate, nper, pmt,, 1)
    args = call.arguments()
    if len(args) == 5 and not strip(args[3]) and serialize(args[4]).strip() == "1":
        args = args[:3]
    if len(args) != 3:
        return None
    rate, nper, pmt = (serialize(a) for a in args)
    return _splice(f"(-({pmt})*(1-(1+({rate}))^(-({nper})))/({rate}))")


CALL_HANDLERS: dict[str, Handler] = {
    "SUMPRODUCT": inline_sumproduct,
    "AVERAGE": inline_average,
    "LN": replace_ln,
    "PV": replace_pv,
}


# ──────────────────────────────────────────────────────────────
# Passes
# ──────────────────────────────────────────────────────────────
def eval_percentages(expr: Expression, unresolved: list[str]) -> Expression:
    def fold(seq: Expression) -> Expression:
        out = []
        i = 0
        while i < len(seq):
            node = seq[i]
            nxt = seq[i + 1] if i + 1 < len(seq) else None
            if (
                isinstance(node, Token) and node.kind == "NUMBER"
                and isinstance(nxt, Token) and nxt.text == "%"
            ):
                i += 1
                scale = 1
                while i < len(seq) and isinstance(seq[i], Token) and seq[i].text == "%":
                    scale *= 100
                    i += 1
                out.append(Token("NUMBER", format_number(float(node.text) / scale)))
                continue
            out.append(node)
            i += 1
        return tuple(out)

    return rewrite_sequences(expr, fold)


def call_pass(name: str):
    handler = CALL_HANDLERS[name]

    def run(expr: Expression, unresolved: list[str]) -> Expression:
        def fn(node):
            if not (isinstance(node, Call) and node.key == name):
                return None
            result = handler(node)
            if result is None:
                unresolved.append(name)
            return result

        return rewrite(expr, fn)

    run.__name__ = f"inline_{name.lower()}"
    return run


def _is_address_list(call: Call) -> bool:
    args = call.arguments()
    return bool(args) and all(isinstance(only(a), Ref) for a in args)


def _column_range(call: Call) -> Optional[Range]:
    args = call.arguments()
    if len(args) != 1:
        return None
    node = only(args[0])
    if not isinstance(node, Range):
        return None
    start, end = node.start.address, node.end.address
    if start.rstrip("0123456789") != end.rstrip("0123456789") or not node.cells():
        return None
    return node


def inline_sums(expr: Expression, unresolved: list[str]) -> Expression:
    """
    All-or-nothing over the formula: every SUM a plain address list becomes
    ``sum(...)``, every SUM a single one-column range gets spelled out, and any
    other mix is left alone.
    """
    calls = [n for n in walk(expr) if isinstance(n, Call) and n.key == "SUM"]
    if not calls:
        return expr

    if all(_is_address_list(c) for c in calls):
        return rewrite(expr, lambda n: Call("sum", n.args, n.closed) if isinstance(n, Call) and n.key == "SUM" else None)

    if all(_column_range(c) is not None for c in calls):
        def spell_out(node):
            if isinstance(node, Call) and node.key == "SUM":
                cells = _column_range(node).cells()
                return _splice("(" + "+".join(str(r) for r in cells) + ")")
            return None

        return rewrite(expr, spell_out)

    unresolved.append("SUM")
    return expr


PASSES = (
    eval_percentages,
    call_pass("SUMPRODUCT"),
    call_pass("AVERAGE"),
    inline_sums,
    call_pass("LN"),
    call_pass("PV"),
)


def translate_expression(expr: Expression) -> tuple[Expression, list[str]]:
    unresolved: list[str] = []
    for step in PASSES:
        expr = step(expr, unresolved)
    return expr, list(dict.fromkeys(unresolved))


def translate_report(formula: str) -> Translation:
    expr, unresolved = translate_expression(parse(formula))
    return Translation(serialize(expr), unresolved)


def translate(formula: str) -> str:
    """Rewrite ``formula``; never raises, unknown shapes pass through."""
    return translate_report(formula).formula
