# addresses.py
"""
Turns cell references into Guesstimate metric placeholders.

With one sheet, ``A1`` becomes ``${metric:A1}``. With several sheets every
address is qualified by a sanitized sheet prefix, so ``'Q1 Plan'!B2`` from any
sheet and a bare ``B2`` on that sheet both become ``${metric:Q1Plan!B2}``.
"""

import logging
import re
from typing import Iterable, Optional

from .formula import Expression, Range, Ref, Token, parse, rewrite, serialize

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"\W", re.ASCII)


def sheet_prefix(sheet_name: str) -> str:
    return _NON_WORD.sub("", sheet_name) + "!"


def placeholder(address: str) -> str:
    return "${metric:" + address + "}"


class AddressNormalizer:
    """Built once per workbook; knows every sheet's prefix."""

    def __init__(self, sheet_names: Iterable[str]):
        self.sheet_names = list(sheet_names)
        self.multi_sheet = len(self.sheet_names) > 1
        self._prefixes = {name.casefold(): sheet_prefix(name) for name in self.sheet_names}
        seen: dict[str, str] = {}
        for name in self.sheet_names:
            prefix = sheet_prefix(name)
            if prefix in seen and seen[prefix].casefold() != name.casefold():
                logger.warning(
                    "Sheets %r and %r share the prefix %r; their cells will collide",
                    seen[prefix], name, prefix,
                )
            seen.setdefault(prefix, name)

    def qualify(self, address: str, sheet_name: str) -> str:
        """Grid key of the cell ``address`` on ``sheet_name``."""
        if not self.multi_sheet:
            return address
        return self._prefixes.get(sheet_name.casefold(), sheet_prefix(sheet_name)) + address

    def resolve(self, ref: Ref, current_sheet: str, sheet: Optional[str] = None) -> Optional[str]:
        """Grid key a reference points at, or None for an unknown sheet."""
        sheet = ref.sheet or sheet
        if not self.multi_sheet:
            if sheet is None or sheet.casefold() in self._prefixes:
                return ref.address
            return None
        prefix = self._prefixes.get((sheet or current_sheet).casefold())
        if prefix is None:
            return None
        return prefix + ref.address

    def normalize_expression(self, expr: Expression, current_sheet: str) -> Expression:
        def wrap(ref: Ref, sheet: Optional[str] = None):
            address = self.resolve(ref, current_sheet, sheet)
            return ref if address is None else Token("PLACEHOLDER", placeholder(address))

        def fn(node):
            if isinstance(node, Ref):
                return wrap(node)
            if isinstance(node, Range):
                # the end of Sheet2!A1:A3 lives on Sheet2 too
                return (wrap(node.start), Token("COLON", ":"), wrap(node.end, node.start.sheet))
            return None

        return rewrite(expr, fn)

    def normalize(self, formula: str, current_sheet: str) -> str:
        return serialize(self.normalize_expression(parse(formula), current_sheet))


def normalize(formula: str, current_sheet: str, sheet_names: Iterable[str]) -> str:
    return AddressNormalizer(sheet_names).normalize(formula, current_sheet)
