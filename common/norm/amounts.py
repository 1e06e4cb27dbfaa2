import math
from decimal import Decimal, InvalidOperation
from typing import Any

CURRENCY_SYMBOLS = ("R$", "US$", "$", "€", "£")


def _clean(raw: str) -> str:
    s = raw.strip()
    for symbol in CURRENCY_SYMBOLS:
        s = s.replace(symbol, "")
    s = "".join(s.split())

    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif s.count(",") == 1:
        s = s.replace(",", ".")
    else:
        s = s.replace(",", "")
    return s


def normalize_amount(raw: Any) -> float:
    """Turn a number or a money string like ``"R$ 12,50"`` into a float.

    Anything that cannot be read as a non-negative finite amount gives 0.0.
    """
    if not raw or isinstance(raw, bool):
        return 0.0

    try:
        if isinstance(raw, (int, float, Decimal)):
            value = float(raw)
        elif isinstance(raw, str):
            value = float(Decimal(_clean(raw)))
        else:
            return 0.0
    except (InvalidOperation, ValueError, OverflowError):
        # signaling NaN text and ints past float range
        return 0.0

    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def format_brl(raw: Any) -> str:
    value = normalize_amount(raw)
    text = f"{value:,.2f}"
    return "R$ " + text.replace(",", "_").replace(".", ",").replace("_", ".")
