"""
Currency display helpers.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional


@dataclass(frozen=True)
class CurrencyConfig:
    symbol: str
    decimals: int


CURRENCY_CONFIG: Dict[str, CurrencyConfig] = {
    "USD": CurrencyConfig("$", 2),
    "EUR": CurrencyConfig("€", 2),
    "GBP": CurrencyConfig("£", 2),
    "NGN": CurrencyConfig("₦", 2),
    "CAD": CurrencyConfig("C$", 2),
    "AUD": CurrencyConfig("A$", 2),
    "JPY": CurrencyConfig("¥", 0),
    "CNY": CurrencyConfig("¥", 2),
    "INR": CurrencyConfig("₹", 2),
    "ZAR": CurrencyConfig("R", 2),
    "KES": CurrencyConfig("KSh", 2),
    "GHS": CurrencyConfig("₵", 2),
    "XOF": CurrencyConfig("CFA", 0),
    "XAF": CurrencyConfig("FCFA", 0),
    "BRL": CurrencyConfig("R$", 2),
    "MXN": CurrencyConfig("$", 2),
    "CHF": CurrencyConfig("CHF", 2),
    "SEK": CurrencyConfig("kr", 2),
    "NOK": CurrencyConfig("kr", 2),
    "DKK": CurrencyConfig("kr", 2),
    "RUB": CurrencyConfig("₽", 2),
    "KRW": CurrencyConfig("₩", 0),
    "SGD": CurrencyConfig("S$", 2),
    "HKD": CurrencyConfig("HK$", 2),
    "MYR": CurrencyConfig("RM", 2),
    "THB": CurrencyConfig("฿", 2),
    "PHP": CurrencyConfig("₱", 2),
    "IDR": CurrencyConfig("Rp", 0),
    "TZS": CurrencyConfig("TSh", 2),
    "UGX": CurrencyConfig("USh", 0),
    "EGP": CurrencyConfig("£", 2),
    "MAD": CurrencyConfig("د.م.", 2),
    "AED": CurrencyConfig("د.إ", 2),
    "SAR": CurrencyConfig("﷼", 2),
    "BDT": CurrencyConfig("৳", 2),
    "PKR": CurrencyConfig("₨", 2),
}

_COMPACT_STEPS = [
    (1_000_000_000, "B"),
    (1_000_000, "M"),
    (1_000, "K"),
]


def _to_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def currency_symbol(code: str) -> str:
    """Get the display symbol for a currency code."""
    config = CURRENCY_CONFIG.get((code or "").upper())
    return config.symbol if config else (code or "").upper()


def format_compact(value: float) -> str:
    """Abbreviate large numbers: 1.2K, 3.4M, 1.1B."""
    for step, suffix in _COMPACT_STEPS:
        if abs(value) >= step:
            return f"{value / step:.1f}{suffix}"
    return f"{value:.0f}"


def format_currency(
    code: str,
    value: Any,
    show_symbol: bool = True,
    show_code: bool = False,
    decimals: Optional[int] = None,
    compact: bool = False,
) -> str:
    """
    Format a monetary value with its currency symbol.

    Missing or unparseable values render as zero. Unknown currency codes
    use the USD decimal rules.
    """
    code = (code or "USD").upper()
    config = CURRENCY_CONFIG.get(code, CURRENCY_CONFIG["USD"])
    places = config.decimals if decimals is None else decimals

    number = _to_number(value)
    if number is None:
        number = 0.0

    if compact and abs(number) >= 1000:
        formatted = format_compact(number)
    else:
        formatted = f"{number:,.{places}f}"

    symbol = config.symbol if code in CURRENCY_CONFIG else code
    if show_symbol:
        if formatted.startswith("-"):
            result = f"-{symbol}{formatted[1:]}"
        else:
            result = f"{symbol}{formatted}"
    else:
        result = formatted

    if show_code:
        result = f"{result} {code}"
    return result


def format_multiple_currencies(
    balances: Iterable[Dict[str, Any]],
    **options: Any,
) -> List[Dict[str, Any]]:
    """Format a list of ``{"currency", "amount"}`` balances."""
    return [
        {
            "currency": str(balance["currency"]).upper(),
            "formatted": format_currency(balance["currency"], balance.get("amount"), **options),
            "amount": _to_number(balance.get("amount")) or 0.0,
        }
        for balance in balances
    ]


def parse_currency(text: str) -> float:
    """Parse a formatted currency string back into a number."""
    if not text:
        return 0.0
    cleaned = re.sub(r"[^\d.,-]", "", text).replace(",", "")
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def is_supported_currency(code: str) -> bool:
    return (code or "").upper() in CURRENCY_CONFIG


def supported_currencies() -> List[str]:
    return list(CURRENCY_CONFIG.keys())


def format_percentage(value: Optional[float], decimals: int = 2) -> str:
    """Format a 0-100 percentage value for display."""
    if value is None or math.isnan(value):
        return "N/A"
    if math.isinf(value):
        return "∞%" if value > 0 else "-∞%"
    if value == 0:
        value = 0.0
    return f"{value:.{decimals}f}%"
