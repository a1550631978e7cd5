import re

_SYMBOL_PATTERN = re.compile(r"^[A-Za-z0-9.^=_-]{1,16}$")


def normalize_symbol(symbol: str) -> str:
    cleaned = symbol.strip().upper()
    if not cleaned or not _SYMBOL_PATTERN.match(cleaned):
        raise ValueError("invalid symbol")
    return cleaned
