import re
import secrets

# No I or O, no zero: avoids codes that read ambiguously when shared aloud.
JOIN_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ123456789"
JOIN_CODE_LENGTH = 8

_SEPARATORS = re.compile(r"[^A-Z0-9]")


def generate_join_code(length: int = JOIN_CODE_LENGTH) -> str:
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


def normalize_join_code(code: str) -> str:
    """Uppercase and strip separators: 'ab-12-cd-34' -> 'AB12CD34'."""
    return _SEPARATORS.sub("", (code or "").upper())


def format_join_code(code: str) -> str:
    if len(code) != JOIN_CODE_LENGTH:
        return code
    half = JOIN_CODE_LENGTH // 2
    return f"{code[:half]}-{code[half:]}"
