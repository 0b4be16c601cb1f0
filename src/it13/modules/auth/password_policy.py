"""
Password Policy

Shared strength rules for every password a user chooses. Each rule is
reported on its own so the UI can show live feedback.
"""

import re
from dataclasses import dataclass, field

MIN_LENGTH = 8
SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"
COMMON_PATTERNS = ("123456", "password", "azerty", "qwerty", "admin", "letmein")

_SPECIAL_RE = re.compile(f"[{re.escape(SPECIAL_CHARACTERS)}]")

CHECK_MESSAGES = {
    "min_length": f"Au moins {MIN_LENGTH} caractères",
    "uppercase": "Au moins une lettre majuscule",
    "lowercase": "Au moins une lettre minuscule",
    "digit": "Au moins un chiffre",
    "special": "Au moins un caractère spécial",
    "not_common": "Ne doit pas contenir de motif courant (123456, password, azerty...)",
}


@dataclass
class PasswordStrength:
    checks: dict[str, bool] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return all(self.checks.values())

    @property
    def failed(self) -> list[str]:
        return [name for name, passed in self.checks.items() if not passed]

    @property
    def messages(self) -> list[str]:
        return [CHECK_MESSAGES[name] for name in self.failed]


def check_password_strength(password: str) -> PasswordStrength:
    lowered = password.lower()
    return PasswordStrength(
        checks={
            "min_length": len(password) >= MIN_LENGTH,
            "uppercase": bool(re.search(r"[A-Z]", password)),
            "lowercase": bool(re.search(r"[a-z]", password)),
            "digit": bool(re.search(r"[0-9]", password)),
            "special": bool(_SPECIAL_RE.search(password)),
            "not_common": not any(pattern in lowered for pattern in COMMON_PATTERNS),
        }
    )


def is_valid_password(password: str) -> bool:
    return check_password_strength(password).is_valid
