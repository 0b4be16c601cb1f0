"""
Application Intake Validation

Validates and sanitises the raw JSON sections of a technician
application. Pure functions, no I/O.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any

from email_validator import EmailNotValidError
from email_validator import validate_email as _validate_email_address

from it13.modules.technician_applications.schemas import (
    AdditionalInfo,
    ApplicationSubmission,
    Background,
    PersonalInfo,
    ProfessionalInfo,
)

MAX_TEXT_LENGTH = 1000

_PHONE_SEPARATORS = re.compile(r"[\s.\-()]")
_FRENCH_PHONE_PATTERNS = (
    re.compile(r"^0[67]\d{8}$"),  # mobile
    re.compile(r"^0[1-58-9]\d{8}$"),  # landline
    re.compile(r"^\+33[1-9]\d{8}$"),
    re.compile(r"^33[1-9]\d{8}$"),
)
_WHITESPACE_RUN = re.compile(r"\s+")

# (section, field, message) for the free-text length limit
_FREE_TEXT_FIELDS = (
    ("professionalInfo", "certifications", "Les certifications"),
    ("professionalInfo", "availability", "La disponibilité"),
    ("professionalInfo", "toolsEquipment", "La description des outils et équipements"),
    ("background", "education", "La description de la formation"),
    ("background", "workHistory", "La description de l'expérience professionnelle"),
    ("background", "references", "Les références"),
    ("additionalInfo", "skills", "Les compétences"),
    ("additionalInfo", "languages", "Les langues"),
)


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


def _clean_phone(phone: str) -> str:
    return _PHONE_SEPARATORS.sub("", phone)


def validate_french_phone_number(phone: Any) -> bool:
    """Accepts 06 12 34 56 78, 0123456789, +33123456789, 33612345678 and similar."""
    if not phone or not isinstance(phone, str):
        return False
    cleaned = _clean_phone(phone)
    return any(pattern.match(cleaned) for pattern in _FRENCH_PHONE_PATTERNS)


def format_french_phone_number(phone: str) -> str:
    """Format as ``+33 X XX XX XX XX``; returns the input unchanged if it is not French."""
    if not phone or not isinstance(phone, str):
        return ""

    digits = _clean_phone(phone)
    if digits.startswith("+33"):
        digits = digits[3:]
    elif digits.startswith("33") and len(digits) == 11:
        digits = digits[2:]
    elif digits.startswith("0") and len(digits) == 10:
        digits = digits[1:]

    if not re.fullmatch(r"[1-9]\d{8}", digits):
        return phone

    return f"+33 {digits[0]} {digits[1:3]} {digits[3:5]} {digits[5:7]} {digits[7:9]}"


def validate_email(email: Any) -> bool:
    """Syntax check only; the domain is not resolved."""
    if not email or not isinstance(email, str):
        return False
    try:
        _validate_email_address(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _parse_years(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = re.match(r"^\s*(-?\d+)", value)
        if match:
            return int(match.group(1))
    return None


def validate_technician_application(data: Any) -> ValidationResult:
    """
    Validate a raw application payload.

    Every rule is checked and all failures are collected, so the applicant
    sees every problem at once.
    """
    errors: list[str] = []
    if not isinstance(data, dict):
        return ValidationResult(is_valid=False, errors=["Données de candidature invalides"])

    personal = data.get("personalInfo")
    if not isinstance(personal, dict):
        errors.append("Informations personnelles manquantes")
    else:
        if len(_text(personal.get("fullName"))) < 2:
            errors.append("Le nom complet doit contenir au moins 2 caractères")
        if not validate_email(personal.get("email")):
            errors.append("Adresse email invalide")
        if not validate_french_phone_number(personal.get("phone")):
            errors.append("Numéro de téléphone français invalide")
        if not _text(personal.get("location")):
            errors.append("La localisation est requise")

    professional = data.get("professionalInfo")
    if not isinstance(professional, dict):
        errors.append("Informations professionnelles manquantes")
    else:
        if len(_text(professional.get("specialization"))) < 2:
            errors.append("La spécialisation est requise")
        years = _parse_years(professional.get("yearsExperience"))
        if years is None or years < 0:
            errors.append("Les années d'expérience doivent être un nombre positif")

    for section_name, field_name, label in _FREE_TEXT_FIELDS:
        section = data.get(section_name)
        if isinstance(section, dict) and len(_text(section.get(field_name))) > MAX_TEXT_LENGTH:
            errors.append(f"{label} ne peut pas dépasser {MAX_TEXT_LENGTH} caractères")

    return ValidationResult(is_valid=not errors, errors=errors)


def sanitize_text(text: Any) -> str:
    """Trim, drop angle brackets and cap at 1000 characters."""
    if not text or not isinstance(text, str):
        return ""
    return text.strip().replace("<", "").replace(">", "")[:MAX_TEXT_LENGTH]


def sanitize_application_data(data: dict) -> ApplicationSubmission:
    """Build the typed, sanitised submission from a validated payload."""
    personal = data.get("personalInfo") or {}
    professional = data.get("professionalInfo") or {}
    background = data.get("background") or {}
    additional = data.get("additionalInfo") or {}

    return ApplicationSubmission(
        personal_info=PersonalInfo(
            full_name=sanitize_text(personal.get("fullName")),
            email=sanitize_text(str(personal.get("email") or "").lower()),
            phone=sanitize_text(personal.get("phone")),
            location=sanitize_text(personal.get("location")),
        ),
        professional_info=ProfessionalInfo(
            specialization=sanitize_text(professional.get("specialization")),
            years_experience=max(_parse_years(professional.get("yearsExperience")) or 0, 0),
            certifications=sanitize_text(professional.get("certifications")),
            availability=sanitize_text(professional.get("availability")),
            tools_equipment=sanitize_text(professional.get("toolsEquipment")),
        ),
        background=Background(
            education=sanitize_text(background.get("education")),
            work_history=sanitize_text(background.get("workHistory")),
            references=sanitize_text(background.get("references")),
        ),
        additional_info=AdditionalInfo(
            skills=sanitize_text(additional.get("skills")),
            languages=sanitize_text(additional.get("languages")),
            transport_available=bool(additional.get("transportAvailable")),
        ),
    )


def build_applicant_id(timestamp_ms: int, full_name: str) -> str:
    """``1700000000000`` and ``"Jean Dupont"`` give ``"1700000000000_jean_dupont"``."""
    return f"{timestamp_ms}_{_WHITESPACE_RUN.sub('_', full_name.strip()).lower()}"
