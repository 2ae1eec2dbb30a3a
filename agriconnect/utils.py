import re
import hashlib
import secrets

INDIAN_MOBILE_RE = re.compile(r"^[6-9]\d{9}$")
COUNTRY_CODE = "+91"


# =========================
# Phone numbers
# =========================
def normalize_phone(phone: str) -> str:
    """Strip everything but digits."""
    return re.sub(r"[^0-9]", "", phone or "")


def validate_phone_number(phone: str) -> bool:
    """10-digit Indian mobile number, leading digit 6-9."""
    return bool(INDIAN_MOBILE_RE.match(normalize_phone(phone)))


def to_e164(phone: str) -> str:
    return f"{COUNTRY_CODE}{normalize_phone(phone)}"


def hash_phone_number(phone: str) -> str:
    """Hash phone number for logs (one-way hash)"""
    return hashlib.sha256(phone.encode()).hexdigest()


# =========================
# OTP Generation
# =========================
def generate_otp(length: int = 6) -> str:
    """Uniformly random numeric code without a leading zero (100000-999999 for six digits)."""
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def is_otp_shaped(code: str, length: int = 6) -> bool:
    return bool(code) and code.isdigit() and len(code) == length
