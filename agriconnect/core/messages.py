# agriconnect/core/messages.py
from typing import Dict

SUPPORTED_LANGUAGES = ("en", "hi", "mr")
DEFAULT_LANGUAGE = "en"

MESSAGES: Dict[str, Dict[str, str]] = {
    "invalid_phone": {
        "en": "Please enter a valid phone number",
        "hi": "कृपया एक वैध फोन नंबर दर्ज करें",
        "mr": "कृपया वैध फोन नंबर टाका",
    },
    "otp_sent": {
        "en": "OTP has been sent to your phone number",
        "hi": "OTP आपके फोन नंबर पर भेजा गया है",
        "mr": "OTP आपल्या फोन नंबरवर पाठवला आहे",
    },
    "otp_send_failed": {
        "en": "Failed to send OTP. Please try again.",
        "hi": "OTP भेजने में समस्या हुई। कृपया पुनः प्रयास करें।",
        "mr": "OTP पाठवण्यात समस्या झाली. कृपया पुन्हा प्रयत्न करा.",
    },
    "otp_rate_limited": {
        "en": "Too many OTP requests. Please try again later.",
        "hi": "बहुत अधिक OTP अनुरोध। कृपया बाद में पुनः प्रयास करें।",
        "mr": "खूप जास्त OTP विनंत्या. कृपया नंतर पुन्हा प्रयत्न करा.",
    },
}

SMS_TEMPLATES: Dict[str, str] = {
    "en": "Your Agriconnect verification code is: {otp}. Valid for {minutes} minutes.",
    "hi": "आपका Agriconnect सत्यापन कोड है: {otp}. {minutes} मिनट के लिए वैध।",
    "mr": "तुमचा Agriconnect सत्यापन कोड आहे: {otp}. {minutes} मिनिटांसाठी वैध.",
}


def resolve_language(language: str | None) -> str:
    if language in SUPPORTED_LANGUAGES:
        return language
    return DEFAULT_LANGUAGE


def get_message(key: str, language: str | None = None) -> str:
    """Localized message for ``key``, falling back to English."""
    table = MESSAGES[key]
    return table.get(resolve_language(language), table[DEFAULT_LANGUAGE])


def render_otp_sms(otp: str, minutes: int, language: str | None = None) -> str:
    return SMS_TEMPLATES[resolve_language(language)].format(otp=otp, minutes=minutes)
