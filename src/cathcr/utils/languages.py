"""Languages supported by both the browser recognizer and Whisper backends."""

SUPPORTED_LANGUAGES: list[dict] = [
    {"code": "en", "name": "English", "variants": ["en-US", "en-GB", "en-AU", "en-CA"]},
    {"code": "es", "name": "Spanish", "variants": ["es-ES", "es-MX", "es-AR"]},
    {"code": "fr", "name": "French", "variants": ["fr-FR", "fr-CA"]},
    {"code": "de", "name": "German", "variants": ["de-DE", "de-AT", "de-CH"]},
    {"code": "it", "name": "Italian", "variants": ["it-IT"]},
    {"code": "pt", "name": "Portuguese", "variants": ["pt-BR", "pt-PT"]},
    {"code": "ru", "name": "Russian", "variants": ["ru-RU"]},
    {"code": "ja", "name": "Japanese", "variants": ["ja-JP"]},
    {"code": "ko", "name": "Korean", "variants": ["ko-KR"]},
    {"code": "zh", "name": "Chinese", "variants": ["zh-CN", "zh-TW", "zh-HK"]},
    {"code": "ar", "name": "Arabic", "variants": ["ar-SA", "ar-EG"]},
    {"code": "hi", "name": "Hindi", "variants": ["hi-IN"]},
    {"code": "tr", "name": "Turkish", "variants": ["tr-TR"]},
    {"code": "pl", "name": "Polish", "variants": ["pl-PL"]},
    {"code": "nl", "name": "Dutch", "variants": ["nl-NL", "nl-BE"]},
    {"code": "sv", "name": "Swedish", "variants": ["sv-SE"]},
    {"code": "da", "name": "Danish", "variants": ["da-DK"]},
    {"code": "no", "name": "Norwegian", "variants": ["no-NO"]},
    {"code": "fi", "name": "Finnish", "variants": ["fi-FI"]},
]


def normalize_language(language: str | None) -> str | None:
    """Reduce a BCP-47 tag such as ``en-US`` to the base code Whisper expects."""
    if not language or not language.strip():
        return None
    return language.strip().replace("_", "-").split("-")[0].lower()
