"""Languages offered by the language picker."""

from typing import Optional

from dudelang.models.language import Language


SUPPORTED_LANGUAGES = [
    Language(code="ja", name="Japanese"),
    Language(code="en", name="English"),
    Language(code="ko", name="Korean"),
    Language(code="zh", name="Chinese"),
    Language(code="es", name="Spanish"),
    Language(code="fr", name="French"),
    Language(code="de", name="German"),
    Language(code="pt", name="Portuguese"),
    Language(code="it", name="Italian"),
    Language(code="ru", name="Russian"),
]

DEFAULT_SOURCE = SUPPORTED_LANGUAGES[0]
DEFAULT_TARGET = SUPPORTED_LANGUAGES[1]


def find_language(code: str) -> Optional[Language]:
    for language in SUPPORTED_LANGUAGES:
        if language.code == code:
            return language
    return None
