from __future__ import annotations

from fastapi import Request

from app.api.texts.ar import TEXTS_AR
from app.api.texts.en import TEXTS_EN
from app.core.config import get_settings

TEXTS_BY_LANGUAGE: dict[str, dict[str, str]] = {
    "ar": TEXTS_AR,
    "en": TEXTS_EN,
}


def resolve_language(request: Request) -> str:
    header = request.headers.get("Accept-Language", "")
    for part in header.split(","):
        language = part.split(";", maxsplit=1)[0].strip().lower()[:2]
        if language in TEXTS_BY_LANGUAGE:
            return language
    default = get_settings().default_language
    return default if default in TEXTS_BY_LANGUAGE else "ar"


def get_text(key: str, *, language: str) -> str:
    texts = TEXTS_BY_LANGUAGE.get(language, TEXTS_AR)
    return texts.get(key, TEXTS_EN.get(key, key))
