"""Languages an agent may be asked to think in."""

from enum import Enum
from typing import Dict


class ThinkingLang(str, Enum):
    """Supported languages for the ``thinking`` field."""

    EN = "en"
    KR = "kr"
    JA = "ja"
    ES = "es"


LANG_FLAGS: Dict[ThinkingLang, str] = {
    ThinkingLang.EN: "🇺🇸",
    ThinkingLang.KR: "🇰🇷",
    ThinkingLang.JA: "🇯🇵",
    ThinkingLang.ES: "🇪🇸",
}

LANG_INSTRUCTIONS: Dict[ThinkingLang, str] = {
    ThinkingLang.EN: 'You MUST write your "thinking" field in English.',
    ThinkingLang.KR: (
        'You MUST write your "thinking" field in Korean (한국어). Example: '
        '{"thinking": "핸드가 15이고 딜러가 10을 보여주니까 히트해야겠어.", "action": "hit"}'
    ),
    ThinkingLang.JA: (
        'You MUST write your "thinking" field in Japanese (日本語). Example: '
        '{"thinking": "ハンドが15でディーラーが10を見せているからヒットだ。", "action": "hit"}'
    ),
    ThinkingLang.ES: (
        'You MUST write your "thinking" field in Spanish (español). Example: '
        '{"thinking": "Mi mano es 15 y el crupier muestra 10, debo pedir carta.", "action": "hit"}'
    ),
}


def lang_instruction(lang: ThinkingLang) -> str:
    """Return the prompt sentence that pins the model's output language."""
    return LANG_INSTRUCTIONS[ThinkingLang(lang)]


def lang_flag(lang: ThinkingLang) -> str:
    return LANG_FLAGS.get(ThinkingLang(lang), "")
