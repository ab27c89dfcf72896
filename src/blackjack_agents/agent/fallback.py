"""
Rule-based decisions used when the model is unavailable or the loop fails.

The AI player follows a simplified basic-strategy table; the dealer follows the house rule
(hit below 17).  Justifications are short templates in the requested thinking language.
"""

import logging
from typing import (
    Dict,
    List,
)

from blackjack_agents.agent.tool_executor import execute_tool
from blackjack_agents.core.errors import ToolExecutionError
from blackjack_agents.core.i18n import ThinkingLang
from blackjack_agents.core.schema import (
    Action,
    FinalDecision,
    GameSnapshot,
    Role,
    ToolTrace,
)
from blackjack_agents.game.hand import card_value
from blackjack_agents.tools import (
    TOOL_REGISTRY,
    ToolRegistry,
)

logger = logging.getLogger(__name__)

DEALER_STAND_THRESHOLD = 17

PLAYER_TEMPLATES: Dict[ThinkingLang, Dict[str, str]] = {
    ThinkingLang.EN: {
        "hit": "Hand is {value}, dealer shows {upcard}. Basic strategy says hit.",
        "stand": "Hand is {value}, dealer shows {upcard}. Safe enough, stand.",
    },
    ThinkingLang.KR: {
        "hit": "핸드 {value}, 딜러 업카드 {upcard}. 기본 전략대로 히트.",
        "stand": "핸드 {value}, 딜러 업카드 {upcard}. 충분하니 스탠드.",
    },
    ThinkingLang.JA: {
        "hit": "ハンドは{value}、ディーラーのアップカードは{upcard}。基本戦略に従いヒット。",
        "stand": "ハンドは{value}、ディーラーのアップカードは{upcard}。十分安全なのでスタンド。",
    },
    ThinkingLang.ES: {
        "hit": "Mano en {value}, el crupier muestra {upcard}. Estrategia básica: pedir carta.",
        "stand": "Mano en {value}, el crupier muestra {upcard}. Suficiente, me planto.",
    },
}

DEALER_TEMPLATES: Dict[ThinkingLang, Dict[str, str]] = {
    ThinkingLang.EN: {
        "hit": "My hand totals {value}. House rules say I must hit.",
        "stand": "Standing at {value}. House rules are clear.",
    },
    ThinkingLang.KR: {
        "hit": "핸드 합계 {value}. 하우스 규칙에 따라 히트.",
        "stand": "{value}에서 스탠드. 하우스 규칙 준수.",
    },
    ThinkingLang.JA: {
        "hit": "ハンド合計{value}。ハウスルールに従いヒット。",
        "stand": "{value}でスタンド。ハウスルール通り。",
    },
    ThinkingLang.ES: {
        "hit": "Mi mano suma {value}. Las reglas de la casa dicen que debo pedir.",
        "stand": "Me planto en {value}. Las reglas de la casa son claras.",
    },
}

# Observation tools still called in fallback mode so the turn displays the same way
_DISPLAY_TOOLS: Dict[Role, List[str]] = {
    Role.AI_PLAYER: ["get_my_hand", "get_dealer_upcard"],
    Role.DEALER: ["get_my_hand"],
}


def basic_strategy_decision(player_total: int, dealer_upcard: int, is_soft: bool) -> Action:
    """Simplified basic strategy (no doubling or splitting)."""
    if is_soft:
        if player_total >= 19:
            return "stand"
        if player_total == 18:
            return "hit" if dealer_upcard >= 9 else "stand"
        return "hit"

    if player_total >= 17:
        return "stand"
    if 13 <= player_total <= 16 and dealer_upcard <= 6:
        return "stand"
    if player_total == 12 and 4 <= dealer_upcard <= 6:
        return "stand"
    return "hit"


def dealer_rule_decision(dealer_total: int) -> Action:
    """House rule: hit below 17, stand otherwise."""
    return "hit" if dealer_total < DEALER_STAND_THRESHOLD else "stand"


def rule_based_ai_player(snapshot: GameSnapshot, lang: ThinkingLang) -> FinalDecision:
    hand_value = snapshot.ai_player.hand.value
    upcard = card_value(snapshot.dealer_upcard())
    action = basic_strategy_decision(hand_value.best, upcard, hand_value.is_soft)
    template = PLAYER_TEMPLATES[ThinkingLang(lang)][action]
    return FinalDecision(
        thinking=template.format(value=hand_value.best, upcard=upcard), action=action
    )


def rule_based_dealer(snapshot: GameSnapshot, lang: ThinkingLang) -> FinalDecision:
    value = snapshot.dealer.hand.value.best
    action = dealer_rule_decision(value)
    template = DEALER_TEMPLATES[ThinkingLang(lang)][action]
    return FinalDecision(thinking=template.format(value=value), action=action)


def fallback_decision(
    role: Role,
    snapshot: GameSnapshot,
    lang: ThinkingLang,
    tool_traces: List[ToolTrace],
    registry: ToolRegistry = TOOL_REGISTRY,
) -> FinalDecision:
    """
    Decide without the model.

    The role's observation tools are still executed and traced so the turn renders like a model
    turn; their results do not feed the decision.
    """
    role = Role(role)
    for name in _DISPLAY_TOOLS[role]:
        try:
            result = execute_tool(name, registry=registry)
        except ToolExecutionError as exc:
            logger.debug("Display tool '%s' skipped in fallback: %s", name, exc)
            continue
        tool_traces.append(ToolTrace(tool_name=name, result=result))

    if role is Role.AI_PLAYER:
        return rule_based_ai_player(snapshot, lang)
    return rule_based_dealer(snapshot, lang)
