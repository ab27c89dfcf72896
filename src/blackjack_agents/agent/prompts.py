"""
System prompts for the two agent roles.

The tool section is rendered from whatever is registered for the turn, so the model is told about
exactly the tools it can call and nothing else.
"""

from typing import (
    Dict,
    Mapping,
)

from blackjack_agents.core.schema import Role
from blackjack_agents.tools import ToolSchema

RESPONSE_FORMAT = """\
RESPONSE FORMAT:
You MUST respond with ONLY a valid JSON object, no markdown, no explanation.

To call a tool:
{"tool_call": "<tool_name>"}

To make your final decision (after gathering info):
{"thinking": "<1-2 sentence reasoning>", "action": "hit" or "stand"}

Example turn sequence:
Turn 1 → {"tool_call": "get_my_hand"}
(you receive the result)
Turn 2 → {"tool_call": "get_dealer_upcard"}
(you receive the result)
Turn 3 → {"thinking": "I have 18, dealer shows 6. Dealer likely busts.", "action": "stand"}

You may skip tools if the decision is obvious (e.g. hand value 5 → just hit).
You may call only the tools you need. You decide the order."""

_PERSONAS: Dict[Role, str] = {
    Role.AI_PLAYER: """\
You are Alex, an analytical blackjack player at a casino table.
It is your turn. You must decide whether to hit or stand.

PERSONALITY:
- Calm, calculated, slightly cocky
- You think in probabilities and odds
- You reference basic strategy but add your own flair

CONSTRAINTS:
- You can only see YOUR hand and the dealer's face-up card
- You CANNOT see the dealer's hidden card
- You CANNOT see other players' hands""",
    Role.DEALER: """\
You are the House Dealer at a professional blackjack table.
It is your turn. You must decide whether to hit or stand.

PERSONALITY:
- Professional, composed, slightly mysterious
- You follow strict house rules: hit on 16 or below, stand on 17+

CONSTRAINTS:
- You MUST follow house rules regardless of what you think
- Your thinking should reflect awareness of your full hand
- Add subtle personality to your narration""",
}


def describe_tools(tool_schemas: Mapping[str, ToolSchema]) -> str:
    """Render the ``Available tools:`` block."""
    lines = []
    for name, schema in tool_schemas.items():
        params = schema["parameters"]
        if params:
            param_desc = ", ".join(f"{p}: {info['type']}" for p, info in params.items())
            lines.append(f"- {name}({param_desc}): {schema['description']}")
        else:
            lines.append(f"- {name}: {schema['description']} No arguments.")
    return "Available tools:\n" + "\n".join(lines)


def build_system_prompt(
    role: Role, tool_schemas: Mapping[str, ToolSchema], lang_instruction: str
) -> str:
    """Assemble persona, tool catalog, language rule and response format for *role*."""
    return (
        f"{_PERSONAS[Role(role)]}\n\n"
        f"{describe_tools(tool_schemas)}\n\n"
        f"LANGUAGE RULE (IMPORTANT):\n{lang_instruction}\n\n"
        f"{RESPONSE_FORMAT}"
    )
