"""
Pydantic models for the blackjack agents API.
This module defines the request and response schemas used by the HTTP API.
"""

from pydantic import (
    BaseModel,
    Field,
)

from blackjack_agents.core.i18n import ThinkingLang
from blackjack_agents.core.schema import (
    GameSnapshot,
    Role,
)


# ---------------------------------------------------------------------------
# Pydantic request / response schema
# ---------------------------------------------------------------------------
class TurnRequest(BaseModel):
    """Ask an agent to act on a table snapshot."""

    role: Role = Field(..., description="Which agent acts: ai_player or dealer")
    snapshot: GameSnapshot = Field(..., description="Current table state")
    thinking_lang: ThinkingLang = Field(ThinkingLang.EN, description="Language for the reasoning")


class SessionStatus(BaseModel):
    """Model availability as seen by the current session."""

    probed: bool
    rate_limited: bool
