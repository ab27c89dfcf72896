"""Runs one agent turn: register tools, ask the model (or the rules), apply house rules."""

import logging
import threading
from typing import (
    List,
    Optional,
)

from blackjack_agents.agent.agent_loop import run_agentic_loop
from blackjack_agents.agent.fallback import (
    dealer_rule_decision,
    fallback_decision,
)
from blackjack_agents.agent.model_channel import BaseModelChannel
from blackjack_agents.agent.session import SessionContext
from blackjack_agents.config import settings
from blackjack_agents.core.errors import (
    RateLimited,
    TurnInProgressError,
)
from blackjack_agents.core.i18n import (
    ThinkingLang,
    lang_flag,
    lang_instruction,
)
from blackjack_agents.core.schema import (
    ROLE_AVAILABLE_TOOLS,
    FinalDecision,
    GameSnapshot,
    Role,
    ToolTrace,
    TurnOutcome,
)
from blackjack_agents.tools import (
    TOOL_REGISTRY,
    ToolRegistry,
)
from blackjack_agents.tools.blackjack_tools import (
    ActionCallbacks,
    register_role_tools,
)

logger = logging.getLogger(__name__)


class TurnOrchestrator:
    """
    Entry point for the turn-phase state machine.

    Holds the session context (probe cache, rate-limit flag) and a guard flag that refuses to
    start a second turn while one is in flight, from this thread or another.
    """

    def __init__(
        self,
        channel: BaseModelChannel,
        session: Optional[SessionContext] = None,
        registry: ToolRegistry = TOOL_REGISTRY,
        max_turns: Optional[int] = None,
    ) -> None:
        self.channel = channel
        self.session = session or SessionContext()
        self.registry = registry
        self.max_turns = max_turns if max_turns is not None else settings.MAX_AGENT_TURNS
        self._turn_lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._turn_lock.locked()

    def run_agent_turn(
        self,
        role: Role,
        snapshot: GameSnapshot,
        thinking_lang: ThinkingLang = ThinkingLang.EN,
        callbacks: Optional[ActionCallbacks] = None,
    ) -> TurnOutcome:
        """Run one turn for *role* against *snapshot* and return its outcome.

        Raises
        ------
        TurnInProgressError
            If another turn has not finished yet.
        """
        if not self._turn_lock.acquire(blocking=False):
            raise TurnInProgressError("An agent turn is already in progress")

        try:
            return self._run(Role(role), snapshot, ThinkingLang(thinking_lang), callbacks)
        finally:
            self._turn_lock.release()

    def _run(
        self,
        role: Role,
        snapshot: GameSnapshot,
        thinking_lang: ThinkingLang,
        callbacks: Optional[ActionCallbacks],
    ) -> TurnOutcome:
        register_role_tools(role, snapshot, callbacks, registry=self.registry)
        logger.info("%s tools: %s", role.value, self.registry.names())

        tool_traces: List[ToolTrace] = []
        is_fallback = False
        decision: FinalDecision | None = None

        try:
            if self.session.is_model_available(self.channel):
                decision = run_agentic_loop(
                    role,
                    self.channel,
                    lang_instruction(thinking_lang),
                    tool_traces,
                    registry=self.registry,
                    max_turns=self.max_turns,
                )
        except RateLimited:
            self.session.mark_rate_limited()
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Agentic loop failed, falling back to rules: %r", exc)

        if decision is None:
            is_fallback = True
            decision = fallback_decision(
                role, snapshot, thinking_lang, tool_traces, registry=self.registry
            )

        action = decision.action
        # Dealer follows house rules regardless of what was decided
        if role is Role.DEALER:
            action = dealer_rule_decision(snapshot.dealer.hand.value.best)
            if action != decision.action:
                logger.info(
                    "Dealer decision '%s' overridden by house rules -> '%s'",
                    decision.action,
                    action,
                )

        outcome = TurnOutcome(
            role=role,
            available_tools=list(ROLE_AVAILABLE_TOOLS[role]),
            tool_traces=tool_traces,
            reasoning=decision.thinking,
            action=action,
            model_action=decision.action,
            is_fallback=is_fallback,
            lang_flag=lang_flag(thinking_lang),
        )
        logger.debug("Turn outcome: %s", outcome.summary())
        return outcome
