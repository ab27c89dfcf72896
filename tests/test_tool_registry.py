"""Registry lifecycle and the role-scoped tool catalogs."""

import pytest

from blackjack_agents.core.schema import (
    ROLE_AVAILABLE_TOOLS,
    DealerUpcardResult,
    MyHandResult,
    RevealHiddenResult,
    Role,
)
from blackjack_agents.tools import (
    ToolDescriptor,
    ToolRegistry,
    get_tool_schemas,
)
from blackjack_agents.tools.blackjack_tools import (
    ActionCallbacks,
    build_role_tools,
    register_role_tools,
)
from conftest import make_snapshot


def _catalog(registry: ToolRegistry) -> list:
    return [(tool.name, tool.description) for tool in registry.list()]


@pytest.mark.parametrize("role", list(Role))
def test_register_matches_role_catalog(registry: ToolRegistry, role: Role) -> None:
    """Registering a role exposes exactly that role's tools."""
    register_role_tools(role, make_snapshot(), registry=registry)
    assert registry.names() == ROLE_AVAILABLE_TOOLS[role]
    assert registry.role is role


def test_register_clear_register_is_idempotent(registry: ToolRegistry) -> None:
    """Re-registering after a clear yields the same catalog, with nothing left over."""
    snapshot = make_snapshot()
    register_role_tools(Role.AI_PLAYER, snapshot, registry=registry)
    first = _catalog(registry)

    register_role_tools(Role.DEALER, snapshot, registry=registry)
    assert "get_dealer_upcard" not in registry

    registry.clear()
    assert len(registry) == 0
    register_role_tools(Role.AI_PLAYER, snapshot, registry=registry)
    assert _catalog(registry) == first
    assert "reveal_hidden" not in registry


def test_duplicate_names_rejected(registry: ToolRegistry) -> None:
    """A catalog may not name the same tool twice."""
    tool = ToolDescriptor(name="get_my_hand", fn=lambda: {})
    with pytest.raises(ValueError, match="already registered"):
        registry.register(Role.AI_PLAYER, [tool, tool])


def test_ai_player_tools_read_snapshot() -> None:
    """The AI player sees its own hand with a soft flag and the dealer's upcard."""
    snapshot = make_snapshot(ai=("A", "6"), dealer=("9", "5"))
    tools = {t.name: t for t in build_role_tools(Role.AI_PLAYER, snapshot)}
    hand = tools["get_my_hand"].fn()
    assert isinstance(hand, MyHandResult)
    assert hand.value == 17
    assert hand.soft is True

    upcard = tools["get_dealer_upcard"].fn()
    assert isinstance(upcard, DealerUpcardResult)
    assert upcard.value == 5
    assert upcard.card is not None and upcard.card.rank == "5"


def test_dealer_tools_see_hole_card() -> None:
    """The dealer's hand includes the face-down card; reveal returns it."""
    tools = {t.name: t for t in build_role_tools(Role.DEALER, make_snapshot(dealer=("Q", "6")))}
    hand = tools["get_my_hand"].fn()
    assert hand.value == 16
    assert hand.soft is None

    revealed = tools["reveal_hidden"].fn()
    assert isinstance(revealed, RevealHiddenResult)
    assert revealed.card is not None and revealed.card.rank == "Q"


def test_action_tools_notify_callbacks() -> None:
    """hit/stand are the only tools with side effects."""
    seen = []
    callbacks = ActionCallbacks(
        on_hit=lambda: seen.append("hit"), on_stand=lambda: seen.append("stand")
    )
    tools = {t.name: t for t in build_role_tools(Role.AI_PLAYER, make_snapshot(), callbacks)}

    result = tools["hit"].fn()
    tools["stand"].fn()

    assert seen == ["hit", "stand"]
    assert result.action == "hit"
    assert result.accepted


def test_tool_schemas(registry: ToolRegistry) -> None:
    """Schemas expose descriptions and (empty) parameter maps for prompts."""
    register_role_tools(Role.DEALER, make_snapshot(), registry=registry)
    schemas = get_tool_schemas(registry)
    assert list(schemas) == ROLE_AVAILABLE_TOOLS[Role.DEALER]
    assert schemas["reveal_hidden"]["parameters"] == {}
    assert "face-down" in schemas["reveal_hidden"]["description"]


def test_descriptor_from_function_infers_parameters() -> None:
    def count_cards(suit: str, limit: int = 3) -> dict:
        """Count cards of a suit."""
        return {}

    tool = ToolDescriptor.from_function("count_cards", count_cards)
    assert tool.description == "Count cards of a suit."
    assert tool.parameters == {
        "suit": {"type": "str", "required": True},
        "limit": {"type": "int", "required": False},
    }


@pytest.mark.parametrize("role", list(Role))
def test_role_catalog_takes_no_arguments(role: Role) -> None:
    """Producers are bound to the snapshot, so every tool's inferred schema is empty."""
    for tool in build_role_tools(role, make_snapshot()):
        assert tool.parameters == {}
        assert tool.description
