"""
Tool registry for the blackjack agents.

The registry holds the tools the model may call during the current turn.  It is process-wide but
only ever written by the turn orchestrator, which clears it and registers exactly one role's
catalog at the start of every turn, so a tool left over from the other role can never be invoked.
"""

import inspect
import logging
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    TypedDict,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)

from blackjack_agents.core.schema import Role

logger = logging.getLogger(__name__)


class ParameterInfo(TypedDict):
    """
    Information about a tool parameter.
    """

    type: str
    required: bool


class ToolSchema(TypedDict):
    """
    Schema for a tool function
    """

    description: str
    parameters: Mapping[str, ParameterInfo]


def _infer_parameters(fn: Callable[..., Any]) -> Dict[str, ParameterInfo]:
    """Derive a parameter schema from *fn*'s signature."""
    params: Dict[str, ParameterInfo] = {}
    for param_name, param in inspect.signature(fn).parameters.items():
        annotation = param.annotation
        if annotation is inspect.Parameter.empty:
            type_name = "any"
        else:
            type_name = getattr(annotation, "__name__", str(annotation))
        params[param_name] = ParameterInfo(
            type=type_name, required=param.default is inspect.Parameter.empty
        )
    return params


class ToolDescriptor(BaseModel):
    """A callable tool as exposed to the model."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=dict)
    fn: Callable[..., Any]

    @classmethod
    def from_function(
        cls, name: str, fn: Callable[..., Any], description: Optional[str] = None
    ) -> "ToolDescriptor":
        """Build a descriptor, taking the description from *fn*'s docstring when omitted."""
        doc = description if description is not None else inspect.getdoc(fn) or ""
        return cls(name=name, description=doc, parameters=_infer_parameters(fn), fn=fn)


class ToolRegistry:
    """Name -> tool lookup for the role whose turn it is."""

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDescriptor] = {}
        self.role: Optional[Role] = None

    def register(self, role: Role, tools: Iterable[ToolDescriptor]) -> None:
        """
        Replace every registered tool with exactly *tools* for *role*.

        Raises
        ------
        ValueError
            If *tools* contains the same name twice.
        """
        catalog: Dict[str, ToolDescriptor] = {}
        for tool in tools:
            if tool.name in catalog:
                raise ValueError(f"Tool '{tool.name}' is already registered.")
            catalog[tool.name] = tool

        self.clear()
        self._tools = catalog
        self.role = role
        logger.debug("Registered %s tools: %s", role.value, list(catalog))

    def clear(self) -> None:
        """Remove all tools."""
        self._tools = {}
        self.role = None

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self._tools.get(name)

    def list(self) -> List[ToolDescriptor]:
        """Registered tools in registration order (for introspection and prompts)."""
        return list(self._tools.values())

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


TOOL_REGISTRY = ToolRegistry()
"""Global registry of the tools for the turn in flight."""


def get_tool_schemas(registry: ToolRegistry = TOOL_REGISTRY) -> Mapping[str, ToolSchema]:
    """Extract description and parameter information from registered tools."""
    return {
        tool.name: ToolSchema(description=tool.description, parameters=tool.parameters)
        for tool in registry.list()
    }
