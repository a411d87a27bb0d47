from typing import Any, Callable, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict


class ToolDefinition(BaseModel):
    """
    Represents the definition of a tool that can be offered to the model.

    Attributes:
        name: The unique name of the tool.
        description: A brief description of what the tool does.
        func: The callable implementing the tool's logic.
        parameters: JSON schema describing the tool's input parameters.
        args_model: Optional Pydantic model used for validating and coercing arguments.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    func: Callable
    parameters: Optional[Dict[str, Any]] = None
    args_model: Optional[Type[BaseModel]] = None

    def describe_arguments(self) -> Dict[str, Dict[str, Any]]:
        """Flatten the parameter schema into ``name -> {type, required, description}``."""
        if not self.parameters:
            return {}
        required = set(self.parameters.get("required", []))
        return {
            param: {
                "type": spec.get("type", "any"),
                "required": param in required,
                "description": spec.get("description", ""),
            }
            for param, spec in self.parameters.get("properties", {}).items()
        }
