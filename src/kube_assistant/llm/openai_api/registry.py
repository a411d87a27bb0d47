from typing import Any, Dict, List

from kube_assistant.core.tools import ToolRegistry


class OpenAIToolRegistry(ToolRegistry):
    """
    ToolRegistry that declares its tools in the chat completions ``tools`` format.
    """

    @property
    def tool_object(self) -> List[Dict[str, Any]] | None:
        """
        Generates the ``tools`` list for ``chat.completions.create``.

        Returns:
            A list of function tool dictionaries, or None if no tools are registered.
        """
        if not self.tools:
            return None

        tools_list = []
        for tool in self.tools.values():
            tools_list.append(
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description,
                        # Tools without arguments still need an (empty) object schema.
                        "parameters": tool.parameters or {"type": "object", "properties": {}},
                    },
                }
            )
        return tools_list
