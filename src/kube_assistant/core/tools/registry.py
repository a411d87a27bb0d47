"""Tool registry: declares callable tools and dispatches invocations to them."""

import asyncio
import inspect
import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Union

import jsonref  # type: ignore
from pydantic import ValidationError

from .call_protocol import ERROR_MARKER, ToolCallResult
from .models import ToolDefinition
from .schema import SchemaValidator, ToolParameterFactory
from ..exceptions import ToolExecutionError, ToolNotFoundError, ToolRegistrationError, ToolValidationError
from ..logger import get_logger

logger = get_logger(__name__)


class ToolRegistry(ABC):
    """
    Holds the tools offered to the model and executes them by name.

    Definitions are registered once at process start. ``invoke`` never raises:
    unknown names, undecodable or invalid arguments and failures inside the
    tool all come back as an error ``ToolCallResult``.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self.tools: Dict[str, ToolDefinition] = {}

    def register(
        self,
        name_or_tool: Union[str, ToolDefinition, Callable],
        description: Optional[str] = None,
        func: Optional[Callable] = None,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> ToolDefinition:
        """
        Register a new tool.

        Accepts a ready ``ToolDefinition``, a callable (definition generated from
        its signature and docstring), or a name plus ``func`` and optionally
        ``description``/``parameters``.

        Args:
            name_or_tool: A ``ToolDefinition``, the tool name, or a callable.
            description: Description override, required with explicit ``parameters``.
            func: The callable implementing the tool. Required if ``name_or_tool`` is a string.
            parameters: Explicit JSON schema. If None, it is inferred from ``func``.

        Returns:
            The registered definition.

        Raises:
            ToolRegistrationError: If arguments are missing or the name is already taken.
        """
        if isinstance(name_or_tool, ToolDefinition):
            tool = name_or_tool
        elif callable(name_or_tool):
            tool = self._generate_tool_definition(name_or_tool, description=description)
        else:
            if func is None:
                raise ToolRegistrationError("If passing name as string, func is required.")

            if parameters is None:
                tool = self._generate_tool_definition(func, name=name_or_tool, description=description)
            else:
                if description is None:
                    raise ToolRegistrationError("If passing name and parameters, description is required.")
                tool = ToolDefinition(name=name_or_tool, description=description, func=func, parameters=parameters)

        if tool.name in self.tools:
            msg = f"Tool '{tool.name}' is already registered."
            logger.error(msg)
            raise ToolRegistrationError(msg)

        self.tools[tool.name] = tool
        logger.debug(f"Registered tool: '{tool.name}'")
        return tool

    def get(self, tool_name: str) -> ToolDefinition:
        """Return the definition for ``tool_name``.

        Raises:
            ToolNotFoundError: If the tool does not exist in the registry.
        """
        try:
            return self.tools[tool_name]
        except KeyError:
            raise ToolNotFoundError(f"Tool '{tool_name}' not found in the registry.") from None

    def list_tools(self) -> List[ToolDefinition]:
        """Return every registered definition in registration order."""
        return list(self.tools.values())

    @property
    @abstractmethod
    def tool_object(self) -> Any:
        """Constructs the provider-specific tool declaration list."""
        pass

    async def invoke(self, name: str, raw_arguments: Any, call_id: Optional[str] = None) -> ToolCallResult:
        """Execute a tool by name and normalize the outcome to text.

        Args:
            name: Tool name requested by the model.
            raw_arguments: JSON string, mapping or None as delivered by the backend.
            call_id: Invocation id the result answers.

        Returns:
            The tool result; ``is_error`` is set for every failure path.
        """
        logger.debug(f"Handling tool call: {name} (ID: {call_id})")

        tool_def = self.tools.get(name)
        if tool_def is None:
            msg = f"{ERROR_MARKER}: unknown tool '{name}'. Available tools: {', '.join(sorted(self.tools))}"
            logger.warning(f"Model requested unknown tool '{name}'.")
            return ToolCallResult(name=name, content=msg, call_id=call_id, is_error=True)

        try:
            function_args = self._normalize_function_args(raw_arguments)
            if tool_def.args_model:
                function_args = tool_def.args_model(**function_args).model_dump()
        except (ToolExecutionError, ValidationError, TypeError) as exc:
            logger.warning(f"Invalid arguments for '{name}': {exc}")
            return self._error_result(name, call_id, f"invalid arguments: {exc}")

        try:
            logger.info(f"  -> {name}({json.dumps(function_args, default=str)})")
            result = await self._execute_tool(tool_def.func, function_args)
        except Exception as exc:
            logger.warning(f"Tool '{name}' failed: {exc} ({type(exc).__name__})")
            return self._error_result(name, call_id, str(exc))

        return ToolCallResult(name=name, content=str(result), call_id=call_id)

    @staticmethod
    def _error_result(name: str, call_id: Optional[str], message: str) -> ToolCallResult:
        return ToolCallResult(
            name=name,
            content=f"{ERROR_MARKER} executing {name}: {message}",
            call_id=call_id,
            is_error=True,
        )

    @staticmethod
    def _normalize_function_args(raw_args: Any) -> Dict[str, Any]:
        """Normalize tool arguments into a dictionary.

        Handles JSON strings, dictionaries, or None values.

        Raises:
            ToolExecutionError: If arguments cannot be parsed into an object.
        """
        if raw_args is None or raw_args == "":
            return {}

        if isinstance(raw_args, dict):
            return dict(raw_args)

        if isinstance(raw_args, str):
            try:
                parsed = json.loads(raw_args)
            except json.JSONDecodeError as exc:
                raise ToolExecutionError(f"arguments are not valid JSON ({exc})") from exc

            if parsed is None:
                return {}
            if not isinstance(parsed, dict):
                raise ToolExecutionError("arguments must decode to a JSON object")
            return parsed

        try:
            return dict(raw_args)
        except (TypeError, ValueError) as exc:
            raise ToolExecutionError(f"unsupported argument payload ({exc})") from exc

    @staticmethod
    async def _execute_tool(tool_function: Callable, function_args: Dict[str, Any]) -> Any:
        """Run the tool; blocking callables are moved to a worker thread."""
        if inspect.iscoroutinefunction(tool_function):
            return await tool_function(**function_args)
        return await asyncio.to_thread(tool_function, **function_args)

    def _generate_tool_definition(
        self, func: Callable, name: Optional[str] = None, description: Optional[str] = None
    ) -> ToolDefinition:
        """Generate a ToolDefinition from a callable.

        Args:
            func: The function to generate a definition for.
            name: Optional name override for the tool.
            description: Optional description override for the tool.

        Returns:
            A ToolDefinition containing the tool's metadata, schema and argument model.

        Raises:
            ToolValidationError: If the function is missing a docstring or parameter descriptions.
        """
        tool_name = name or func.__name__
        if description is None:
            description = self._get_docstring_from_func(func, tool_name)

        args_model = ToolParameterFactory.build_args_model(func, tool_name)
        raw_schema = args_model.model_json_schema()
        SchemaValidator.assert_no_recursive_refs(raw_schema)

        # proxies=False gives a plain dict back, not JsonRef objects
        parameters_schema = jsonref.replace_refs(raw_schema, proxies=False)
        parameters_schema = SchemaValidator.sanitize_schema(parameters_schema)

        return ToolDefinition(
            name=tool_name,
            description=description,
            func=func,
            parameters=parameters_schema,
            args_model=args_model,
        )

    @staticmethod
    def _get_docstring_from_func(func: Callable, tool_name: str) -> str:
        doc = inspect.getdoc(func)
        if not doc:
            msg = f"Tool '{tool_name}' missing docstring. The model needs a description of what the tool does."
            logger.error(msg)
            raise ToolValidationError(msg)
        # Only the summary paragraph goes to the model.
        return doc.split("\n\n")[0].replace("\n", " ")
