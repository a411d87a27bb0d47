import inspect
from typing import Annotated, Any, Callable, Dict, Optional, Type, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field, create_model
from pydantic.fields import FieldInfo

from ...exceptions import ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)


class FieldTuple(BaseModel):
    """One ``(annotation, FieldInfo)`` entry for ``create_model``."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    annotation: Any
    field: FieldInfo

    def as_definition(self) -> tuple:
        return self.annotation, self.field


class ToolParameterFactory:
    """Builds the pydantic argument model for a tool from its signature.

    Tool parameters are declared as ``Annotated[<type>, Field(description=...)]``.
    The description is mandatory because it is the only hint the model gets
    about a parameter. Constraints such as ``ge`` stay on the ``Annotated``
    metadata and are enforced when the arguments are validated.
    """

    # Unbound methods list ``self`` first.
    _SKIPPED = ("self", "cls")

    @classmethod
    def build_args_model(cls, func: Callable, tool_name: str) -> Type[BaseModel]:
        """Creates ``<tool_name>Params`` with one field per declared parameter.

        Raises:
            ToolValidationError: If a parameter has no description or is variadic.
        """
        fields: Dict[str, Any] = {}
        for param_name, param in inspect.signature(func).parameters.items():
            if param_name in cls._SKIPPED:
                continue
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                msg = f"Tool '{tool_name}' declares variadic parameter '{param_name}'; tools need named parameters."
                logger.error(msg)
                raise ToolValidationError(msg)
            fields[param_name] = cls.build_field_tuple(param_name, param, tool_name).as_definition()

        return create_model(f"{tool_name}Params", **fields)

    @classmethod
    def build_field_tuple(cls, param_name: str, param: inspect.Parameter, tool_name: str) -> FieldTuple:
        """Pairs the parameter's annotation with a field carrying description and default.

        Args:
            param_name: The name of the parameter.
            param: The inspect.Parameter object.
            tool_name: The name of the tool for error reporting.
        """
        description = cls._description_of(param.annotation)
        if description is None:
            msg = (
                f"Parameter '{param_name}' in tool '{tool_name}' is missing a description.\n"
                f"Usage: {param_name}: Annotated[Type, Field(description='...')] = ..."
            )
            logger.error(msg)
            raise ToolValidationError(msg)

        required = param.default is inspect.Parameter.empty
        return FieldTuple(
            annotation=param.annotation,
            field=Field(default=... if required else param.default, description=description),
        )

    @staticmethod
    def _description_of(annotation: Any) -> Optional[str]:
        if get_origin(annotation) is not Annotated:
            return None
        return next(
            (meta.description for meta in get_args(annotation)[1:] if isinstance(meta, FieldInfo) and meta.description),
            None,
        )
