"""Slack Block Kit rendering of a builder session.

The whole message is re-rendered from the session after every event.
"""

from typing import Any, Dict, List, Optional, Sequence

from .machine import CommandOutcome
from .models import Action, CommandBuilderSession, ResourceType, candidate_value

Block = Dict[str, Any]

BUILDER_TEXT = "🔧 Kubernetes Command Builder"
CLOSED_TEXT = "❌ Command builder closed."
WRITE_WARNING = "*WARNING: This is a WRITE operation that will modify the cluster!*"

ACTION_SELECT = "cmd_action"
NAMESPACE_SELECT = "cmd_namespace"
RESOURCE_TYPE_SELECT = "cmd_resource_type"
RESOURCE_NAME_SELECT = "cmd_resource_name"
REPLICAS_BLOCK = "scale_replicas_block"
REPLICAS_INPUT = "cmd_scale_replicas"
EXECUTE_BUTTON = "cmd_execute"
CANCEL_BUTTON = "cmd_cancel"

# Slack limits option text to 75 characters and a select to 100 options.
OPTION_TEXT_LIMIT = 75
OPTION_LIMIT = 100
MAX_REPLICAS = 100


def _plain(text: str, emoji: bool = True) -> Dict[str, Any]:
    return {"type": "plain_text", "text": text, "emoji": emoji}


def _option(text: str, value: str) -> Dict[str, Any]:
    # Only the label is shortened; the value must round-trip unchanged.
    if len(text) > OPTION_TEXT_LIMIT:
        text = text[: OPTION_TEXT_LIMIT - 3] + "..."
    return {"text": _plain(text), "value": value}


def _initial(options: List[Dict[str, Any]], value: Optional[str]) -> Optional[Dict[str, Any]]:
    """The listed option carrying ``value``; Slack rejects an initial option that is not in the list."""
    if value is None:
        return None
    return next((option for option in options[:OPTION_LIMIT] if option["value"] == value), None)


def _select(label: str, action_id: str, placeholder: str, options: List[Dict[str, Any]], initial=None) -> Block:
    accessory: Dict[str, Any] = {
        "type": "static_select",
        "action_id": action_id,
        "placeholder": _plain(placeholder),
        "options": options[:OPTION_LIMIT],
    }
    if initial is not None:
        accessory["initial_option"] = initial
    return {"type": "section", "text": {"type": "mrkdwn", "text": f"*{label}:*"}, "accessory": accessory}


def build_builder_blocks(
    session: CommandBuilderSession, namespaces: Sequence[str], candidates: Sequence[str] = ()
) -> List[Block]:
    """Render the builder message for the current selections.

    Args:
        session: Current selections.
        namespaces: Options for the namespace selector.
        candidates: Resource names for the name selector; omitted when empty.
    """
    action_options = [_option(action.label, action.value) for action in Action]
    namespace_options = [_option(ns, ns) for ns in namespaces]
    type_options = [_option(rt.value, rt.value) for rt in ResourceType]

    blocks: List[Block] = [
        {"type": "header", "text": _plain("Kubernetes Command Builder", emoji=False)},
        {"type": "section", "text": {"type": "mrkdwn", "text": "Select options to build your kubectl command:"}},
        {"type": "divider"},
        _select(
            "Action",
            ACTION_SELECT,
            "Choose an action",
            action_options,
            _initial(action_options, session.action.value if session.action else None),
        ),
        _select(
            "Namespace",
            NAMESPACE_SELECT,
            "Choose a namespace",
            namespace_options,
            _initial(namespace_options, session.namespace),
        ),
        _select(
            "Resource Type",
            RESOURCE_TYPE_SELECT,
            "Choose a type",
            type_options,
            _initial(type_options, session.resource_type.value if session.resource_type else None),
        ),
    ]

    if candidates:
        name_options = [_option(name, candidate_value(i, name)) for i, name in enumerate(candidates)]
        initial = next(
            (option for name, option in zip(candidates, name_options) if name == session.resource_name), None
        )
        blocks.append(_select("Resource Name", RESOURCE_NAME_SELECT, "Choose a resource", name_options, initial))

    blocks.append({"type": "divider"})

    if session.is_write:
        blocks.append(
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": WRITE_WARNING},
            }
        )

    blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": f"*Command:* `{session.preview()}`"}})

    if session.action is Action.SCALE:
        element: Dict[str, Any] = {
            "type": "number_input",
            "action_id": REPLICAS_INPUT,
            "is_decimal_allowed": False,
            "min_value": "0",
            "max_value": str(MAX_REPLICAS),
            "placeholder": _plain("Number of replicas"),
        }
        if session.scale_replicas is not None:
            element["initial_value"] = str(session.scale_replicas)
        blocks.append(
            {
                "type": "input",
                "block_id": REPLICAS_BLOCK,
                # Fire an action event as soon as a value is entered.
                "dispatch_action": True,
                "element": element,
                "label": _plain("Replicas:"),
            }
        )

    blocks.append({"type": "actions", "elements": [_execute_button(session), _cancel_button()]})
    return blocks


def _execute_button(session: CommandBuilderSession) -> Block:
    button: Block = {
        "type": "button",
        "text": _plain("CONFIRM" if session.is_write else "Execute", emoji=False),
        "style": "danger" if session.is_write else "primary",
        "action_id": EXECUTE_BUTTON,
    }
    if session.pending_confirmation:
        target = session.resource_name or (session.resource_type.value if session.resource_type else "")
        button["confirm"] = {
            "title": _plain("Are you sure?", emoji=False),
            "text": {
                "type": "mrkdwn",
                "text": (
                    f"You are about to *{session.action.value}* `{target}` in `{session.namespace}`. "
                    "This action cannot be undone."
                ),
            },
            "confirm": _plain("Yes, do it", emoji=False),
            "deny": _plain("Cancel", emoji=False),
            "style": "danger",
        }
    return button


def _cancel_button() -> Block:
    return {"type": "button", "text": _plain("Cancel", emoji=False), "style": "danger", "action_id": CANCEL_BUTTON}


def render_outcome(outcome: CommandOutcome) -> str:
    """Message posted in the thread once a command has run."""
    prefix = "⚠️ *[WRITE]*" if outcome.is_write else "✅"
    return f"{prefix} *Command:* `{outcome.command}`\n\n```\n{outcome.output}\n```"
