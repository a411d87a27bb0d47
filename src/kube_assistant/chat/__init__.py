from .handlers import SlackHandlers, tools_footer
from .history import ConversationHistoryBuilder, clean_text, messages_to_turns

__all__ = ["SlackHandlers", "tools_footer", "ConversationHistoryBuilder", "clean_text", "messages_to_turns"]
