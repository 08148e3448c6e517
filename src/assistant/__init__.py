"""Retrieval-augmented knowledge assistant.

- KnowledgeAssistant: composition root owning the store lifecycle
- ChatAgent: streaming turn loop with add_resource / get_information tools
"""

from src.assistant.agent import ChatAgent, ToolDispatcher, UIMessage
from src.assistant.bootstrap import KnowledgeAssistant

__all__ = [
    "ChatAgent",
    "KnowledgeAssistant",
    "ToolDispatcher",
    "UIMessage",
]
