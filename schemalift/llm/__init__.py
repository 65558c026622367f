"""Language-model collaborators: fact surfacing and semantic mapping."""

from schemalift.llm.client import get_chat_model
from schemalift.llm.mapping import build_prompt, map_entities
from schemalift.llm.visibility import surface_facts

__all__ = ["get_chat_model", "build_prompt", "map_entities", "surface_facts"]
