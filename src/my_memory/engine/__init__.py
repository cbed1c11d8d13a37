"""Query/mutation engine for my-memory.

- KnowledgeEngine: create, list, update and delete across entities,
  observations and relations
- SummaryService: entity digests and importance search
- Error taxonomy raised by both

Example:
    >>> from my_memory.engine import KnowledgeEngine, SummaryService
    >>> engine = KnowledgeEngine(store)
    >>> ada = engine.create_entity(type="Person", name="Ada")
    >>> print(SummaryService(engine).summarize(ada.id))
"""

from my_memory.engine.errors import (
    DataCorruptionError,
    KnowledgeError,
    NoFieldsError,
    NoSelectorError,
    NotFoundError,
    ValidationError,
)
from my_memory.engine.knowledge_engine import KnowledgeEngine, coerce_kind, generate_id
from my_memory.engine.summary import SummaryService, render_summary

__all__ = [
    "KnowledgeEngine",
    "SummaryService",
    "render_summary",
    "coerce_kind",
    "generate_id",
    # Errors
    "KnowledgeError",
    "ValidationError",
    "NotFoundError",
    "NoFieldsError",
    "NoSelectorError",
    "DataCorruptionError",
]
