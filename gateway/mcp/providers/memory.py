"""
In-process knowledge store exposed as tools.

Memories are typed notes (project, issue, todo, ...) that can be linked by
relationships. State lives in this provider and is guarded by its own lock;
the registry and dispatcher never see it.
"""

import asyncio
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

import structlog

from ..errors import HandlerFailureError
from ..registry import ToolHandler
from ..tool import ToolAnnotation
from .base import Provider, ToolListing

logger = structlog.get_logger(__name__)

MEMORY_TYPES = ["project", "issue", "system", "config", "finance", "todo", "knowledge", "custom"]

RELATION_TYPES = ["RELATED_TO", "PART_OF", "DEPENDS_ON", "BLOCKS", "SUPERSEDES", "REFERENCES"]


@dataclass
class Memory:
    id: str
    memory_type: str
    title: str
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    tags: List[str] = field(default_factory=list)
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


@dataclass
class Relationship:
    id: str
    from_id: str
    to_id: str
    relation_type: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class MemoryProvider(Provider):
    """Tools over an in-process memory graph."""

    name = "memory"

    def __init__(self) -> None:
        self._memories: Dict[str, Memory] = {}
        self._relationships: List[Relationship] = []
        self._lock = asyncio.Lock()
        self._handlers: Dict[str, ToolHandler] = {
            "create_memory": self.create_memory,
            "get_memory": self.get_memory,
            "search_memories": self.search_memories,
            "delete_memory": self.delete_memory,
            "create_relationship": self.create_relationship,
            "get_related_memories": self.get_related_memories,
        }

    def get_tools(self) -> List[ToolListing]:
        return [
            (
                "create_memory",
                "Create a new memory in the knowledge graph",
                {
                    "type": "object",
                    "required": ["memory_type", "title", "content"],
                    "properties": {
                        "memory_type": {
                            "type": "string",
                            "enum": MEMORY_TYPES,
                            "description": "Type of memory",
                        },
                        "title": {"type": "string", "description": "Title or name of the memory"},
                        "content": {"type": "string", "description": "Content of the memory"},
                        "tags": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Free-form labels",
                        },
                        "metadata": {
                            "type": "object",
                            "description": "Additional metadata as key-value pairs",
                        },
                    },
                },
            ),
            (
                "get_memory",
                "Get a memory by ID",
                {
                    "type": "object",
                    "required": ["id"],
                    "properties": {"id": {"type": "string", "description": "Memory ID"}},
                },
            ),
            (
                "search_memories",
                "Search for memories by type, keyword or tag",
                {
                    "type": "object",
                    "properties": {
                        "memory_type": {
                            "type": "string",
                            "enum": MEMORY_TYPES,
                            "description": "Type of memory to filter by",
                        },
                        "keyword": {
                            "type": "string",
                            "description": "Keyword to search within title and content",
                        },
                        "tag": {"type": "string", "description": "Tag the memory must carry"},
                        "limit": {
                            "type": "integer",
                            "default": 10,
                            "minimum": 1,
                            "description": "Maximum number of results to return",
                        },
                    },
                },
            ),
            (
                "delete_memory",
                "Delete a memory and its relationships",
                {
                    "type": "object",
                    "required": ["id"],
                    "properties": {"id": {"type": "string", "description": "Memory ID"}},
                },
            ),
            (
                "create_relationship",
                "Create a relationship between two memories",
                {
                    "type": "object",
                    "required": ["from_id", "to_id", "relation_type"],
                    "properties": {
                        "from_id": {"type": "string", "description": "Source memory ID"},
                        "to_id": {"type": "string", "description": "Target memory ID"},
                        "relation_type": {
                            "type": "string",
                            "enum": RELATION_TYPES,
                            "description": "Relationship type",
                        },
                        "metadata": {
                            "type": "object",
                            "description": "Additional metadata as key-value pairs",
                        },
                    },
                },
            ),
            (
                "get_related_memories",
                "Get all memories related to a specific memory",
                {
                    "type": "object",
                    "required": ["memory_id"],
                    "properties": {
                        "memory_id": {
                            "type": "string",
                            "description": "Memory ID to find related memories for",
                        }
                    },
                },
            ),
        ]

    def get_handler(self, tool_name: str) -> ToolHandler:
        return self._handlers[tool_name]

    def get_annotations(self, tool_name: str) -> Optional[ToolAnnotation]:
        if tool_name in ("get_memory", "search_memories", "get_related_memories"):
            return ToolAnnotation.read_only_tool(resource_types=["memory"])
        if tool_name == "delete_memory":
            return ToolAnnotation(destructive=True, requires_confirmation=True, resource_types=["memory"])
        return ToolAnnotation(resource_types=["memory"])

    async def create_memory(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        memory = Memory(
            id=str(uuid4()),
            memory_type=arguments["memory_type"],
            title=arguments["title"],
            content=arguments["content"],
            metadata=arguments.get("metadata", {}),
            tags=arguments.get("tags", []),
        )
        async with self._lock:
            self._memories[memory.id] = memory
        logger.info("Memory created", memory_id=memory.id, memory_type=memory.memory_type)
        return {"id": memory.id}

    async def get_memory(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        async with self._lock:
            return asdict(self._require(arguments["id"]))

    async def search_memories(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        memory_type = arguments.get("memory_type")
        keyword = arguments.get("keyword", "").lower()
        tag = arguments.get("tag")
        limit = arguments["limit"]
        if limit < 1:
            raise HandlerFailureError("limit must be at least 1")

        async with self._lock:
            matches = [
                asdict(memory)
                for memory in self._memories.values()
                if (memory_type is None or memory.memory_type == memory_type)
                and (tag is None or tag in memory.tags)
                and (keyword in memory.title.lower() or keyword in memory.content.lower())
            ]
        return {"memories": matches[:limit], "total": len(matches)}

    async def delete_memory(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        memory_id = arguments["id"]
        async with self._lock:
            self._require(memory_id)
            del self._memories[memory_id]
            self._relationships = [
                rel
                for rel in self._relationships
                if memory_id not in (rel.from_id, rel.to_id)
            ]
        logger.info("Memory deleted", memory_id=memory_id)
        return {"deleted": memory_id}

    async def create_relationship(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        async with self._lock:
            self._require(arguments["from_id"])
            self._require(arguments["to_id"])
            relationship = Relationship(
                id=str(uuid4()),
                from_id=arguments["from_id"],
                to_id=arguments["to_id"],
                relation_type=arguments["relation_type"],
                metadata=arguments.get("metadata", {}),
            )
            self._relationships.append(relationship)
        return {"id": relationship.id}

    async def get_related_memories(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        memory_id = arguments["memory_id"]
        async with self._lock:
            self._require(memory_id)
            related_ids = []
            for rel in self._relationships:
                if rel.from_id == memory_id:
                    related_ids.append(rel.to_id)
                elif rel.to_id == memory_id:
                    related_ids.append(rel.from_id)
            related = [asdict(self._memories[rid]) for rid in dict.fromkeys(related_ids)]
        return {"memories": related}

    def _require(self, memory_id: str) -> Memory:
        memory = self._memories.get(memory_id)
        if memory is None:
            raise HandlerFailureError(f"Memory not found: {memory_id}", details={"memory_id": memory_id})
        return memory
