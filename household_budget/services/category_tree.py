"""
Category Tree Service

Builds the category hierarchy shown by the category manager and the budget
table out of the flat rows the store returns.

Nodes live in an arena keyed by category id and child lists hold ids, so a
category that both has a parent and is a parent exists exactly once. Every
builder places each node in a single pass: malformed input (dangling parents,
parent cycles) yields an odd but finite forest instead of an error.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union
from uuid import UUID

from household_budget.models.budget import BudgetWithCategory
from household_budget.logging_config import get_logger

logger = get_logger(__name__)

NodeId = Union[UUID, str]


class CategoryNode(BaseModel):
    id: NodeId
    name: str = ""
    parent_id: Optional[NodeId] = None
    children: List[NodeId] = Field(default_factory=list)
    budgets: List[BudgetWithCategory] = Field(default_factory=list)
    # True when the node was made up from join metadata rather than a category row
    synthesized: bool = False


def _field(record: Any, name: str, default: Any = None) -> Any:
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


class CategoryForest:
    """Arena of category nodes plus the ordered list of root ids."""

    def __init__(self):
        self.nodes: Dict[NodeId, CategoryNode] = {}
        self.root_ids: List[NodeId] = []

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: NodeId) -> bool:
        return node_id in self.nodes

    def add(self, node: CategoryNode) -> CategoryNode:
        self.nodes[node.id] = node
        return node

    def get(self, node_id: NodeId) -> Optional[CategoryNode]:
        return self.nodes.get(node_id)

    def roots(self) -> List[CategoryNode]:
        return [self.nodes[node_id] for node_id in self.root_ids]

    def children_of(self, node_id: NodeId) -> List[CategoryNode]:
        return [self.nodes[child_id] for child_id in self.nodes[node_id].children]

    def place(self) -> None:
        """
        Attach every node to its parent, in arena insertion order.

        A node without a parent, or whose parent is not in the arena, becomes a root.
        """
        for node in self.nodes.values():
            parent = self.nodes.get(node.parent_id) if node.parent_id is not None else None
            if parent is None:
                if node.parent_id is not None:
                    logger.debug(f"Category {node.id} references missing parent {node.parent_id}; treating as root")
                self.root_ids.append(node.id)
            else:
                parent.children.append(node.id)

    def walk(self) -> Iterator[Tuple[int, CategoryNode]]:
        """Depth-first (depth, node) pairs starting at the roots; each node is visited once."""
        visited = set()
        stack = [(0, node_id) for node_id in reversed(self.root_ids)]
        while stack:
            depth, node_id = stack.pop()
            if node_id in visited:
                continue
            visited.add(node_id)
            node = self.nodes[node_id]
            yield depth, node
            stack.extend((depth + 1, child_id) for child_id in reversed(node.children))

    def nest(self) -> List[Dict[str, Any]]:
        """Materialize the forest as nested dicts (``children`` holds dicts, not ids)."""
        nested: Dict[NodeId, Dict[str, Any]] = {}
        roots = []
        for depth, node in self.walk():
            data = node.model_dump(exclude={"children", "budgets"})
            data["budgets"] = list(node.budgets)
            data["children"] = []
            nested[node.id] = data
            if depth == 0:
                roots.append(data)
            else:
                nested[node.parent_id]["children"].append(data)
        return roots


class BudgetForest(CategoryForest):
    """Category forest whose nodes carry budgets, plus budgets with no category."""

    def __init__(self):
        super().__init__()
        self.uncategorized: List[BudgetWithCategory] = []


def build_category_tree(categories: Iterable[Any]) -> CategoryForest:
    """
    Build the category forest from a flat category list.

    Accepts ORM rows, Pydantic models or dicts with ``id``, ``parent_id`` and
    optionally ``name``. Children keep the input order.
    """
    forest = CategoryForest()
    for category in categories:
        forest.add(CategoryNode(
            id=_field(category, "id"),
            name=_field(category, "name") or "",
            parent_id=_field(category, "parent_id"),
        ))
    forest.place()
    return forest


def group_budgets_by_category(
    budgets: Iterable[Any],
    categories: Optional[Iterable[Any]] = None,
) -> BudgetForest:
    """
    Group budgets under their category, threading in parent categories.

    Each category id gets one node holding all of its budgets. When a budget's
    category has a parent with no node yet, the parent is taken from
    ``categories`` if given, otherwise a placeholder node is synthesized from
    the join metadata. A placeholder is replaced in place once a budget for that
    category shows up with its own category record.
    """
    known = {_field(c, "id"): c for c in categories} if categories is not None else {}
    forest = BudgetForest()

    for raw in budgets:
        budget = raw if isinstance(raw, BudgetWithCategory) else BudgetWithCategory.model_validate(raw)
        category = budget.category
        if category is None:
            forest.uncategorized.append(budget)
            continue

        parent = category.parent
        parent_id = parent.id if parent is not None else None

        node = forest.get(category.id)
        if node is None:
            node = forest.add(CategoryNode(id=category.id, name=category.name, parent_id=parent_id))
        elif node.synthesized:
            node.name = category.name
            node.parent_id = parent_id
            node.synthesized = False
        node.budgets.append(budget)

        if parent is not None and parent.id not in forest:
            real = known.get(parent.id)
            if real is not None:
                forest.add(CategoryNode(
                    id=parent.id,
                    name=_field(real, "name") or parent.name,
                    parent_id=_field(real, "parent_id"),
                ))
            else:
                forest.add(CategoryNode(id=parent.id, name=parent.name, synthesized=True))

    forest.place()
    return forest
