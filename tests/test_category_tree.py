"""
Tests for the category tree and budget grouping builders.

Inputs are plain dicts shaped like the rows the store returns; the builders
never touch the database.
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from household_budget.models.budget import BudgetWithCategory
from household_budget.services.category_tree import (
    CategoryForest,
    build_category_tree,
    group_budgets_by_category,
)


def ids(nodes):
    return [node.id for node in nodes]


def budget_row(category=None, amount="100.00", period="monthly"):
    return {"id": uuid4(), "period": period, "amount": Decimal(amount), "category": category}


class TestBuildCategoryTree:
    """Flat categories -> roots with their direct children."""

    def test_roots_and_children_in_input_order(self):
        forest = build_category_tree([
            {"id": "a", "parent_id": None},
            {"id": "b", "parent_id": "a"},
            {"id": "c", "parent_id": None},
        ])

        assert ids(forest.roots()) == ["a", "c"]
        assert ids(forest.children_of("a")) == ["b"]
        assert forest.children_of("c") == []

    def test_children_keep_input_order(self):
        forest = build_category_tree([
            {"id": "food", "parent_id": None, "name": "Food"},
            {"id": "restaurants", "parent_id": "food", "name": "Restaurants"},
            {"id": "groceries", "parent_id": "food", "name": "Groceries"},
            {"id": "coffee", "parent_id": "food", "name": "Coffee"},
        ])

        assert ids(forest.children_of("food")) == ["restaurants", "groceries", "coffee"]
        assert forest.get("groceries").name == "Groceries"

    def test_child_listed_before_parent_is_still_attached(self):
        forest = build_category_tree([
            {"id": "b", "parent_id": "a"},
            {"id": "a", "parent_id": None},
        ])

        assert ids(forest.roots()) == ["a"]
        assert ids(forest.children_of("a")) == ["b"]

    def test_dangling_parent_becomes_root(self):
        forest = build_category_tree([{"id": "x", "parent_id": "missing"}])

        assert ids(forest.roots()) == ["x"]
        assert len(forest) == 1

    def test_cycle_terminates_with_deterministic_placement(self):
        forest = build_category_tree([
            {"id": "p", "parent_id": "q"},
            {"id": "q", "parent_id": "p"},
        ])

        # Each node placed exactly once, under the other; nothing is a root
        assert forest.roots() == []
        assert ids(forest.children_of("q")) == ["p"]
        assert ids(forest.children_of("p")) == ["q"]
        assert list(forest.walk()) == []
        assert forest.nest() == []

    def test_self_parent_terminates(self):
        forest = build_category_tree([{"id": "s", "parent_id": "s"}])

        assert forest.roots() == []
        assert ids(forest.children_of("s")) == ["s"]
        assert forest.nest() == []

    def test_duplicate_ids_are_placed_once(self):
        forest = build_category_tree([
            {"id": "a", "parent_id": None, "name": "first"},
            {"id": "a", "parent_id": None, "name": "second"},
        ])

        assert ids(forest.roots()) == ["a"]
        assert forest.get("a").name == "second"

    def test_deeper_nesting_is_kept(self):
        forest = build_category_tree([
            {"id": "a", "parent_id": None},
            {"id": "b", "parent_id": "a"},
            {"id": "c", "parent_id": "b"},
        ])

        assert [(depth, node.id) for depth, node in forest.walk()] == [(0, "a"), (1, "b"), (2, "c")]

    def test_nest_materializes_children(self):
        forest = build_category_tree([
            {"id": "a", "parent_id": None, "name": "A"},
            {"id": "b", "parent_id": "a", "name": "B"},
            {"id": "c", "parent_id": None, "name": "C"},
        ])

        nested = forest.nest()

        assert [n["id"] for n in nested] == ["a", "c"]
        assert [n["name"] for n in nested[0]["children"]] == ["B"]
        assert nested[0]["children"][0]["children"] == []
        assert nested[1]["children"] == []

    def test_accepts_objects(self):
        class Row:
            def __init__(self, id, parent_id, name):
                self.id, self.parent_id, self.name = id, parent_id, name

        forest = build_category_tree([Row("a", None, "A"), Row("b", "a", "B")])

        assert ids(forest.roots()) == ["a"]
        assert forest.get("b").name == "B"

    def test_empty_input(self):
        forest = build_category_tree([])

        assert isinstance(forest, CategoryForest)
        assert len(forest) == 0
        assert forest.nest() == []


class TestGroupBudgetsByCategory:
    """Flat budgets-with-category -> category nodes carrying budgets."""

    def test_budgets_of_same_category_share_one_node(self):
        groceries = {"id": uuid4(), "name": "Groceries", "parent": None}
        first = budget_row(groceries, "200.00")
        second = budget_row(groceries, "50.00", period="weekly")

        forest = group_budgets_by_category([first, second])

        assert len(forest) == 1
        node = forest.get(groceries["id"])
        assert [b.id for b in node.budgets] == [first["id"], second["id"]]
        assert ids(forest.roots()) == [groceries["id"]]

    def test_parent_placeholder_is_synthesized(self):
        food = {"id": uuid4(), "name": "Food"}
        groceries = {"id": uuid4(), "name": "Groceries", "parent": food}

        forest = group_budgets_by_category([budget_row(groceries)])

        parent = forest.get(food["id"])
        assert parent.synthesized is True
        assert parent.name == "Food"
        assert parent.budgets == []
        assert ids(forest.roots()) == [food["id"]]
        assert ids(forest.children_of(food["id"])) == [groceries["id"]]

    def test_placeholder_upgraded_when_its_own_budget_arrives(self):
        household = {"id": uuid4(), "name": "Household"}
        food = {"id": uuid4(), "name": "Food", "parent": household}
        groceries = {"id": uuid4(), "name": "Groceries", "parent": {"id": food["id"], "name": "Food"}}

        forest = group_budgets_by_category([budget_row(groceries), budget_row(food)])

        node = forest.get(food["id"])
        assert node.synthesized is False
        assert node.parent_id == household["id"]
        assert len(node.budgets) == 1
        assert ids(forest.roots()) == [household["id"]]
        assert ids(forest.children_of(household["id"])) == [food["id"]]
        assert ids(forest.children_of(food["id"])) == [groceries["id"]]

    def test_known_categories_replace_placeholders(self):
        food_id = uuid4()
        groceries = {"id": uuid4(), "name": "Groceries", "parent": {"id": food_id, "name": "Food"}}
        categories = [{"id": food_id, "name": "Food & Drink", "parent_id": None}]

        forest = group_budgets_by_category([budget_row(groceries)], categories=categories)

        parent = forest.get(food_id)
        assert parent.synthesized is False
        assert parent.name == "Food & Drink"

    def test_budgets_without_category_are_uncategorized(self):
        loose = budget_row(None, "3000.00")
        rent = {"id": uuid4(), "name": "Rent", "parent": None}

        forest = group_budgets_by_category([loose, budget_row(rent)])

        assert [b.id for b in forest.uncategorized] == [loose["id"]]
        assert ids(forest.roots()) == [rent["id"]]

    def test_single_element_join_lists_are_normalized(self):
        food = {"id": uuid4(), "name": "Food"}
        groceries = {"id": uuid4(), "name": "Groceries", "parent": [food]}
        row = budget_row([groceries])

        forest = group_budgets_by_category([row])

        assert ids(forest.children_of(food["id"])) == [groceries["id"]]

    def test_accepts_validated_models(self):
        rent = {"id": uuid4(), "name": "Rent", "parent": None}
        budget = BudgetWithCategory.model_validate(budget_row(rent))

        forest = group_budgets_by_category([budget])

        assert forest.get(rent["id"]).budgets == [budget]

    def test_nest_carries_budgets(self):
        food = {"id": uuid4(), "name": "Food"}
        groceries = {"id": uuid4(), "name": "Groceries", "parent": food}
        row = budget_row(groceries)

        nested = group_budgets_by_category([row]).nest()

        assert nested[0]["id"] == food["id"]
        assert nested[0]["synthesized"] is True
        child = nested[0]["children"][0]
        assert [b.id for b in child["budgets"]] == [row["id"]]

    def test_multi_row_join_is_rejected(self):
        a = {"id": uuid4(), "name": "A", "parent": None}
        b = {"id": uuid4(), "name": "B", "parent": None}

        with pytest.raises(ValueError):
            group_budgets_by_category([budget_row([a, b])])
