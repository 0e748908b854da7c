"""
Relations component unit tests.

- Diff planning collapses duplicates and ignores order
- Apply only inserts additions and deletes removals
- Rows to soft-deleted related items are kept
- Validation rejects unknown keys, missing ids and self links
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

import pytest

from src.components.relations import (
    RelationDiff,
    apply_relation_changes,
    plan_relation_changes,
    run_replace_relations,
    validate_relations,
)
from src.core.content_types import ContentTypeSpec, RelationshipConfig, get_content_type

NOW = datetime(2026, 1, 15, 8, 30, tzinfo=UTC)


class MockRelationStore:
    """Junction rows in memory, plus the live ids of each content type."""

    def __init__(self, live: dict[str, set[str]] | None = None) -> None:
        self.live = live or {}
        self.rows: dict[tuple[str, str], set[str]] = {}
        self.added: list[str] = []
        self.removed: list[str] = []

    def existing_ids(self, spec: ContentTypeSpec, ids: Iterable[str]) -> set[str]:
        return set(ids) & self.live.get(spec.name, set())

    def relation_ids(self, config: RelationshipConfig, content_id: str) -> set[str]:
        return set(self.rows.get((config.junction_table, content_id), set()))

    def add_relations(
        self, config: RelationshipConfig, content_id: str, related_ids: Iterable[str], at: datetime
    ) -> None:
        ids = list(related_ids)
        self.added.extend(ids)
        self.rows.setdefault((config.junction_table, content_id), set()).update(ids)

    def remove_relations(
        self, config: RelationshipConfig, content_id: str, related_ids: Iterable[str]
    ) -> None:
        ids = list(related_ids)
        self.removed.extend(ids)
        self.rows[(config.junction_table, content_id)].difference_update(ids)


@pytest.fixture
def case_studies() -> ContentTypeSpec:
    return get_content_type("case_studies")


class TestPlan:
    def test_diff(self) -> None:
        diff = plan_relation_changes(["a", "b"], ["b", "c", "c"])
        assert diff == RelationDiff(to_add=("c",), to_remove=("a",))

    def test_same_set_in_other_order_is_empty(self) -> None:
        assert plan_relation_changes(["a", "b"], ["b", "a", "a"]).is_empty

    def test_empty_desired_removes_all(self) -> None:
        diff = plan_relation_changes(["b", "a"], [])
        assert diff.to_remove == ("a", "b")
        assert diff.to_add == ()


class TestApply:
    def test_ab_then_bc(self, case_studies: ContentTypeSpec) -> None:
        store = MockRelationStore(live={"algorithms": {"A", "B", "C"}})
        config = case_studies.relationship("algorithms")

        apply_relation_changes(store, config, "cs-1", ["A", "B"], NOW)
        diff = apply_relation_changes(store, config, "cs-1", ["B", "C"], NOW)

        assert store.relation_ids(config, "cs-1") == {"B", "C"}
        assert diff.to_add == ("C",)
        assert diff.to_remove == ("A",)
        assert store.added == ["A", "B", "C"]
        assert store.removed == ["A"]

    def test_unchanged_list_writes_nothing(self, case_studies: ContentTypeSpec) -> None:
        store = MockRelationStore(live={"algorithms": {"A"}})
        config = case_studies.relationship("algorithms")
        apply_relation_changes(store, config, "cs-1", ["A"], NOW)
        store.added.clear()

        diff = apply_relation_changes(store, config, "cs-1", ["A"], NOW)

        assert diff.is_empty
        assert store.added == []
        assert store.removed == []

    def test_replace_only_touches_supplied_keys(self, case_studies: ContentTypeSpec) -> None:
        store = MockRelationStore(live={"algorithms": {"A"}, "industries": {"finance"}})
        industries = case_studies.relationship("industries")
        apply_relation_changes(store, industries, "cs-1", ["finance"], NOW)

        applied = run_replace_relations(store, case_studies, "cs-1", {"algorithms": ["A"]}, NOW)

        assert list(applied) == ["algorithms"]
        assert store.relation_ids(industries, "cs-1") == {"finance"}

    def test_rows_to_trashed_items_survive_resave(self, case_studies: ContentTypeSpec) -> None:
        store = MockRelationStore(live={"algorithms": {"A", "B"}})
        config = case_studies.relationship("algorithms")
        apply_relation_changes(store, config, "cs-1", ["A", "B"], NOW)
        store.live["algorithms"].discard("B")

        diff = apply_relation_changes(store, config, "cs-1", ["A"], NOW)

        assert diff.is_empty
        assert store.removed == []
        assert store.relation_ids(config, "cs-1") == {"A", "B"}

    def test_replace_unknown_key_raises(self, case_studies: ContentTypeSpec) -> None:
        with pytest.raises(KeyError):
            run_replace_relations(MockRelationStore(), case_studies, "cs-1", {"nope": []}, NOW)


class TestValidate:
    def test_valid(self, case_studies: ContentTypeSpec) -> None:
        store = MockRelationStore(live={"algorithms": {"A", "B"}})
        assert validate_relations(store, case_studies, {"algorithms": ["A", "B"]}) == []

    def test_missing_ids_listed(self, case_studies: ContentTypeSpec) -> None:
        store = MockRelationStore(live={"algorithms": {"A"}})

        errors = validate_relations(store, case_studies, {"algorithms": ["A", "Z", "Y"]})

        assert len(errors) == 1
        assert errors[0].key == "algorithms"
        assert errors[0].message == "Unknown algorithm id(s): Y, Z"

    def test_unknown_key(self, case_studies: ContentTypeSpec) -> None:
        errors = validate_relations(MockRelationStore(), case_studies, {"widgets": ["x"]})
        assert errors[0].key == "widgets"

    def test_self_relation(self, case_studies: ContentTypeSpec) -> None:
        store = MockRelationStore(live={"case_studies": {"cs-1", "cs-2"}})

        errors = validate_relations(
            store, case_studies, {"related_case_studies": ["cs-1", "cs-2"]}, item_id="cs-1"
        )

        assert [e.message for e in errors] == ["Case Study cannot be related to itself"]

    def test_empty_list_is_valid(self, case_studies: ContentTypeSpec) -> None:
        assert validate_relations(MockRelationStore(), case_studies, {"algorithms": []}) == []
