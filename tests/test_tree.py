"""Tests for the FamilyTree facade."""

from datetime import date

import pytest

from kinship import FamilyTree, RelationKind, RelationshipLabel as Label
from kinship.errors import (
    CycleDetected,
    InvalidSelfRelation,
    KinshipError,
    NotFound,
    UnknownRelationKind,
)
from kinship.settings import Settings, ValidationSettings


class TestMutations:
    def test_create_and_list(self, tree):
        ann = tree.create_person("Ann", summary="Keeps bees")
        bob = tree.create_person("Bob")
        assert [p.id for p in tree.list_people()] == [ann.id, bob.id]
        assert tree.get_person(ann.id).summary == "Keeps bees"

    def test_update_person(self, tree):
        ann = tree.create_person("Ann")
        tree.update_person(ann.id, birth_date=date(1950, 1, 2), location="York")
        assert tree.get_person(ann.id).birth_date == date(1950, 1, 2)
        assert tree.get_person(ann.id).location == "York"

    def test_delete_person(self, family):
        family.tree.delete_person(family.C)
        with pytest.raises(NotFound):
            family.tree.get_person(family.C)
        assert all(not r.involves(family.C) for r in family.tree.list_relations())

    def test_create_relation_accepts_strings(self, tree):
        a, b = tree.create_person("A").id, tree.create_person("B").id
        rel = tree.create_relation(a, b, " Parent ")
        assert rel.kind is RelationKind.PARENT

    def test_unknown_kind_checked_first(self, tree):
        a = tree.create_person("A").id
        with pytest.raises(UnknownRelationKind):
            tree.create_relation(a, a, "friend")

    def test_self_relation_before_lookup(self, tree):
        with pytest.raises(InvalidSelfRelation):
            tree.create_relation("ghost", "ghost", "spouse")

    def test_errors_share_a_base(self, tree):
        a = tree.create_person("A").id
        with pytest.raises(KinshipError):
            tree.add_spouse(a, "ghost")

    def test_update_relation(self, family):
        tree = family.tree
        rel = next(
            r for r in tree.list_relations() if r.kind is RelationKind.SIBLING
        )
        tree.update_relation(rel.id, kind="spouse")
        assert tree.get_derived_relationship(family.C, family.E).label is Label.SPOUSE
        assert tree.get_derived_relationship(family.D, family.E).label is not Label.NIECE_NEPHEW

    def test_update_relation_self(self, family):
        rel = family.tree.get_relations_for(family.D)[0]
        with pytest.raises(InvalidSelfRelation):
            family.tree.update_relation(rel.id, a=family.D, b=family.D)

    def test_rejected_update_changes_nothing(self, family):
        tree = family.tree
        rel = tree.get_relations_for(family.A)[0]
        before = tree.list_relations()
        with pytest.raises(CycleDetected):
            tree.update_relation(rel.id, a=family.D, b=family.B)
        assert tree.list_relations() == before
        assert tree.get_derived_relationship(family.A, family.D).label is Label.GRANDPARENT

    def test_delete_unknown_relation(self, tree):
        with pytest.raises(NotFound):
            tree.delete_relation("missing")


class TestAddRelative:
    """Creating a person together with its relation."""

    @pytest.mark.parametrize(
        "role, expected",
        [
            ("parent", Label.PARENT),
            ("child", Label.CHILD),
            ("Spouse", Label.SPOUSE),
            (RelationKind.SIBLING, Label.SIBLING),
        ],
    )
    def test_roles(self, tree, role, expected):
        ann = tree.create_person("Ann").id
        relative, relation = tree.add_relative(ann, role, "Rel")
        assert relation.involves(ann) and relation.involves(relative.id)
        assert tree.get_derived_relationship(relative.id, ann).label is expected

    def test_child_stored_as_parent_edge(self, tree):
        ann = tree.create_person("Ann").id
        kid, relation = tree.add_relative(ann, "child", birth_date=date(1990, 1, 1))
        assert (relation.a, relation.b, relation.kind) == (ann, kid.id, RelationKind.PARENT)
        assert kid.name == "New child"
        assert kid.birth_date == date(1990, 1, 1)

    def test_unknown_person_creates_nobody(self, tree):
        with pytest.raises(NotFound):
            tree.add_relative("ghost", "spouse", "Rel")
        assert tree.list_people() == []

    def test_unknown_role_creates_nobody(self, tree):
        ann = tree.create_person("Ann").id
        with pytest.raises(UnknownRelationKind):
            tree.add_relative(ann, "cousin", "Rel")
        assert [p.id for p in tree.list_people()] == [ann]

    def test_refused_relation_leaves_no_orphan(self, tree, monkeypatch):
        ann = tree.create_person("Ann").id

        def refuse(a, b, kind):
            raise CycleDetected(a, b)

        monkeypatch.setattr(tree.store, "add_relation", refuse)
        with pytest.raises(CycleDetected):
            tree.add_relative(ann, "parent", "Rel")
        assert [p.id for p in tree.list_people()] == [ann]
        assert tree.get_layout().keys() == {ann}


class TestSearch:
    def test_case_insensitive_substring(self, tree):
        tree.create_person("Mary Smith")
        tree.create_person("John Smithson")
        tree.create_person("Ann Jones")
        names = [r.person.name for r in tree.search_people("  SMITH ")]
        assert names == ["Mary Smith", "John Smithson"]

    def test_no_match(self, tree):
        tree.create_person("Ann")
        assert tree.search_people("zed") == []

    def test_annotated_with_focus(self, family):
        results = family.tree.search_people("D", focus_id=family.A)
        assert len(results) == 1
        assert results[0].label is Label.GRANDPARENT
        assert results[0].distance == 2

    def test_without_focus_no_label(self, family):
        result = family.tree.search_people("A")[0]
        assert result.label is None
        assert result.distance is None


class TestValidate:
    def test_child_born_before_parent(self, tree):
        mum = tree.create_person("Mum", birth_date=date(1950, 5, 1)).id
        kid = tree.create_person("Kid", birth_date=date(1940, 1, 1)).id
        tree.add_parent(mum, kid)
        assert tree.validate() == ["Impossible: Kid born before parent Mum"]

    def test_young_parent(self, tree):
        mum = tree.create_person("Mum", birth_date=date(1950, 5, 1)).id
        kid = tree.create_person("Kid", birth_date=date(1960, 5, 1)).id
        tree.add_parent(mum, kid)
        assert tree.validate() == [
            "Suspicious: Mum was less than 12 years old when Kid was born"
        ]

    def test_configured_minimum_age(self):
        tree = FamilyTree(Settings(validation=ValidationSettings(min_parent_age=8)))
        mum = tree.create_person("Mum", birth_date=date(1950, 5, 1)).id
        kid = tree.create_person("Kid", birth_date=date(1960, 5, 1)).id
        tree.add_parent(mum, kid)
        assert tree.validate() == []

    def test_missing_dates_skipped(self, family):
        assert family.tree.validate() == []
