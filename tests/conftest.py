"""Pytest fixtures for the kinship tests."""

from types import SimpleNamespace

import pytest

from kinship.store import GraphStore
from kinship.tree import FamilyTree


@pytest.fixture
def store():
    """Empty graph store."""
    return GraphStore()


@pytest.fixture
def tree():
    """Empty FamilyTree."""
    return FamilyTree()


@pytest.fixture
def family(tree):
    """
    A and B married, parents of C; C is parent of D.
    E is C's declared sibling and parent of F. G has no relations.
    """
    people = SimpleNamespace(
        **{name: tree.create_person(name).id for name in "ABCDEFG"}
    )
    people.tree = tree
    tree.add_parent(people.A, people.C)
    tree.add_parent(people.B, people.C)
    tree.add_spouse(people.A, people.B)
    tree.add_parent(people.C, people.D)
    tree.add_sibling(people.C, people.E)
    tree.add_parent(people.E, people.F)
    return people


SAMPLE_GEDCOM = """\
0 HEAD
1 SOUR kinship-tests
1 GEDC
2 VERS 5.5.1
2 FORM LINEAGE-LINKED
1 CHAR UTF-8
0 @I1@ INDI
1 NAME Alice /Smith/
1 SEX F
1 BIRT
2 PLAC Leeds
0 @I2@ INDI
1 NAME Bob /Smith/
1 SEX M
0 @I3@ INDI
1 NAME Carol /Smith/
1 SEX F
0 @I4@ INDI
1 NAME Dan /Jones/
0 @I5@ INDI
1 NAME Eve /Jones/
0 @F1@ FAM
1 HUSB @I2@
1 WIFE @I1@
1 CHIL @I3@
0 @F2@ FAM
1 WIFE @I3@
1 CHIL @I2@
0 @F3@ FAM
1 CHIL @I4@
1 CHIL @I5@
0 TRLR
"""


@pytest.fixture
def gedcom_file(tmp_path):
    """
    Bob and Alice married, parents of Carol. A second family claims Carol
    as Bob's mother (a cycle). Dan and Eve are siblings without parents.
    """
    path = tmp_path / "sample.ged"
    path.write_text(SAMPLE_GEDCOM, encoding="utf-8")
    return path
