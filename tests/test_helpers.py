import os
import re

import pytest

from slothgen.helpers import discover_slo_manifests, split_yaml


def test_split_yaml_multiple_documents():
    data = b"a: 1\n---\nb: 2\n---\nc: 3\n"
    assert split_yaml(data) == ["a: 1", "b: 2", "c: 3"]


def test_split_yaml_removes_comments_and_empty_documents():
    data = "# header comment\n---\na: 1\n# inner\n---\n\n---\nb: 2\n"
    assert split_yaml(data) == ["a: 1", "b: 2"]


def test_split_yaml_empty_input():
    assert split_yaml(b"   \n\n") == []


def test_split_yaml_single_document_unchanged():
    doc = "version: prometheus/v1\nservice: svc"
    assert split_yaml(doc) == [doc]


@pytest.fixture
def slo_tree(tmp_path):
    root = tmp_path / "slos"
    (root / "sub").mkdir(parents=True)
    (root / "ignore").mkdir()
    for rel in ("a.yaml", "b.YML", "c.txt", "sub/d.yaml", "ignore/e.yaml"):
        (root / rel).write_text("x: 1\n")
    return str(root)


def test_discover_walk_order_and_extensions(slo_tree):
    got = discover_slo_manifests(slo_tree)
    expected = [
        os.path.join(slo_tree, "a.yaml"),
        os.path.join(slo_tree, "b.YML"),
        os.path.join(slo_tree, "ignore", "e.yaml"),
        os.path.join(slo_tree, "sub", "d.yaml"),
    ]
    assert got == expected


def test_discover_exclude(slo_tree):
    got = discover_slo_manifests(slo_tree, exclude="ignore")
    assert os.path.join(slo_tree, "ignore", "e.yaml") not in got
    assert len(got) == 3


def test_discover_include(slo_tree):
    got = discover_slo_manifests(slo_tree, include=re.compile("sub"))
    assert got == [os.path.join(slo_tree, "sub", "d.yaml")]


def test_discover_exclude_has_preference(slo_tree):
    assert discover_slo_manifests(slo_tree, exclude="sub", include="sub") == []


def test_discover_single_file(slo_tree):
    path = os.path.join(slo_tree, "a.yaml")
    assert discover_slo_manifests(path) == [path]


def test_discover_missing_path(tmp_path):
    with pytest.raises(OSError, match="could not find files recursively"):
        discover_slo_manifests(tmp_path / "missing")