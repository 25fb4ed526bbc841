import re

import pytest

from slothgen.helpers import discover_slo_manifests, split_yaml


def test_split_yaml_splits_documents():
    assert split_yaml("a: 1\n---\nb: 2\n") == ["a: 1", "b: 2"]


def test_split_yaml_accepts_bytes():
    text = "a: 1\n---\nb: 2\n"
    assert split_yaml(text.encode()) == split_yaml(text)


def test_split_yaml_drops_comments_and_empty_documents():
    data = "# header\n---\na: 1\n---\n# only a comment\n---\n\n---\nb: 2\n"
    assert split_yaml(data) == ["a: 1", "b: 2"]


def test_split_yaml_keeps_indented_comments():
    assert split_yaml("a: 1\n  # indented") == ["a: 1\n  # indented"]


def test_split_yaml_empty_input():
    assert split_yaml("   \n\n") == []


@pytest.fixture
def tree(tmp_path):
    (tmp_path / "a.yaml").write_text("a: 1")
    (tmp_path / "b.yml").write_text("b: 1")
    (tmp_path / "c.txt").write_text("c")
    (tmp_path / "skipme").mkdir()
    (tmp_path / "skipme" / "e.yaml").write_text("e: 1")
    (tmp_path / "zone").mkdir()
    (tmp_path / "zone" / "d.YAML").write_text("d: 1")
    return tmp_path


def test_discovery_finds_yaml_files_in_lexical_order(tree):
    assert discover_slo_manifests(tree) == [
        str(tree / "a.yaml"),
        str(tree / "b.yml"),
        str(tree / "skipme" / "e.yaml"),
        str(tree / "zone" / "d.YAML"),
    ]


def test_discovery_exclude(tree):
    found = discover_slo_manifests(tree, exclude=re.compile("skipme"))
    assert str(tree / "skipme" / "e.yaml") not in found
    assert len(found) == 3


def test_discovery_include(tree):
    assert discover_slo_manifests(tree, include="zone") == [str(tree / "zone" / "d.YAML")]


def test_discovery_exclude_has_preference(tree):
    assert discover_slo_manifests(tree, exclude="skipme", include="skipme") == []


def test_discovery_of_single_file(tree):
    target = str(tree / "a.yaml")
    assert discover_slo_manifests(target) == [target]


def test_discovery_of_missing_path(tmp_path):
    with pytest.raises(OSError):
        discover_slo_manifests(tmp_path / "missing")