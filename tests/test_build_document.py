"""Tests for folding patch sequences into a document."""

import pytest

from src.core.errors import InvalidPatchPath
from src.document import Document, build_document


def test_builds_document_from_patches() -> None:
    result = build_document([
        {"op": "replace", "path": "/root", "value": "card1"},
        {"op": "add", "path": "/elements/card1", "value": {"type": "Card", "props": {"title": "Hello"}}},
    ])
    assert result.root == "card1"
    assert result.elements["card1"] == {"type": "Card", "props": {"title": "Hello"}}


def test_infers_root_from_first_element() -> None:
    result = build_document([{"op": "add", "path": "/elements/card1", "value": {"type": "Card", "props": {}}}])
    assert result.root == "card1"


def test_infers_first_direct_element_in_patch_order() -> None:
    result = build_document([
        {"op": "add", "path": "/state/x", "value": 1},
        {"op": "replace", "path": "/elements/first", "value": {"type": "A"}},
        {"op": "add", "path": "/elements/second", "value": {"type": "B"}},
    ])
    assert result.root == "first"


def test_only_direct_add_or_replace_infers_root() -> None:
    result = build_document([
        {"op": "add", "path": "/state/template", "value": {"type": "Text"}},
        {"op": "copy", "from": "/state/template", "path": "/elements/t1"},
        {"op": "replace", "path": "/elements/t1/type", "value": "Heading"},
    ])
    assert result.elements == {"t1": {"type": "Heading"}}
    assert result.root == ""


def test_explicit_root_wins_over_inference() -> None:
    result = build_document([
        {"op": "add", "path": "/elements/child", "value": {"type": "Text"}},
        {"op": "add", "path": "/elements/page", "value": {"type": "Page", "children": ["child"]}},
        {"op": "add", "path": "/root", "value": "page"},
    ])
    assert result.root == "page"


def test_empty_patch_list_returns_empty_document() -> None:
    result = build_document([])
    assert result == Document.empty()
    assert result.root == ""
    assert result.elements == {}
    assert not result.has_state


def test_builds_repeat_state_and_path_references() -> None:
    result = build_document([
        {"op": "add", "path": "/root", "value": "list"},
        {
            "op": "add",
            "path": "/elements/list",
            "value": {
                "type": "Stack",
                "props": {},
                "repeat": {"path": "/items", "key": "id"},
                "children": ["item-card"],
            },
        },
        {
            "op": "add",
            "path": "/elements/item-card",
            "value": {"type": "Card", "props": {"title": {"$path": "$item/name"}}, "children": []},
        },
        {"op": "add", "path": "/state/items", "value": []},
        {"op": "add", "path": "/state/items/0", "value": {"id": "a", "name": "First"}},
        {"op": "add", "path": "/state/items/1", "value": {"id": "b", "name": "Second"}},
    ])

    assert result.root == "list"
    assert result.elements["list"]["repeat"] == {"path": "/items", "key": "id"}
    assert result.elements["item-card"]["props"] == {"title": {"$path": "$item/name"}}
    assert result.state == {"items": [{"id": "a", "name": "First"}, {"id": "b", "name": "Second"}]}


def test_invalid_patch_aborts_build() -> None:
    with pytest.raises(InvalidPatchPath):
        build_document([{"op": "add", "path": "/elements", "value": {}}])


def test_non_object_patch_is_invalid() -> None:
    with pytest.raises(InvalidPatchPath):
        build_document(["not a patch"])
