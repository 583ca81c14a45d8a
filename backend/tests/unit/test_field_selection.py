"""Unit tests for field selection parsing."""

import pytest

from app.domain.entities import parse_field_selection
from app.domain.entities.field_selection import to_snake


def test_id_is_always_selected_first():
    selection = parse_field_selection(["title", "id", "locationText"])
    assert selection.scalars == ("id", "title", "location_text")


def test_bare_reference_expands_to_all_subfields():
    selection = parse_field_selection(["department"])
    assert selection.references == {"department": ("id", "name", "slug")}


def test_reference_subfields_are_collected():
    selection = parse_field_selection(["creator.name", "creator.email", "creator.name"])
    assert selection.references == {"creator": ("name", "email")}


def test_bare_relation_is_a_count():
    selection = parse_field_selection(["upvotes", "comments"])
    assert selection.relation_counts == ("upvotes", "comments")
    assert selection.relation_lists == {}


def test_loaded_list_replaces_the_count():
    selection = parse_field_selection(["comments", "comments.body", "comments.createdAt"])
    assert selection.relation_counts == ()
    assert selection.relation_lists == {"comments": ("body", "created_at")}


def test_unknown_names_are_all_reported():
    with pytest.raises(ValueError) as exc_info:
        parse_field_selection(["title", "password", "creator.ssn", "comments.secret"])
    assert str(exc_info.value) == "password, creator.ssn, comments.secret"


@pytest.mark.parametrize(
    ("name", "expected"),
    [("locationText", "location_text"), ("slaDueAt", "sla_due_at"), ("status", "status")],
)
def test_to_snake(name, expected):
    assert to_snake(name) == expected
