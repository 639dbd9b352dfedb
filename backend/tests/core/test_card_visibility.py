"""Card Visibility - verifies questionnaire answer handling and conditional sets.

Tests cover:
    - normalize_answer accepts null, blanks, numeric strings and configured values
    - Invalid answers raise ValidationError
    - enabled_sets resolves option values to show groups
    - visible important titles hide disabled conditional sets
"""

from types import SimpleNamespace

import pytest

from projectcreator.core.card_visibility import (
    FIELD_AVP_LOCATION, FIELD_BUILDING_TYPE, FIELD_OBJECT_OWNERSHIP, FIELDS,
    enabled_sets, enabled_sets_for_project, extract_answers, normalize_answer, resolve_show,
)
from projectcreator.core.deck_defaults import visible_important_titles
from projectcreator.core.errors import ValidationError


def test_null_and_blank_answers():
    assert normalize_answer(None, FIELD_BUILDING_TYPE, allow_null=True) is None
    assert normalize_answer("", FIELD_BUILDING_TYPE, allow_null=True) is None
    assert normalize_answer(None, FIELD_BUILDING_TYPE) == 0


def test_numeric_strings_and_option_values():
    assert normalize_answer("122", FIELD_BUILDING_TYPE) == 122
    assert normalize_answer(2, FIELD_BUILDING_TYPE) == 2


@pytest.mark.parametrize("value", [999, "abc", True, 3.5, 201])
def test_invalid_answers_rejected(value):
    with pytest.raises(ValidationError):
        normalize_answer(value, FIELD_BUILDING_TYPE)


def test_resolve_show():
    assert resolve_show(FIELD_BUILDING_TYPE, 122) == 1
    assert resolve_show(FIELD_OBJECT_OWNERSHIP, 202) == 2
    assert resolve_show(FIELD_OBJECT_OWNERSHIP, 1) == 1
    assert resolve_show(FIELD_OBJECT_OWNERSHIP, None) is None


def test_enabled_sets_sorted_and_unique():
    answers = {
        FIELD_OBJECT_OWNERSHIP: 202,
        FIELD_BUILDING_TYPE: 123,
        FIELD_AVP_LOCATION: 223,
    }
    assert enabled_sets(answers) == [1, 2]
    assert enabled_sets({FIELD_BUILDING_TYPE: 121}) == []


def test_extract_answers_from_project_like_object():
    project = SimpleNamespace(**{f: None for f in FIELDS})
    project.cv_building_type = 122
    answers = extract_answers(project)
    assert answers[FIELD_BUILDING_TYPE] == 122
    assert enabled_sets_for_project(project) == [1]


def test_corrupt_stored_answer_yields_no_sets():
    project = SimpleNamespace(**{f: None for f in FIELDS})
    project.cv_building_type = 777
    assert enabled_sets_for_project(project) == []


def test_visible_titles_hide_disabled_sets():
    hidden_all = visible_important_titles(0, [])
    assert "Verslag inpandig overleg" not in hidden_all
    assert "Bodemrapport" not in hidden_all
    assert "Piekvermogensformulier" in hidden_all

    with_set_1 = visible_important_titles(0, [1])
    assert "Verslag inpandig overleg" in with_set_1
    assert "Bodemrapport" not in with_set_1
