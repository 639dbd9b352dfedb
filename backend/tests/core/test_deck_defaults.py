"""Project-Type Deck Defaults - verifies the static card catalogue.

Tests cover:
    - Only the Combi type has cards
    - Every Combi card has a card policy
    - Important titles keep catalogue order without duplicates
    - Alias spellings map back to canonical titles
"""

from projectcreator.core.deck_defaults import (
    TYPE_COMBI, canonical_title, card_policies, important_titles,
    next_priority_cards, process_step_cards, required_next_priority_titles,
)


def test_other_types_have_no_catalogue():
    assert next_priority_cards(1) == ()
    assert process_step_cards(1) == ()
    assert card_policies(1) == {}
    assert important_titles(1) == []


def test_combi_required_titles():
    assert required_next_priority_titles(TYPE_COMBI) == [
        "Piekvermogensformulier", "Situatie tekening", "Intakeformulier", "Quickscan", "AVP",
    ]


def test_every_combi_card_has_policy():
    policies = card_policies(TYPE_COMBI)
    for card in (*next_priority_cards(TYPE_COMBI), *process_step_cards(TYPE_COMBI)):
        assert card.title in policies
        assert policies[card.title].move
        assert policies[card.title].approve


def test_important_titles_start_with_next_priority():
    titles = important_titles(TYPE_COMBI)
    assert titles[:5] == required_next_priority_titles(TYPE_COMBI)
    assert len(titles) == len(set(titles))
    assert "Garantie overeenkomst" not in titles


def test_alias_maps_to_canonical():
    assert canonical_title("Blokkenshema") == "Blokkenschema"
    assert canonical_title("VO") == "VO"
