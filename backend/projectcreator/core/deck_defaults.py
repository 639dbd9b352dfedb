"""Project-Type Deck Defaults - static card catalogue seeded onto new project boards.

Invariants:
    - Only TYPE_COMBI (0) has a catalogue; every other type yields empty lists
    - Required next-priority titles drive the scheduling summary and done-sync
    - Conditional set titles are hidden unless the questionnaire enables the set
    - Card policies name Deck role keys: client_developer, cpl, grid_operator

Design Decisions:
    - Tuples of CardTemplate over dicts: immutable, order preserved (order == seed index)
    - Titles are Dutch because boards are shown to Dutch grid-connection clients
"""

from dataclasses import dataclass

TYPE_COMBI = 0

IMPORTANT_LABEL_TITLE = "Belangrijk"
IMPORTANT_LABEL_COLOR = "FF0000"

PROCESS_STEPS_STACK_ORDER = 0
NEXT_PRIORITY_STACK_ORDER = 1


@dataclass(frozen=True)
class CardTemplate:
    title: str
    important: bool


@dataclass(frozen=True)
class CardPolicy:
    """Deck role keys allowed to move / approve a card."""
    move: tuple[str, ...]
    approve: tuple[str, ...]


_NEXT_PRIORITY = (
    CardTemplate("Piekvermogensformulier", True),
    CardTemplate("Situatie tekening", True),
    CardTemplate("Intakeformulier", True),
    CardTemplate("Quickscan", True),
    CardTemplate("AVP", True),
)

_PROCESS_STEPS = (
    CardTemplate("Garantie overeenkomst", False),
    CardTemplate("VO", True),
    CardTemplate("DO", True),
    CardTemplate("Intake inplannen & hosten", False),
    CardTemplate("Intakeverslag", False),
    CardTemplate("Huisnummerbesluit", True),
    CardTemplate("Hoogbouwoverleg inplannen", False),
    CardTemplate("VO inpandige tekeningen", False),
    CardTemplate("DO inpandige tekeningen", False),
    CardTemplate("Verslag inpandig overleg", True),
    CardTemplate("Blokkenschema", False),
    CardTemplate("Aanvraag particuliere grond", False),
    CardTemplate("Bodemrapport", True),
    CardTemplate("Saneringsevaluatierapport", False),
    CardTemplate("Zakelijkrecht", False),
)

CONDITIONAL_SET_1 = (
    "Hoogbouwoverleg inplannen",
    "VO inpandige tekeningen",
    "DO inpandige tekeningen",
    "Verslag inpandig overleg",
    "Blokkenschema",
)

CONDITIONAL_SET_2 = (
    "Aanvraag particuliere grond",
    "Bodemrapport",
    "Saneringsevaluatierapport",
    "Zakelijkrecht",
)

# Canonical title -> accepted spellings on existing boards
CARD_TITLE_ALIASES: dict[str, tuple[str, ...]] = {
    "Blokkenschema": ("Blokkenschema", "Blokkenshema"),
}

_DEV_TO_CPL = CardPolicy(move=("client_developer",), approve=("cpl",))
_CPL_ONLY = CardPolicy(move=("cpl",), approve=("cpl",))
_DEV_TO_GRID = CardPolicy(move=("client_developer",), approve=("grid_operator",))

_COMBI_POLICIES: dict[str, CardPolicy] = {
    # Process steps
    "Garantie overeenkomst": _DEV_TO_CPL,
    "VO": _DEV_TO_CPL,
    "DO": _DEV_TO_CPL,
    "Intake inplannen & hosten": _CPL_ONLY,
    "Intakeverslag": _CPL_ONLY,
    "Huisnummerbesluit": CardPolicy(move=("client_developer", "cpl"), approve=("cpl",)),
    "Hoogbouwoverleg inplannen": _CPL_ONLY,
    "VO inpandige tekeningen": _DEV_TO_GRID,
    "DO inpandige tekeningen": _DEV_TO_GRID,
    "Verslag inpandig overleg": _DEV_TO_GRID,
    "Blokkenschema": _DEV_TO_GRID,
    "Aanvraag particuliere grond": _DEV_TO_CPL,
    "Bodemrapport": _DEV_TO_CPL,
    "Saneringsevaluatierapport": _DEV_TO_CPL,
    "Zakelijkrecht": _DEV_TO_CPL,
    # Next priority
    "Piekvermogensformulier": _DEV_TO_CPL,
    "Situatie tekening": _DEV_TO_GRID,
    "Intakeformulier": _DEV_TO_CPL,
    "Quickscan": _DEV_TO_CPL,
    "AVP": CardPolicy(move=("grid_operator",), approve=("grid_operator",)),
}


def next_priority_cards(project_type: int) -> tuple[CardTemplate, ...]:
    return _NEXT_PRIORITY if project_type == TYPE_COMBI else ()


def process_step_cards(project_type: int) -> tuple[CardTemplate, ...]:
    return _PROCESS_STEPS if project_type == TYPE_COMBI else ()


def required_next_priority_titles(project_type: int) -> list[str]:
    """Titles that must all be done before the process counts as complete."""
    return [card.title for card in next_priority_cards(project_type)]


def card_policies(project_type: int) -> dict[str, CardPolicy]:
    return dict(_COMBI_POLICIES) if project_type == TYPE_COMBI else {}


def important_titles(project_type: int) -> list[str]:
    """Unique important titles, next-priority first, in catalogue order."""
    out: list[str] = []
    for card in (*next_priority_cards(project_type), *process_step_cards(project_type)):
        title = card.title.strip()
        if title and card.important and title not in out:
            out.append(title)
    return out


def visible_important_titles(project_type: int, enabled_sets: list[int]) -> list[str]:
    """Important titles minus conditional-set titles whose set is not enabled."""
    titles = important_titles(project_type)
    if not titles or project_type != TYPE_COMBI:
        return titles

    hidden: set[str] = set()
    if 1 not in enabled_sets:
        hidden.update(CONDITIONAL_SET_1)
    if 2 not in enabled_sets:
        hidden.update(CONDITIONAL_SET_2)
    return [t for t in titles if t not in hidden]


def canonical_title(title: str) -> str:
    """Map an alias spelling back to its catalogue title."""
    for canonical, aliases in CARD_TITLE_ALIASES.items():
        if title in aliases:
            return canonical
    return title


def default_preparation_weeks(project_type: int) -> int:
    return 0
