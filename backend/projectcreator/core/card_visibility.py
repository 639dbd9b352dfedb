"""Card Visibility - the Combi intake questionnaire and its conditional card sets.

Invariants:
    - Stored answers are option values (e.g. 202) or a raw show group (0, 1, 2)
    - resolve_show maps an answer to its show group; unknown values resolve to 0
    - normalize_answer accepts None/"" (-> None or 0), numeric strings, and allowed ints only
    - enabled_sets returns the sorted, de-duplicated list of enabled groups (subset of [1, 2])

Design Decisions:
    - Show map derived once from QUESTIONS at import time: single source for labels and rules
    - Invalid answers raise ValidationError (400) so the PUT route needs no extra checks
"""

from typing import Any

from projectcreator.core.errors import ValidationError

FIELD_OBJECT_OWNERSHIP = "cv_object_ownership"
FIELD_TRACE_OWNERSHIP = "cv_trace_ownership"
FIELD_BUILDING_TYPE = "cv_building_type"
FIELD_AVP_LOCATION = "cv_avp_location"

FIELDS = (
    FIELD_OBJECT_OWNERSHIP,
    FIELD_TRACE_OWNERSHIP,
    FIELD_BUILDING_TYPE,
    FIELD_AVP_LOCATION,
)

SHOW_GROUPS = (0, 1, 2)


def _option(label: str, value: int, show: int) -> dict:
    return {"label": label, "value": value, "show": show}


QUESTIONS: list[dict] = [
    {
        "field": FIELD_OBJECT_OWNERSHIP,
        "category": "Eigendoms situatie te realiseren object",
        "question": (
            "Eigendoms situatie te realiseren object "
            "(antwoord met ja op de situatie die van toepassing is)."
        ),
        "options": [
            _option("Het object(en) komt op eigen grond te staan en de gevel grenst direct aan gemeentegrond.", 201, 0),
            _option("Het object komt op eigen grond te staan maar de gevel grenst niet direct aan gemeentegrond.", 202, 2),
            _option("Het object komt op eigen grond te staan en de grond wordt overgedragen aan de gemeente.", 203, 2),
            _option("Het object komt op openbare grond te staan.", 204, 0),
            _option("Ik weet het nog niet.", 205, 2),
        ],
    },
    {
        "field": FIELD_TRACE_OWNERSHIP,
        "category": "Eigendoms situatie kabel en leidingen tracé",
        "question": (
            "Eigendoms situatie kabel en leidingen tracé "
            "(antwoord met ja op de situatie die van toepassing is)."
        ),
        "options": [
            _option("Het vrije tracé komt in eigen grond te liggen.", 211, 2),
            _option("Het vrije tracé komt in openbare grond te liggen.", 212, 0),
            _option("Het vrije tracé komt zowel in eigen grond als in openbare grond te liggen.", 213, 2),
            _option("Ik weet het nog niet.", 214, 2),
        ],
    },
    {
        "field": FIELD_BUILDING_TYPE,
        "category": "Grondgebonden woningen/ hoogbouw/ bedrijfsunits",
        "question": (
            "Grondgebonden woningen/ hoogbouw/ bedrijfsunits "
            "(antwoord met ja op de situatie die van toepassing is)."
        ),
        "options": [
            _option("U realiseert grondgebonden woningen.", 121, 0),
            _option("U realiseert appartementen.", 122, 1),
            _option("U realiseert zowel grondgebonden woningen als appartementen.", 123, 1),
            _option("U realiseert bedrijfsunits.", 124, 0),
        ],
    },
    {
        "field": FIELD_AVP_LOCATION,
        "category": "AVP Locatie",
        "question": "AVP locatie (antwoord met ja op de situatie die van toepassing is).",
        "options": [
            _option("Ik heb nog niet nagedacht over een mogelijke AVP.", 221, 2),
            _option(
                "Ik realiseer grondgebonden woningen en/of hoogbouw en/of bedrijfsunits. "
                "Er is rekening gehouden met een AVP op eigen grond.", 222, 0,
            ),
            _option(
                "Ik realiseer grondgebonden woningen en/of hoogbouw en/of bedrijfsunits. "
                "Er is geen rekening gehouden met een AVP op eigen grond.", 223, 2,
            ),
            _option(
                "Bij hoogbouw is de eis dat het AVP inpandig wordt opgenomen "
                "en daar is geen rekening mee gehouden.", 224, 2,
            ),
        ],
    },
]


def _build_show_map() -> dict[str, dict[int, int]]:
    show_map: dict[str, dict[int, int]] = {}
    for question in QUESTIONS:
        field = question["field"]
        for option in question["options"]:
            show_map.setdefault(field, {})[int(option["value"])] = int(option["show"])
    return show_map


SHOW_MAP: dict[str, dict[int, int]] = _build_show_map()


def resolve_show(field: str, value: int | None) -> int | None:
    """Show group for an answer; None stays None."""
    if value is None:
        return None
    if value in SHOW_GROUPS:
        return value
    return SHOW_MAP.get(field, {}).get(value, 0)


def allowed_values(field: str) -> list[int]:
    return sorted(set(SHOW_MAP.get(field, {})) | set(SHOW_GROUPS))


def normalize_answer(value: Any, field: str, allow_null: bool = False) -> int | None:
    """Coerce a raw answer to an allowed int, None, or raise ValidationError."""
    if value is None:
        return None if allow_null else 0

    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return None if allow_null else 0
        if value.lstrip("-").isdigit():
            value = int(value)

    if isinstance(value, bool) or not isinstance(value, int) or value not in allowed_values(field):
        raise ValidationError(
            f"Invalid value for {field}. Allowed values: null, 0, 1, 2 "
            "or one of the configured option values.",
            field=field,
        )
    return value


def extract_answers(project: Any) -> dict[str, int | None]:
    """Read the four questionnaire columns off a project-like object."""
    return {
        field: normalize_answer(getattr(project, field, None), field, allow_null=True)
        for field in FIELDS
    }


def enabled_sets(answers: dict[str, int | None]) -> list[int]:
    enabled: set[int] = set()
    for field, answer in answers.items():
        show = resolve_show(field, answer)
        if show in (1, 2):
            enabled.add(show)
    return sorted(enabled)


def enabled_sets_for_project(project: Any) -> list[int]:
    """Enabled sets, or [] when stored answers are corrupt."""
    try:
        return enabled_sets(extract_answers(project))
    except ValidationError:
        return []
