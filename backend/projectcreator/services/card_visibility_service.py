"""Card Visibility Service - read and answer the intake questionnaire of a project.

Invariants:
    - Only fields present in the payload change; null clears an answer
    - Every answer is validated before any column is written (all-or-nothing)
"""

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.core.card_visibility import (
    FIELDS, QUESTIONS, enabled_sets, extract_answers, normalize_answer,
)
from projectcreator.core.deck_defaults import visible_important_titles
from projectcreator.core.errors import ValidationError
from projectcreator.models.project import Project


def card_visibility_state(project: Project) -> dict:
    try:
        answers = extract_answers(project)
    except ValidationError:
        answers = {field: None for field in FIELDS}
    sets = enabled_sets(answers)
    project_type = project.type if project.type is not None else -1
    return {
        "projectId": project.id,
        "projectType": project.type,
        "answers": answers,
        "enabledSets": sets,
        "visibleImportantTitles": visible_important_titles(project_type, sets),
        "questions": QUESTIONS,
    }


async def update_card_visibility(db: AsyncSession, project: Project, payload: dict) -> dict:
    updates = {
        field: normalize_answer(payload[field], field, allow_null=True)
        for field in FIELDS
        if field in payload
    }
    for field, value in updates.items():
        setattr(project, field, value)
    if updates:
        project.updated_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(project)
    return card_visibility_state(project)
