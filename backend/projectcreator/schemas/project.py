"""Project Schemas - create/update payloads and card visibility answers.

Invariants:
    - ProjectCreate.name and number: stripped, non-empty
    - A digit-only legacy groupId becomes organizationId when the latter is absent
    - Members are de-duplicated, blanks dropped

Design Decisions:
    - camelCase aliases with populate_by_name: the web client posts camelCase,
      tests may use field names
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from projectcreator.services.project_service import ProjectDraft


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ProjectCreate(_CamelModel):
    """Create-project request."""
    name: str = Field(min_length=1, max_length=255)
    number: str = Field(min_length=1, max_length=64)
    type: int = Field(ge=0)
    members: list[str] = []
    group_id: str = Field("", alias="groupId")
    organization_id: int | None = Field(None, alias="organizationId", gt=0)
    description: str = ""
    client_name: str | None = Field(None, alias="clientName", max_length=255)
    client_role: str | None = Field(None, alias="clientRole", max_length=255)
    client_phone: str | None = Field(None, alias="clientPhone", max_length=64)
    client_email: str | None = Field(None, alias="clientEmail", max_length=255)
    client_address: str | None = Field(None, alias="clientAddress")
    loc_street: str | None = Field(None, alias="locStreet", max_length=255)
    loc_city: str | None = Field(None, alias="locCity", max_length=255)
    loc_zip: str | None = Field(None, alias="locZip", max_length=32)
    request_date: str | None = Field(None, alias="requestDate")
    desired_execution_date: str | None = Field(None, alias="desiredExecutionDate")
    required_preparation_days: int | None = Field(None, alias="requiredPreparationDays", ge=0)

    @field_validator("name", "number")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v

    @field_validator("members")
    @classmethod
    def clean_members(cls, v: list[str]) -> list[str]:
        out: list[str] = []
        for uid in v:
            uid = uid.strip()
            if uid and uid not in out:
                out.append(uid)
        return out

    @model_validator(mode="after")
    def legacy_group_id(self):
        # old clients sent the organization id as groupId
        if self.organization_id is None and self.group_id.isdigit():
            self.organization_id = int(self.group_id)
        return self

    def to_draft(self) -> ProjectDraft:
        return ProjectDraft(
            name=self.name,
            number=self.number,
            type=self.type,
            members=self.members,
            description=self.description,
            organization_id=self.organization_id,
            client_name=self.client_name,
            client_role=self.client_role,
            client_phone=self.client_phone,
            client_email=self.client_email,
            client_address=self.client_address,
            loc_street=self.loc_street,
            loc_city=self.loc_city,
            loc_zip=self.loc_zip,
            request_date=self.request_date,
            desired_execution_date=self.desired_execution_date,
            required_preparation_days=self.required_preparation_days,
        )


class ProjectUpdate(_CamelModel):
    """Partial project update; None leaves a field unchanged."""
    name: str | None = Field(None, min_length=1, max_length=255)
    number: str | None = Field(None, min_length=1, max_length=64)
    type: int | None = Field(None, ge=0)
    description: str | None = None
    client_name: str | None = Field(None, alias="clientName")
    client_role: str | None = Field(None, alias="clientRole")
    client_phone: str | None = Field(None, alias="clientPhone")
    client_email: str | None = Field(None, alias="clientEmail")
    client_address: str | None = Field(None, alias="clientAddress")
    loc_street: str | None = Field(None, alias="locStreet")
    loc_city: str | None = Field(None, alias="locCity")
    loc_zip: str | None = Field(None, alias="locZip")
    external_ref: str | None = Field(None, alias="externalRef")
    status: int | None = Field(None, ge=0)


class MemberAdd(_CamelModel):
    user_id: str = Field("", alias="userId")


class FileNotesUpdate(BaseModel):
    """File-backed notes; either side may be omitted."""
    public_note: str | None = None
    private_note: str | None = None
