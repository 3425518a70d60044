"""Provider directory schemas."""

from pydantic import BaseModel


class ProviderSummary(BaseModel):
    """Public provider listing."""

    id: int
    full_name: str
    email: str
    phone: str | None = None
    specialization: str

    model_config = {"from_attributes": True}


class ProviderDirectory(BaseModel):
    """Schema for providers sharing a specialization."""

    specialization: str
    total: int
    providers: list[ProviderSummary]


class SpecializationCount(BaseModel):
    name: str
    provider_count: int


class SpecializationList(BaseModel):
    """Schema for all specializations on offer."""

    total: int
    specializations: list[SpecializationCount]
