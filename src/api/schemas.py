"""
Request and response models for the JSON API.

Each content type has its own payload model; unknown fields are rejected.
Relation keys carry the complete list of related ids the item should end up
with. Slug, title, description and body limits live in rules.yaml and are
checked by the content component.
"""

from typing import Any, ClassVar, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

Level = Literal["Beginner", "Intermediate", "Advanced"]


class ContentPayload(BaseModel):
    """Fields shared by every content type."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    slug: str
    description: str | None = None
    published: bool = False

    # Relation keys per subclass; split off before the row is written.
    relation_keys: ClassVar[tuple[str, ...]] = ()

    def split(self) -> tuple[dict[str, Any], dict[str, list[str]]]:
        """Return (column data, relationships) for the fields the client sent."""
        data = self.model_dump(mode="json", exclude_unset=True)
        relationships: dict[str, list[str]] = {}
        for key in self.relation_keys:
            if key in data:
                value = data.pop(key)
                relationships[key] = [str(v) for v in value or []]
        return data, relationships


class NamedPayload(ContentPayload):
    name: str
    main_content: str | None = None


class ResourceLink(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: HttpUrl
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=500)


class CaseStudyPayload(ContentPayload):
    relation_keys = (
        "algorithms",
        "industries",
        "personas",
        "quantum_software",
        "quantum_hardware",
        "quantum_companies",
        "partner_companies",
        "related_case_studies",
    )

    title: str
    main_content: str | None = None
    url: HttpUrl | None = None
    year: int | None = Field(None, ge=1990, le=2030)
    featured: bool = False
    academic_references: str | None = Field(None, max_length=10000)
    resource_links: list[ResourceLink] = []
    import_batch_name: str | None = Field(None, max_length=200)

    algorithms: list[UUID] | None = None
    industries: list[UUID] | None = None
    personas: list[UUID] | None = None
    quantum_software: list[UUID] | None = None
    quantum_hardware: list[UUID] | None = None
    quantum_companies: list[UUID] | None = None
    partner_companies: list[UUID] | None = None
    related_case_studies: list[UUID] | None = None


class AlgorithmPayload(NamedPayload):
    relation_keys = ("case_studies", "industries", "personas")

    quantum_advantage: str | None = Field(None, max_length=10000)
    use_cases: list[str] = []
    complexity: Level | None = None
    academic_references: str | None = Field(None, max_length=10000)

    case_studies: list[UUID] | None = None
    industries: list[UUID] | None = None
    personas: list[UUID] | None = None


class IndustryPayload(NamedPayload):
    relation_keys = ("case_studies", "algorithms")

    icon: str | None = Field(None, max_length=100)
    sector: str | None = Field(None, max_length=100)

    case_studies: list[UUID] | None = None
    algorithms: list[UUID] | None = None


class PersonaPayload(NamedPayload):
    relation_keys = ("case_studies", "algorithms")

    role: str | None = Field(None, max_length=200)
    experience_level: Level | None = None
    technical_background: str | None = Field(None, max_length=200)

    case_studies: list[UUID] | None = None
    algorithms: list[UUID] | None = None


class QuantumSoftwarePayload(NamedPayload):
    relation_keys = ("case_studies",)

    vendor: str | None = Field(None, max_length=200)
    license_type: str | None = Field(None, max_length=100)
    website_url: HttpUrl | None = None

    case_studies: list[UUID] | None = None


class QuantumHardwarePayload(NamedPayload):
    relation_keys = ("case_studies",)

    vendor: str | None = Field(None, max_length=200)
    technology_type: str | None = Field(None, max_length=100)
    qubit_count: int | None = Field(None, ge=1)
    website_url: HttpUrl | None = None

    case_studies: list[UUID] | None = None


class QuantumCompanyPayload(NamedPayload):
    relation_keys = ("case_studies",)

    company_type: str | None = Field(None, max_length=100)
    headquarters: str | None = Field(None, max_length=200)
    founded_year: int | None = Field(None, ge=1800, le=2100)
    website_url: HttpUrl | None = None

    case_studies: list[UUID] | None = None


class PartnerCompanyPayload(NamedPayload):
    relation_keys = ("case_studies",)

    industry: str | None = Field(None, max_length=200)
    headquarters: str | None = Field(None, max_length=200)
    website_url: HttpUrl | None = None

    case_studies: list[UUID] | None = None


class BlogPostPayload(ContentPayload):
    relation_keys = ("related_blog_posts",)

    title: str
    content: str | None = None
    author: str | None = Field(None, max_length=100)
    featured_image: str | None = Field(None, max_length=500)
    category: str | None = Field(None, max_length=100)
    tags: list[str] = []
    featured: bool = False

    related_blog_posts: list[UUID] | None = None


PAYLOAD_MODELS: dict[str, type[ContentPayload]] = {
    "case_studies": CaseStudyPayload,
    "algorithms": AlgorithmPayload,
    "industries": IndustryPayload,
    "personas": PersonaPayload,
    "quantum_software": QuantumSoftwarePayload,
    "quantum_hardware": QuantumHardwarePayload,
    "quantum_companies": QuantumCompanyPayload,
    "partner_companies": PartnerCompanyPayload,
    "blog_posts": BlogPostPayload,
}


# --- Item operations ---


class PublishToggleRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    published: bool


class BulkRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bulk: Literal[True]
    operation: Literal["publish", "unpublish", "delete"]
    ids: list[str] = Field(..., min_length=1)


class IdsRequest(BaseModel):
    """Body carrying either one id or a list of ids."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    ids: list[str] | None = None

    def all_ids(self) -> list[str]:
        if self.ids:
            return list(self.ids)
        return [self.id] if self.id else []


class BulkFailureModel(BaseModel):
    id: str
    error: str


class BulkResultResponse(BaseModel):
    success: bool
    succeeded: list[str]
    failed: list[BulkFailureModel] = []


class PaginationModel(BaseModel):
    page: int
    pageSize: int
    totalItems: int
    totalPages: int


class ContentListResponse(BaseModel):
    items: list[dict[str, Any]]
    pagination: PaginationModel


# --- Newsletter ---


class SubscribeRequest(BaseModel):
    email: str = Field(..., max_length=255)
    source: str = Field("website", max_length=50)


class SubscriptionToggleRequest(BaseModel):
    subscribe: bool


# --- Admin tools ---


class SpellingCheckRequest(BaseModel):
    text: str = Field(..., max_length=200000)
    replace: bool = False
    ignore_quantum_terms: bool = True


class ContentValidationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    content_type: str = "case_studies"
    content: dict[str, Any]
    check_required_fields: bool = True
    check_us_spellings: bool = True
    check_quality: bool = True
