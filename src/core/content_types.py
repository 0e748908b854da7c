"""
Content type registry.

Every content type the knowledge base serves is declared here once: its table,
the column carrying its display name, its body column, the columns clients may
filter and order on, its public and admin paths, and the junction tables that
link it to other content types.

Invariants:
- Table and column names used in SQL come only from this module.
- A relationship config always names an existing junction table; the reverse
  side of a junction is declared with the id fields swapped.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# Columns every content table carries.
BASE_COLUMNS: tuple[str, ...] = (
    "id",
    "slug",
    "description",
    "published",
    "published_at",
    "deleted_at",
    "deleted_by",
    "created_at",
    "updated_at",
)


@dataclass(frozen=True)
class RelationshipConfig:
    """A junction table seen from one owning content type."""

    key: str
    junction_table: str
    content_id_field: str
    related_id_field: str
    related_type: str

    def as_dict(self) -> dict[str, str]:
        return {
            "junction_table": self.junction_table,
            "content_id_field": self.content_id_field,
            "related_id_field": self.related_id_field,
            "related_type": self.related_type,
        }


@dataclass(frozen=True)
class ContentTypeSpec:
    """Static description of one content type."""

    name: str
    label: str
    segment: str
    title_field: str
    body_field: str
    public_prefix: str
    extra_columns: tuple[str, ...]
    json_columns: tuple[str, ...] = ()
    bool_columns: tuple[str, ...] = ("published",)
    relationships: tuple[RelationshipConfig, ...] = ()
    list_relationships: tuple[str, ...] = ()
    filter_params: dict[str, str] = field(default_factory=dict)

    @property
    def table(self) -> str:
        return self.name

    @property
    def admin_path(self) -> str:
        return f"/admin/{self.segment}"

    @property
    def columns(self) -> tuple[str, ...]:
        return BASE_COLUMNS + (self.title_field, self.body_field) + self.extra_columns

    @property
    def writable_columns(self) -> tuple[str, ...]:
        managed = {"id", "published_at", "deleted_at", "deleted_by", "created_at", "updated_at"}
        return tuple(c for c in self.columns if c not in managed)

    @property
    def search_columns(self) -> tuple[str, ...]:
        return (self.title_field, "description", self.body_field)

    @property
    def orderable_columns(self) -> tuple[str, ...]:
        return tuple(c for c in self.columns if c not in self.json_columns)

    def relationship(self, key: str) -> RelationshipConfig | None:
        for config in self.relationships:
            if config.key == key:
                return config
        return None

    def public_path(self, slug: str) -> str:
        return f"{self.public_prefix}/{slug}"


def _rel(
    key: str, junction: str, content_field: str, related_field: str, related_type: str
) -> RelationshipConfig:
    return RelationshipConfig(key, junction, content_field, related_field, related_type)


def _case_study_reverse(junction: str, own_field: str) -> RelationshipConfig:
    return _rel("case_studies", junction, own_field, "case_study_id", "case_studies")


CONTENT_TYPES: dict[str, ContentTypeSpec] = {
    spec.name: spec
    for spec in (
        ContentTypeSpec(
            name="case_studies",
            label="Case Study",
            segment="case-studies",
            title_field="title",
            body_field="main_content",
            public_prefix="/case-study",
            extra_columns=(
                "url",
                "year",
                "featured",
                "academic_references",
                "resource_links",
                "import_batch_name",
            ),
            json_columns=("resource_links",),
            bool_columns=("published", "featured"),
            relationships=(
                _rel(
                    "algorithms",
                    "algorithm_case_study_relations",
                    "case_study_id",
                    "algorithm_id",
                    "algorithms",
                ),
                _rel(
                    "industries",
                    "case_study_industry_relations",
                    "case_study_id",
                    "industry_id",
                    "industries",
                ),
                _rel(
                    "personas",
                    "case_study_persona_relations",
                    "case_study_id",
                    "persona_id",
                    "personas",
                ),
                _rel(
                    "quantum_software",
                    "case_study_quantum_software_relations",
                    "case_study_id",
                    "quantum_software_id",
                    "quantum_software",
                ),
                _rel(
                    "quantum_hardware",
                    "case_study_quantum_hardware_relations",
                    "case_study_id",
                    "quantum_hardware_id",
                    "quantum_hardware",
                ),
                _rel(
                    "quantum_companies",
                    "case_study_quantum_company_relations",
                    "case_study_id",
                    "quantum_company_id",
                    "quantum_companies",
                ),
                _rel(
                    "partner_companies",
                    "case_study_partner_company_relations",
                    "case_study_id",
                    "partner_company_id",
                    "partner_companies",
                ),
                _rel(
                    "related_case_studies",
                    "case_study_relations",
                    "case_study_id",
                    "related_case_study_id",
                    "case_studies",
                ),
            ),
            list_relationships=("algorithms", "industries", "personas"),
            filter_params={
                "algorithm": "algorithms",
                "industry": "industries",
                "persona": "personas",
            },
        ),
        ContentTypeSpec(
            name="algorithms",
            label="Algorithm",
            segment="algorithms",
            title_field="name",
            body_field="main_content",
            public_prefix="/paths/algorithm",
            extra_columns=("use_cases", "quantum_advantage", "complexity", "academic_references"),
            json_columns=("use_cases",),
            relationships=(
                _case_study_reverse("algorithm_case_study_relations", "algorithm_id"),
                _rel(
                    "industries",
                    "algorithm_industry_relations",
                    "algorithm_id",
                    "industry_id",
                    "industries",
                ),
                _rel(
                    "personas",
                    "persona_algorithm_relations",
                    "algorithm_id",
                    "persona_id",
                    "personas",
                ),
            ),
            filter_params={"industry": "industries", "persona": "personas"},
        ),
        ContentTypeSpec(
            name="industries",
            label="Industry",
            segment="industries",
            title_field="name",
            body_field="main_content",
            public_prefix="/paths/industry",
            extra_columns=("icon", "sector"),
            relationships=(
                _case_study_reverse("case_study_industry_relations", "industry_id"),
                _rel(
                    "algorithms",
                    "algorithm_industry_relations",
                    "industry_id",
                    "algorithm_id",
                    "algorithms",
                ),
            ),
        ),
        ContentTypeSpec(
            name="personas",
            label="Persona",
            segment="personas",
            title_field="name",
            body_field="main_content",
            public_prefix="/paths/persona",
            extra_columns=("role", "experience_level", "technical_background"),
            relationships=(
                _case_study_reverse("case_study_persona_relations", "persona_id"),
                _rel(
                    "algorithms",
                    "persona_algorithm_relations",
                    "persona_id",
                    "algorithm_id",
                    "algorithms",
                ),
            ),
        ),
        ContentTypeSpec(
            name="quantum_software",
            label="Quantum Software",
            segment="quantum-software",
            title_field="name",
            body_field="main_content",
            public_prefix="/paths/quantum-software",
            extra_columns=("vendor", "license_type", "website_url"),
            relationships=(
                _case_study_reverse(
                    "case_study_quantum_software_relations", "quantum_software_id"
                ),
            ),
        ),
        ContentTypeSpec(
            name="quantum_hardware",
            label="Quantum Hardware",
            segment="quantum-hardware",
            title_field="name",
            body_field="main_content",
            public_prefix="/paths/quantum-hardware",
            extra_columns=("vendor", "technology_type", "qubit_count", "website_url"),
            relationships=(
                _case_study_reverse(
                    "case_study_quantum_hardware_relations", "quantum_hardware_id"
                ),
            ),
        ),
        ContentTypeSpec(
            name="quantum_companies",
            label="Quantum Company",
            segment="quantum-companies",
            title_field="name",
            body_field="main_content",
            public_prefix="/paths/quantum-companies",
            extra_columns=("company_type", "headquarters", "founded_year", "website_url"),
            relationships=(
                _case_study_reverse(
                    "case_study_quantum_company_relations", "quantum_company_id"
                ),
            ),
        ),
        ContentTypeSpec(
            name="partner_companies",
            label="Partner Company",
            segment="partner-companies",
            title_field="name",
            body_field="main_content",
            public_prefix="/paths/partner-companies",
            extra_columns=("industry", "headquarters", "website_url"),
            relationships=(
                _case_study_reverse(
                    "case_study_partner_company_relations", "partner_company_id"
                ),
            ),
        ),
        ContentTypeSpec(
            name="blog_posts",
            label="Blog Post",
            segment="blog-posts",
            title_field="title",
            body_field="content",
            public_prefix="/blog",
            extra_columns=("author", "featured_image", "category", "tags", "featured"),
            json_columns=("tags",),
            bool_columns=("published", "featured"),
            relationships=(
                _rel(
                    "related_blog_posts",
                    "blog_post_relations",
                    "blog_post_id",
                    "related_blog_post_id",
                    "blog_posts",
                ),
            ),
        ),
    )
}

SEGMENTS: dict[str, str] = {spec.segment: spec.name for spec in CONTENT_TYPES.values()}


class UnknownContentTypeError(KeyError):
    pass


def get_content_type(name: str) -> ContentTypeSpec:
    """Look up a content type by table name or URL segment."""
    key = SEGMENTS.get(name, name)
    try:
        return CONTENT_TYPES[key]
    except KeyError:
        raise UnknownContentTypeError(name) from None


def paths_for(content_type: str, slug: str | None) -> list[str]:
    """Paths whose cached renderings go stale when an item of this type changes."""
    spec = get_content_type(content_type)
    paths = []
    if slug:
        paths.append(spec.public_path(slug))
    paths.extend([spec.public_prefix, spec.admin_path])
    return paths


def all_junction_configs(content_type: str) -> list[RelationshipConfig]:
    """Every junction touching this type, in either direction.

    Reverse sides declared on other types are included so a permanent delete
    clears rows where this item appears as the related id.
    """
    spec = get_content_type(content_type)
    seen: set[tuple[str, str]] = set()
    configs: list[RelationshipConfig] = []
    for config in spec.relationships:
        seen.add((config.junction_table, config.content_id_field))
        configs.append(config)
    for other in CONTENT_TYPES.values():
        for config in other.relationships:
            if config.related_type != spec.name:
                continue
            mirrored = RelationshipConfig(
                key=config.key,
                junction_table=config.junction_table,
                content_id_field=config.related_id_field,
                related_id_field=config.content_id_field,
                related_type=other.name,
            )
            marker = (mirrored.junction_table, mirrored.content_id_field)
            if marker not in seen:
                seen.add(marker)
                configs.append(mirrored)
    return configs
