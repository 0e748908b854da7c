from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class RangeRule(BaseModel):
    min: int
    max: int


class RegexRule(RangeRule):
    pattern: str


class ContentRules(BaseModel):
    slug: RegexRule
    title: RangeRule
    description_max: int
    body_max: int
    default_page_size: int = 10
    max_page_size: int = 100


class RateLimitWindow(BaseModel):
    limit: int = Field(gt=0)
    window_ms: int = Field(gt=0)


class RateLimitRules(BaseModel):
    backend: str = "memory"
    newsletter: RateLimitWindow
    general: RateLimitWindow


class PreviewRules(BaseModel):
    cookie_name: str = "draft_mode"
    cookie_max_age_seconds: int = 3600


class ReferenceSearchRules(BaseModel):
    max_results: int = 3
    timeout_seconds: float = 10.0
    user_agent: str
    arxiv_url: str
    semantic_scholar_url: str


class OpsRules(BaseModel):
    required_env: list[str]


class Rules(BaseModel):
    project: ProjectRules
    content: ContentRules
    rate_limits: RateLimitRules
    preview: PreviewRules
    references: ReferenceSearchRules
    ops: OpsRules
