from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SearchQuery(BaseModel):
    language: str
    min_stars: int = 50
    archived: bool = False

    def to_query_string(self) -> str:
        archived = "true" if self.archived else "false"
        return f"language:{self.language} stars:>={self.min_stars} archived:{archived}"


class RepoOwner(BaseModel):
    model_config = ConfigDict(extra="ignore")

    login: Optional[str] = None


class RepositorySummary(BaseModel):
    """Subset of a GitHub search item that the card displays."""

    model_config = ConfigDict(extra="ignore")

    full_name: Optional[str] = None
    name: Optional[str] = None
    html_url: Optional[str] = None
    description: Optional[str] = None
    stargazers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    language: Optional[str] = None
    owner: Optional[RepoOwner] = None

    @field_validator("stargazers_count", "forks_count", "open_issues_count", mode="before")
    @classmethod
    def _missing_count_is_zero(cls, value):
        return 0 if value is None else value


class SearchResultPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_count: int = Field(default=0, ge=0)
    items: List[RepositorySummary] = []

    @field_validator("total_count", mode="before")
    @classmethod
    def _missing_total_is_zero(cls, value):
        return 0 if value is None else value

    @field_validator("items", mode="before")
    @classmethod
    def _missing_items_is_empty(cls, value):
        return [] if value is None else value


class DisplayModel(BaseModel):
    name: str
    url: str
    description: str
    stars: str
    forks: str
    issues: str
    language_label: str
    owner_label: str


class UIStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    POPULATED = "populated"
    EMPTY = "empty"
    ERRORED = "errored"


class UIState(BaseModel):
    status: UIStatus = UIStatus.IDLE
    message: str = ""
    is_error: bool = False
    language: Optional[str] = None
    display: Optional[DisplayModel] = None

    @classmethod
    def idle(cls) -> "UIState":
        return cls()

    @classmethod
    def loading(cls, language: str) -> "UIState":
        return cls(status=UIStatus.LOADING, message="Loading…", language=language)

    @classmethod
    def populated(cls, language: str, display: DisplayModel) -> "UIState":
        return cls(status=UIStatus.POPULATED, language=language, display=display)

    @classmethod
    def empty(cls, language: str) -> "UIState":
        return cls(
            status=UIStatus.EMPTY,
            message=f'No repositories found for "{language}". Try another language.',
            language=language,
        )

    @classmethod
    def errored(cls, language: str, message: str) -> "UIState":
        return cls(
            status=UIStatus.ERRORED,
            message=f"Error: {message}",
            is_error=True,
            language=language,
        )


class ViewSnapshot(BaseModel):
    state: UIState
    controls_enabled: bool = True
    show_card: bool = False
    show_refresh: bool = False
    cycle_id: Optional[int] = None


FetchMode = Literal["fetch", "refresh"]


class FetchRequest(BaseModel):
    language: str = Field(..., min_length=1)
    mode: FetchMode = "fetch"  # only used for logging

    @field_validator("language")
    @classmethod
    def _strip_language(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("language must not be blank")
        return value


class LanguagesResponse(BaseModel):
    languages: List[str]
