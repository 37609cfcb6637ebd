# ContentSync Configuration Schema
# Pydantic models for YAML configuration validation

from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from contentsync.utils.urls import MEDIA_PATTERN


class FrozenModel(BaseModel):
    """Base for immutable configuration models."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class ResizeFit(str, Enum):
    """How an image is fitted into a fixed resize box."""

    COVER = "cover"
    CONTAIN = "contain"
    FILL = "fill"
    INSIDE = "inside"
    OUTSIDE = "outside"


class TransformName(str, Enum):
    """Built-in content transforms that can be referenced from config."""

    MD_TO_HTML = "mdToHtml"
    MARKDOWN_TO_HTML = "markdownToHtml"
    MD_TO_HTML_SIMPLIFIED = "mdToHtmlSimplified"
    MARKDOWN_TO_HTML_SIMPLIFIED = "markdownToHtmlSimplified"
    SANITY_TO_PLAIN = "sanityToPlain"
    SANITY_TO_MD = "sanityToMd"
    SANITY_TO_MARKDOWN = "sanityToMarkdown"
    SANITY_TO_HTML = "sanityToHtml"


class ResizeSpec(FrozenModel):
    """Fixed-size resize for a derivative image."""

    width: int | None = Field(default=None, gt=0, description="Target width in pixels")
    height: int | None = Field(default=None, gt=0, description="Target height in pixels")
    fit: ResizeFit | None = Field(default=None, description="Fit mode when both sides are given")

    @model_validator(mode="after")
    def require_dimension(self) -> "ResizeSpec":
        """At least one side must be set."""
        if self.width is None and self.height is None:
            raise ValueError("resize needs a width or a height")
        return self


class ImageTransform(FrozenModel):
    """A derivative image written next to each downloaded image."""

    scale: float | None = Field(default=None, gt=0, description="Scale factor, e.g. 0.5")
    resize: ResizeSpec | None = Field(default=None, description="Fixed resize")
    blur: float | None = Field(default=None, gt=0, description="Gaussian blur radius in px")

    @model_validator(mode="after")
    def require_operation(self) -> "ImageTransform":
        """At least one operation must be set."""
        if self.scale is None and self.resize is None and self.blur is None:
            raise ValueError("image transform needs scale, resize or blur")
        return self

    @property
    def suffix(self) -> str:
        """Filename suffix identifying this derivative."""
        suffix = ""
        if self.scale is not None:
            suffix += f"@{self.scale:g}x"
        if self.resize is not None:
            width = self.resize.width if self.resize.width is not None else "auto"
            height = self.resize.height if self.resize.height is not None else "auto"
            suffix += f"@{width}x{height}"
            if self.resize.fit is not None:
                suffix += f"-{self.resize.fit.value}"
        if self.blur is not None:
            suffix += f"@blur_{self.blur:g}"
        return suffix


class BaseSourceConfig(FrozenModel):
    """Options shared by all content sources."""

    id: str = Field(min_length=1, description="Source id, also used as download subdirectory")
    media_pattern: str = Field(default=MEDIA_PATTERN, description="Regex for media URLs to download")
    max_timeout: int = Field(default=30_000, gt=0, description="Request timeout in ms")

    @field_validator("id")
    @classmethod
    def check_id(cls, v: str) -> str:
        """Ids become directory names."""
        if "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"invalid source id '{v}'")
        return v


class JsonSourceConfig(BaseSourceConfig):
    """A source of plain JSON documents, one URL per document."""

    type: Literal["json"] = "json"
    files: dict[str, str] = Field(default_factory=dict, description="Document id -> URL")


class RestQuery(FrozenModel):
    """One paginated endpoint of a REST source."""

    path: str = Field(description="Endpoint path relative to base_url")
    params: dict[str, Any] = Field(default_factory=dict, description="Extra query parameters")
    id: str | None = Field(default=None, description="Document id prefix (defaults to the path)")

    @property
    def document_id(self) -> str:
        return self.id or self.path.strip("/").replace("/", "_")


class RestSourceConfig(BaseSourceConfig):
    """A generic offset/limit paginated JSON API."""

    type: Literal["rest"] = "rest"
    base_url: str = Field(description="API root URL")
    queries: list[Union[str, RestQuery]] = Field(default_factory=list, description="Endpoints to fetch")
    limit: int = Field(default=100, gt=0, description="Entries per page")
    max_num_pages: int = Field(default=-1, description="Max pages per query, -1 for all")
    page_num_zero_pad: int = Field(default=0, ge=0, description="Zero padding of page numbers in ids")
    offset_param: str = Field(default="offset", description="Query parameter carrying the offset")
    limit_param: str = Field(default="limit", description="Query parameter carrying the page size")
    results_key: str | None = Field(default=None, description="Response key holding the entries")
    merge_pages: bool = Field(default=False, description="Collate all pages into one document")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra request headers")

    def get_queries(self) -> list[RestQuery]:
        """Normalize string queries to RestQuery objects."""
        return [RestQuery(path=q) if isinstance(q, str) else q for q in self.queries]


SourceConfig = Annotated[Union[JsonSourceConfig, RestSourceConfig], Field(discriminator="type")]


class OutputConfig(FrozenModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")
    log_file: str | None = Field(default=None, description="Path to log file")

    @field_validator("log_file")
    @classmethod
    def expand_optional_path(cls, v: str | None) -> str | None:
        """Expand ~ in optional paths."""
        if v is None:
            return None
        return str(Path(v).expanduser())


class ContentConfig(FrozenModel):
    """Root configuration model, built once per run."""

    download_path: str = Field(default=".downloads/", description="Root of all downloaded files")
    temp_path: str = Field(default="%DOWNLOAD_PATH%/.tmp/", description="Staging dir (supports tokens)")
    backup_path: str = Field(default="%DOWNLOAD_PATH%/.backups/", description="Backup dir (supports tokens)")
    backup_and_restore: bool = Field(default=True, description="Restore all sources if any source fails")
    max_concurrent: int = Field(default=4, ge=1, description="Download worker pool size")
    max_timeout: int = Field(default=30_000, gt=0, description="Per-request timeout in ms")
    clear_old_files_on_start: bool = Field(default=False, description="Prune destination before downloading")
    clear_old_files_on_success: bool = Field(default=True, description="Prune destination after success")
    keep: str = Field(default="", description="Glob(s) kept when pruning, e.g. '*.json|*.csv'")
    strip: str = Field(default="", description="Substring removed from media local paths")
    ignore_cache: bool = Field(default=False, description="Always re-download media")
    enable_if_modified_since_check: bool = Field(default=True, description="Validate cache via If-Modified-Since")
    enable_content_length_check: bool = Field(default=True, description="Validate cache via Content-Length")
    abort_on_error: bool = Field(default=True, description="Abort the batch on the first failed download")
    ignore_image_transform_errors: bool = Field(default=True, description="Skip failed derivatives quietly")
    ignore_image_transform_cache: bool = Field(default=False, description="Always re-render derivatives")
    force_clear_temp_files: bool = Field(default=True, description="Wipe stale temp files before staging")
    encode_chars: str = Field(default='<>:"|?*', description="Characters percent-encoded in data file names")
    image_transforms: list[ImageTransform] = Field(default_factory=list, description="Derivative images")
    content_transforms: dict[str, Union[TransformName, list[TransformName]]] = Field(
        default_factory=dict, description="JSONPath -> transform name(s)"
    )
    sources: list[SourceConfig] = Field(default_factory=list, description="Content sources")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")

    @field_validator("sources", mode="before")
    @classmethod
    def default_source_type(cls, v: Any) -> Any:
        """Sources without a type are json sources."""
        if not isinstance(v, list):
            return v
        return [{**s, "type": "json"} if isinstance(s, dict) and "type" not in s else s for s in v]

    @field_validator("sources")
    @classmethod
    def unique_source_ids(cls, v: list[Any]) -> list[Any]:
        """Source ids map to directories and namespaces and must be unique."""
        seen: set[str] = set()
        for source in v:
            if source.id in seen:
                raise ValueError(f"duplicate source id '{source.id}'")
            seen.add(source.id)
        return v

    def get_source(self, source_id: str) -> Union[JsonSourceConfig, RestSourceConfig, None]:
        """Get a source config by id."""
        for source in self.sources:
            if source.id == source_id:
                return source
        return None
