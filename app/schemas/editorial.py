# app/schemas/editorial.py
"""
Schemas for editorial endpoints.

POST /api/process-stream        - Run selected tasks, streamed as SSE
POST /api/regenerate-headlines  - New headline/dek pairs
POST /api/regenerate-social     - New posts for one platform
GET  /api/style-guides          - Style guide texts
POST /api/fetch-doc             - Import a Google Doc or Substack post

Field names follow the browser's camelCase payloads.
"""

from pydantic import BaseModel, ConfigDict, Field


class ProcessRequest(BaseModel):
    """Body of POST /api/process-stream. Empty text/tasks are rejected with 400."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field("", description="Article text")
    tasks: dict[str, bool] = Field(
        default_factory=dict,
        description="Selected tasks: headlines, social, copyEdit, claimFlag, factCheck",
    )
    style_guides: dict[str, str] = Field(
        default_factory=dict,
        alias="styleGuides",
        description="Per-task style guide text, keyed like GET /api/style-guides",
    )
    confirmed: bool = Field(False, description="Proceed past the fact-check claim-count confirmation")


class RegenerateHeadlinesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = ""
    style_guide: str | None = Field(None, alias="styleGuide")


class HeadlineSuggestion(BaseModel):
    headline: str
    dek: str = ""


class HeadlinesResponse(BaseModel):
    suggestions: list[HeadlineSuggestion]


class RegenerateSocialRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = ""
    platform: str = Field(..., description="substack, twitter or instagram")
    style_guide: str | None = Field(None, alias="styleGuide")


class SocialResponse(BaseModel):
    platform: str
    suggestions: list[str]


class StyleGuidesResponse(BaseModel):
    """Style guide texts; a missing file is an empty string."""

    headlines: str = ""
    socialMedia: str = ""
    copyEdit: str = ""
    claimFlag: str = ""
    factCheck: str = ""


class FetchDocRequest(BaseModel):
    url: str = ""


class FetchDocResponse(BaseModel):
    content: str
