"""Pydantic schemas for the asset tree endpoints."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake-case in Python, camelCase on the wire (matches the table columns)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AssetItem(CamelModel):
    """A node of the Site → Plant → Train → Unit → Signal Container → Signal tree."""
    id: str
    name: str
    type: str = Field(description="Site | Plant | Train | Unit | Signal Container | Signal")
    parent_id: str | None = Field(default=None, description="null for root (Site) nodes")
    children: list["AssetItem"] | None = Field(
        default=None, description="Omitted from responses unless requested with expand=children"
    )


class AssetPathResponse(CamelModel):
    """Breadcrumb path, root first."""
    assets: list[AssetItem]
    truncated: bool = Field(
        description="True when the depth bound was hit before reaching a root"
    )
