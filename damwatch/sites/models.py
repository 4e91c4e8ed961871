"""
Site registry boundary.

The list of monitored sites (dams) is supplied from outside the engine. This
module validates that list once, at the boundary, so the rest of the engine
can treat a Site as trusted and immutable.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from damwatch.core.errors import ConfigurationError, SiteNotFoundError
from damwatch.spatial.radius_utils import Coordinate


class Site(BaseModel):
    """A monitored location with fixed coordinates and metadata."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1, examples=["tehri"])
    name: str = Field(..., min_length=1, examples=["Tehri"])
    state: str = Field(
        default="",
        validation_alias=AliasChoices("state", "region"),
        description="Administrative region, used for landslide susceptibility",
    )
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    capacity: float = Field(default=0.0, ge=0.0, description="Storage capacity (TMC)")
    river: Optional[str] = None

    @field_validator("id", "name")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @property
    def region(self) -> str:
        return self.state

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    def summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "state": self.state,
            "coordinates": self.coordinate.to_dict(),
        }


def parse_sites(records: Iterable[Mapping[str, Any]]) -> List[Site]:
    """
    Validate raw registry records into Sites.

    Raises ConfigurationError on the first invalid record or duplicate id.
    """
    sites: List[Site] = []
    seen = set()
    for index, record in enumerate(records):
        try:
            site = Site.model_validate(record)
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ()))
            raise ConfigurationError(
                f"Invalid site record at index {index}: {first.get('msg')}",
                field=field or None,
                index=index,
            ) from exc
        if site.id in seen:
            raise ConfigurationError(
                f"Duplicate site id '{site.id}'", field="id", index=index,
            )
        seen.add(site.id)
        sites.append(site)
    return sites


def find_site(sites: Iterable[Site], site_id: str) -> Site:
    if not site_id:
        raise ConfigurationError("site id is required", field="site_id")
    for site in sites:
        if site.id == site_id:
            return site
    raise SiteNotFoundError(site_id)
