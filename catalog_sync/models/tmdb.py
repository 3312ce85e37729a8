"""
TMDB Payload Models

Pydantic views over TMDB list, detail and export payloads. Movie and TV
payloads use different field names (title/name, release_date/first_air_date);
TMDBItem accepts both and converts to catalog entity fields.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _parse_date(value: Optional[str]) -> Optional[date]:
    """TMDB sends "" for unknown dates."""
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


class TMDBItem(BaseModel):
    """A movie, TV series, or trending entry as returned by TMDB."""
    id: int
    media_type: Optional[str] = None
    title: Optional[str] = None
    name: Optional[str] = None
    original_title: Optional[str] = None
    original_name: Optional[str] = None
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    release_date: Optional[str] = None
    first_air_date: Optional[str] = None
    vote_average: float = 0.0
    vote_count: int = 0
    popularity: float = 0.0
    genre_ids: List[int] = Field(default_factory=list)
    original_language: Optional[str] = None
    adult: bool = False
    origin_country: List[str] = Field(default_factory=list)
    number_of_seasons: Optional[int] = None
    number_of_episodes: Optional[int] = None

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def flatten_genres(cls, data: Any) -> Any:
        # Detail endpoints return genres as [{"id", "name"}] instead of genre_ids
        if isinstance(data, dict) and not data.get("genre_ids") and data.get("genres"):
            data = dict(data)
            data["genre_ids"] = [g["id"] for g in data["genres"] if isinstance(g, dict) and "id" in g]
        return data

    @field_validator("vote_average", "popularity", mode="before")
    @classmethod
    def none_to_zero_float(cls, value):
        return 0.0 if value is None else value

    @field_validator("vote_count", mode="before")
    @classmethod
    def none_to_zero_int(cls, value):
        return 0 if value is None else value

    @property
    def display_title(self) -> str:
        return self.title or self.name or ""

    @property
    def display_date(self) -> Optional[date]:
        return _parse_date(self.release_date or self.first_air_date)

    def _common_fields(self) -> Dict[str, Any]:
        return {
            "title": self.display_title,
            "overview": self.overview,
            "poster_path": self.poster_path,
            "backdrop_path": self.backdrop_path,
            "release_date": self.display_date,
            "vote_average": self.vote_average,
            "vote_count": self.vote_count,
            "popularity": self.popularity,
            "genre_ids": list(self.genre_ids),
            "original_language": self.original_language,
        }

    def to_catalog_fields(self, kind: str) -> Dict[str, Any]:
        """Column values for a Movie ("movie") or TVSeries ("tv") row."""
        fields = self._common_fields()
        fields["original_title"] = self.original_title or self.original_name

        if kind == "tv":
            fields.update({
                "first_air_date": _parse_date(self.first_air_date),
                "origin_country": list(self.origin_country),
                "number_of_seasons": self.number_of_seasons,
                "number_of_episodes": self.number_of_episodes,
            })
        else:
            fields["adult"] = self.adult

        return fields

    def to_trending_fields(self) -> Dict[str, Any]:
        fields = self._common_fields()
        fields["adult"] = self.adult
        return fields


class PopularPage(BaseModel):
    """One page of a popular list endpoint."""
    page: int = 1
    items: List[TMDBItem] = Field(default_factory=list)
    total_pages: int = 1
    total_results: int = 0


class ExportItem(BaseModel):
    """One line of a TMDB daily id export."""
    id: int
    adult: bool = False
    popularity: float = 0.0

    model_config = ConfigDict(extra="ignore")
