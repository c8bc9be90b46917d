from pydantic import BaseModel, Field


class ArtistPlay(BaseModel):
    """One entry of a user's top artists."""

    name: str
    playcount: int | None = None


class TrackPlay(BaseModel):
    """One entry of a user's top tracks."""

    artist_name: str
    track_name: str
    playcount: int | None = None


class TopArtists(BaseModel):
    artists: list[ArtistPlay] = Field(default_factory=list)


class TopTracks(BaseModel):
    tracks: list[TrackPlay] = Field(default_factory=list)
