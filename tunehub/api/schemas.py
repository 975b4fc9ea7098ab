"""
Pydantic models (request/response shapes) for API endpoints.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, EmailStr, Field, field_validator

T = TypeVar("T")


def _required_text(value: Optional[str], label: str) -> Optional[str]:
    """Strip surrounding whitespace; a present value must not be blank."""
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError(f"{label} is required")
    return value


class AuthRegisterRequest(BaseModel):
    email: EmailStr = Field(..., description="User email address (unique).")
    password: str = Field(..., min_length=6, description="User password (min 6 chars).")
    username: str = Field(..., min_length=3, max_length=100, description="Display name (min 3 chars).")
    role: Literal["user", "artist"] = Field("user", description="Account role, fixed at creation.")


class AuthLoginRequest(BaseModel):
    email: EmailStr = Field(..., description="User email address.")
    password: str = Field(..., description="User password.")


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    username: str
    role: str


class UserResponse(UserSummary):
    created_at: datetime


class AuthTokenResponse(BaseModel):
    token: str = Field(..., description="JWT access token.")
    token_type: str = Field("bearer", description="Token type for Authorization header.")
    user: UserSummary


class UserUpdateRequest(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=100)
    email: Optional[EmailStr] = None


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)


class PaginationInfo(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class Page(BaseModel, Generic[T]):
    items: List[T]
    pagination: PaginationInfo


class MessageResponse(BaseModel):
    message: str


class ArtistResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    artist_name: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    verified: bool
    created_at: datetime


class ArtistProfileUpdate(BaseModel):
    artist_name: Optional[str] = Field(None, min_length=1, max_length=255)
    bio: Optional[str] = None
    avatar_url: Optional[AnyHttpUrl] = None

    @field_validator("artist_name")
    @classmethod
    def _artist_name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _required_text(value, "Artist name")


class SongResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    artist_id: uuid.UUID
    album_id: Optional[uuid.UUID] = None
    title: str
    duration: int
    file_url: str
    cover_url: Optional[str] = None
    genre: Optional[str] = None
    plays: int
    created_at: datetime
    artist_name: Optional[str] = None
    album_title: Optional[str] = None


class SongCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    duration: int = Field(..., ge=1, description="Duration in seconds.")
    file_url: AnyHttpUrl
    cover_url: Optional[AnyHttpUrl] = None
    genre: Optional[str] = Field(None, max_length=100)
    album_id: Optional[uuid.UUID] = None
    artist_id: Optional[uuid.UUID] = Field(None, description="Owning artist; honored for admins only.")

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _required_text(value, "Title")


class SongUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    genre: Optional[str] = Field(None, max_length=100)
    cover_url: Optional[AnyHttpUrl] = None
    album_id: Optional[uuid.UUID] = None
    plays: Optional[int] = Field(None, ge=0, description="Play counter correction (admin only).")

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _required_text(value, "Title")


class SongCreatedResponse(BaseModel):
    id: uuid.UUID
    message: str
    song: SongResponse


class AlbumResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    artist_id: uuid.UUID
    title: str
    cover_url: Optional[str] = None
    release_date: date
    created_at: datetime
    artist_name: Optional[str] = None
    song_count: Optional[int] = None
    total_plays: Optional[int] = None


class AlbumDetailResponse(BaseModel):
    album: AlbumResponse
    songs: List[SongResponse]


class AlbumCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    cover_url: Optional[AnyHttpUrl] = None
    release_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _required_text(value, "Title")


class AlbumUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    cover_url: Optional[AnyHttpUrl] = None
    release_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _required_text(value, "Title")


class AlbumCreatedResponse(BaseModel):
    message: str
    album: AlbumResponse


class PlaylistResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    is_public: bool
    created_at: datetime


class PlaylistCreateRequest(BaseModel):
    name: str = Field(..., max_length=100, description="Playlist name (1-100 chars).")
    is_public: bool = False

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        return _required_text(value, "Playlist name")


class PlaylistUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    is_public: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _required_text(value, "Playlist name")


class PlaylistCreatedResponse(BaseModel):
    id: uuid.UUID
    message: str


class PlaylistSongAdd(BaseModel):
    song_id: uuid.UUID


class PlaylistTrack(SongResponse):
    position: int


class LikedSong(SongResponse):
    liked_at: datetime


class FollowingResponse(BaseModel):
    following: bool


class FollowedArtist(ArtistResponse):
    followed_at: datetime
    song_count: int


class FollowerCountResponse(BaseModel):
    follower_count: int


class TrackPlayRequest(BaseModel):
    duration_played: int = Field(0, ge=0, description="Seconds listened.")
    completed: bool = False


class HistoryEntry(BaseModel):
    id: uuid.UUID
    song_id: uuid.UUID
    played_at: datetime
    duration_played: int
    completed: bool
    title: str
    cover_url: Optional[str] = None
    duration: int
    artist_name: str


class RecentSong(SongResponse):
    played_at: datetime


class TopSong(SongResponse):
    play_count: int


class TopArtist(ArtistResponse):
    play_count: int
    unique_songs: int


class ListeningStats(BaseModel):
    total_plays: int
    total_minutes: int
    unique_songs: int
    unique_artists: int
    top_genre: Optional[str] = None
    period_days: int


class TrendingSong(SongResponse):
    recent_plays: int


class SimilarSong(SongResponse):
    similarity_score: int


class DailyPlays(BaseModel):
    date: date
    total_plays: int


class ArtistStats(BaseModel):
    total_songs: int
    total_plays: int
    avg_plays: float


class ArtistAnalyticsResponse(BaseModel):
    analytics: List[DailyPlays]
    stats: ArtistStats


class VerifyArtistRequest(BaseModel):
    verified: bool


class AdminArtist(ArtistResponse):
    email: str
    username: str


class PlatformStats(BaseModel):
    users: int
    artists: int
    songs: int
    totalPlays: int


class UploadResponse(BaseModel):
    message: str
    url: str
    key: str
    size_bytes: int
    content_type: str


class DeleteUploadRequest(BaseModel):
    key: str = Field(..., min_length=1)
