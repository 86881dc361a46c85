"""Pydantic records returned by the photosets API calls."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class Photoset(BaseModel):
    id: str = Field(..., description="Photoset ID")
    title: Optional[str] = Field(None, description="Photoset title")
    description: Optional[str] = Field(None, description="Photoset description (may contain limited HTML)")
    primary: Optional[str] = Field(None, description="ID of the primary photo")
    owner: Optional[str] = Field(None, description="NSID of the owner")
    username: Optional[str] = None
    secret: Optional[str] = None
    server: Optional[str] = None
    farm: Optional[str] = None
    photos_count: Optional[int] = Field(None, description="Number of photos in the set")
    videos_count: Optional[int] = Field(None, description="Number of videos in the set")
    count_views: Optional[int] = None
    date_create: Optional[str] = None
    date_update: Optional[str] = None
    url: Optional[str] = Field(None, description="Photoset URL, when the service returns one")


class Photo(BaseModel):
    id: str = Field(..., description="Photo ID")
    secret: Optional[str] = None
    server: Optional[str] = None
    farm: Optional[str] = None
    title: Optional[str] = None
    owner: Optional[str] = None
    ownername: Optional[str] = None
    is_primary: bool = False
    is_public: Optional[bool] = None
    is_friend: Optional[bool] = None
    is_family: Optional[bool] = None
    media: Optional[str] = Field(None, description="'photo' or 'video'")
    extras: Dict[str, str] = Field(default_factory=dict, description="Every other attribute returned for the photo")

    @property
    def page_url(self) -> Optional[str]:
        if not self.owner:
            return None
        return f"https://www.flickr.com/photos/{self.owner}/{self.id}/"


class PhotosList(BaseModel):
    """One page of photos plus the pagination metadata."""

    photos: List[Photo] = Field(default_factory=list)
    page: Optional[int] = None
    per_page: Optional[int] = None
    pages: Optional[int] = None
    total: Optional[int] = None
    photoset_id: Optional[str] = None
    owner: Optional[str] = None
    format: str = "xml"
    content: Optional[str] = Field(None, description="Raw response body for non-XML formats")

    def detach_photos(self) -> List[Photo]:
        """Hand over the photos, leaving this list empty."""
        photos = self.photos
        self.photos = []
        return photos


class PhotoContext(BaseModel):
    kind: str = Field(..., description="'prev' or 'next'")
    id: str
    secret: Optional[str] = None
    server: Optional[str] = None
    farm: Optional[str] = None
    title: Optional[str] = None
    url: Optional[str] = None
    thumb: Optional[str] = None
    media: Optional[str] = None


class ContextPair(BaseModel):
    """Neighbours of a photo within one photoset; either may be absent."""

    previous: Optional[PhotoContext] = None
    next: Optional[PhotoContext] = None

    def as_list(self) -> List[Optional[PhotoContext]]:
        """Return the two slots as ``[previous, next]``."""
        return [self.previous, self.next]
