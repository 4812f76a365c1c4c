"""Routers package."""

from . import (
    health,
    videos,
    comments,
    reactions,
    users,
    playlists,
    tweets,
    search,
)
