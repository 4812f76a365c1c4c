"""Models package."""

from .user import User
from .video import Video
from .comment import Comment
from .reaction import Reaction
from .subscription import Subscription
from .playlist import Playlist
from .tweet import Tweet
from .search_query import SearchQuery
