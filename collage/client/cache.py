"""
Optimistic client-side view of image ratings and favorites.

A user action is applied locally before the server confirms it. The exact
state held before the action is kept as a snapshot so a failed request can be
undone without arithmetic, and at most one rating request per image is in
flight at a time. Server truth arrives only through the next feed refresh.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)

RATING_TYPES = ("thumbs_up", "thumbs_down")


@dataclass(frozen=True)
class ImageState:
    id: str
    thumbs_up: int = 0
    thumbs_down: int = 0
    user_rating: Optional[str] = None
    is_favorited: bool = False

    @classmethod
    def from_view(cls, view: dict) -> "ImageState":
        return cls(
            id=str(view["id"]),
            thumbs_up=int(view.get("thumbs_up", 0)),
            thumbs_down=int(view.get("thumbs_down", 0)),
            user_rating=view.get("user_rating"),
            is_favorited=bool(view.get("is_favorited", False)),
        )

    def with_vote(self, rating_type: str) -> "ImageState":
        """Apply an exclusive vote: a new vote replaces the user's previous one."""
        if rating_type not in RATING_TYPES:
            raise ValueError(f"Invalid rating type: {rating_type!r}")
        if self.user_rating == rating_type:
            return self

        up, down = self.thumbs_up, self.thumbs_down
        if self.user_rating == "thumbs_up":
            up = max(0, up - 1)
        elif self.user_rating == "thumbs_down":
            down = max(0, down - 1)
        if rating_type == "thumbs_up":
            up += 1
        else:
            down += 1
        return replace(self, thumbs_up=up, thumbs_down=down, user_rating=rating_type)


class OptimisticImageCache:
    def __init__(self, views: Iterable[dict] = ()):
        self._states: Dict[str, ImageState] = {}
        self._rating_snapshots: Dict[str, ImageState] = {}
        self._favorite_snapshots: Dict[str, ImageState] = {}
        for view in views:
            state = ImageState.from_view(view)
            self._states[state.id] = state

    def get(self, image_id: str) -> Optional[ImageState]:
        return self._states.get(str(image_id))

    def __contains__(self, image_id) -> bool:
        return str(image_id) in self._states

    def __len__(self) -> int:
        return len(self._states)

    def _state_for(self, image_id: str) -> ImageState:
        # Images not fetched yet (e.g. just created) start from an empty state
        state = self._states.get(image_id)
        if state is None:
            state = ImageState(image_id)
            self._states[image_id] = state
        return state

    def rating_in_flight(self, image_id: str) -> bool:
        return str(image_id) in self._rating_snapshots

    def favorite_in_flight(self, image_id: str) -> bool:
        return str(image_id) in self._favorite_snapshots

    # Method: begin_rating()
    def begin_rating(self, image_id: str, rating_type: str) -> Optional[ImageState]:
        """Apply a vote locally.

        Returns the pre-update snapshot, or None when a rating request for
        this image is already pending and the click is dropped.
        """
        image_id = str(image_id)
        if image_id in self._rating_snapshots:
            logger.debug("Rating for %s already in flight, dropping click", image_id)
            return None
        snapshot = self._state_for(image_id)
        self._states[image_id] = snapshot.with_vote(rating_type)
        self._rating_snapshots[image_id] = snapshot
        return snapshot

    def commit_rating(self, image_id: str) -> None:
        # The optimistic value stands until the next refresh
        self._rating_snapshots.pop(str(image_id), None)

    def rollback_rating(self, image_id: str) -> None:
        image_id = str(image_id)
        snapshot = self._rating_snapshots.pop(image_id, None)
        if snapshot is None:
            return
        current = self._states.get(image_id)
        if current is None:
            return
        # Keep a favorite change made meanwhile, restore only the vote fields
        self._states[image_id] = replace(
            snapshot, is_favorited=current.is_favorited
        )

    # Method: begin_favorite()
    def begin_favorite(self, image_id: str, favorited: bool) -> Optional[ImageState]:
        image_id = str(image_id)
        if image_id in self._favorite_snapshots:
            return None
        snapshot = self._state_for(image_id)
        self._states[image_id] = replace(snapshot, is_favorited=favorited)
        self._favorite_snapshots[image_id] = snapshot
        return snapshot

    def commit_favorite(self, image_id: str) -> None:
        self._favorite_snapshots.pop(str(image_id), None)

    def rollback_favorite(self, image_id: str) -> None:
        image_id = str(image_id)
        snapshot = self._favorite_snapshots.pop(image_id, None)
        current = self._states.get(image_id)
        if snapshot is None or current is None:
            return
        self._states[image_id] = replace(current, is_favorited=snapshot.is_favorited)

    def reconcile(self, views: Iterable[dict]) -> None:
        """Adopt server state from a full feed refresh.

        Images with a request still pending keep their local state; other
        images missing from the feed are dropped.
        """
        fresh: Dict[str, ImageState] = {}
        for view in views:
            state = ImageState.from_view(view)
            if self.rating_in_flight(state.id) or self.favorite_in_flight(state.id):
                state = self._states.get(state.id, state)
            fresh[state.id] = state
        for image_id in list(self._rating_snapshots) + list(self._favorite_snapshots):
            if image_id not in fresh and image_id in self._states:
                fresh[image_id] = self._states[image_id]
        self._states = fresh
