from __future__ import annotations

import copy
import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterator, List, Optional

from ..errors import DuplicateStoryError, InconsistentMergeError, StoreUnavailableError
from ..models import ConfidenceLevel, Signal, SourceRecord, Story


class StoryStore(ABC):
    """Contract consumed by the ingestion merger.

    Implementations must enforce at most one story per content hash and give
    ``transaction()`` all-or-nothing semantics.
    """

    @abstractmethod
    def find_story_by_hash(self, content_hash: str) -> Optional[Story]:
        """Return the story stored under ``content_hash`` or None."""

    @abstractmethod
    def get_story(self, story_id: str) -> Optional[Story]:
        """Return the story with ``story_id`` or None."""

    @abstractmethod
    def create_story(
        self,
        *,
        content_hash: str,
        headline: str,
        summary: str,
        category: str,
        first_published_at: datetime,
        created_at: datetime,
        source: SourceRecord,
        country_code: Optional[str] = None,
        is_global: bool = False,
        image_url: Optional[str] = None,
    ) -> Story:
        """Create a story with one attached source; raises DuplicateStoryError on hash conflict."""

    @abstractmethod
    def upsert_source(self, story_id: str, source: SourceRecord) -> bool:
        """Attach ``source`` unless its URL is already attached. Returns True when inserted."""

    @abstractmethod
    def increment_and_touch(self, story_id: str, touched_at: datetime, image_url: Optional[str] = None) -> Story:
        """Increment source_count, bump last_updated_at and fill a missing image."""

    @abstractmethod
    def classify_story(
        self,
        story_id: str,
        *,
        verified_source_count: int,
        confidence: ConfidenceLevel,
        signal: Signal,
    ) -> None:
        """Record the trust and maturity labels computed for the story's current sources."""

    @abstractmethod
    def delete_story(self, story_id: str) -> None:
        """Remove a single story."""

    @abstractmethod
    def delete_stories_older_than(self, cutoff: datetime) -> int:
        """Remove stories first published before ``cutoff``; returns the number removed."""

    @abstractmethod
    def list_stories(self) -> List[Story]:
        """Return all stories, most recently updated first."""

    @abstractmethod
    def transaction(self):
        """Context manager grouping calls into one atomic unit."""


class InMemoryStoryStore(StoryStore):
    """Dictionary-backed store guarded by a re-entrant lock.

    Every mutating call joins the enclosing transaction or opens its own.
    Before a story or hash entry is first changed inside the outermost
    transaction its prior state goes into an undo journal; on error only the
    journaled entries are restored, so the cost of a transaction follows the
    stories it touches, not the size of the store.
    Returned stories are copies; mutate only through the store API.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._depth = 0
        self._stories: Dict[str, Story] = {}
        self._hash_index: Dict[str, str] = {}
        self._undo_stories: Dict[str, Optional[Story]] = {}
        self._undo_hashes: Dict[str, Optional[str]] = {}

    # ---------------- Transactions -----------------
    @contextmanager
    def transaction(self) -> Iterator["InMemoryStoryStore"]:
        with self._lock:
            outermost = self._depth == 0
            self._depth += 1
            try:
                yield self
                if outermost:
                    touched = list(self._undo_stories)
                    self._check_consistency(touched)
                    self._commit(touched)
            except BaseException:
                if outermost:
                    self._rollback()
                raise
            finally:
                self._depth -= 1
                if outermost:
                    self._undo_stories.clear()
                    self._undo_hashes.clear()

    def _journal_story(self, story_id: str) -> None:
        if story_id not in self._undo_stories:
            current = self._stories.get(story_id)
            self._undo_stories[story_id] = copy.deepcopy(current) if current is not None else None

    def _set_hash(self, content_hash: str, story_id: Optional[str]) -> None:
        if content_hash not in self._undo_hashes:
            self._undo_hashes[content_hash] = self._hash_index.get(content_hash)
        if story_id is None:
            self._hash_index.pop(content_hash, None)
        else:
            self._hash_index[content_hash] = story_id

    def _rollback(self) -> None:
        for story_id, original in self._undo_stories.items():
            if original is None:
                self._stories.pop(story_id, None)
            else:
                self._stories[story_id] = original
        for content_hash, original_id in self._undo_hashes.items():
            if original_id is None:
                self._hash_index.pop(content_hash, None)
            else:
                self._hash_index[content_hash] = original_id

    def _check_consistency(self, story_ids: List[str]) -> None:
        for story_id in story_ids:
            story = self._stories.get(story_id)
            if story is None:
                continue
            if story.source_count != len(story.sources):
                raise InconsistentMergeError(
                    f"Story {story.id} has source_count={story.source_count} but {len(story.sources)} source(s)"
                )
            if story.verified_source_count > story.source_count:
                raise InconsistentMergeError(
                    f"Story {story.id} has more verified sources ({story.verified_source_count}) than sources"
                )

    def _commit(self, story_ids: List[str]) -> None:
        """Hook for persistent subclasses; called once per outermost transaction with the touched ids."""

    # ---------------- Reads -----------------
    def find_story_by_hash(self, content_hash: str) -> Optional[Story]:
        with self._lock:
            story_id = self._hash_index.get(content_hash)
            return copy.deepcopy(self._stories[story_id]) if story_id else None

    def get_story(self, story_id: str) -> Optional[Story]:
        with self._lock:
            story = self._stories.get(story_id)
            return copy.deepcopy(story) if story else None

    def list_stories(self) -> List[Story]:
        with self._lock:
            stories = [copy.deepcopy(s) for s in self._stories.values()]
        stories.sort(key=lambda s: s.last_updated_at, reverse=True)
        return stories

    # ---------------- Writes -----------------
    def _writable(self, story_id: str) -> Story:
        story = self._stories.get(story_id)
        if story is None:
            raise StoreUnavailableError(f"Story {story_id} not found")
        self._journal_story(story_id)
        return story

    def create_story(
        self,
        *,
        content_hash: str,
        headline: str,
        summary: str,
        category: str,
        first_published_at: datetime,
        created_at: datetime,
        source: SourceRecord,
        country_code: Optional[str] = None,
        is_global: bool = False,
        image_url: Optional[str] = None,
    ) -> Story:
        with self.transaction():
            if content_hash in self._hash_index:
                raise DuplicateStoryError(content_hash)
            story = Story(
                id=uuid.uuid4().hex,
                content_hash=content_hash,
                headline=headline,
                summary=summary,
                category=category,
                country_code=country_code,
                is_global=is_global,
                first_published_at=first_published_at,
                last_updated_at=max(created_at, first_published_at),
                image_url=image_url,
                source_count=1,
                sources=[source],
            )
            self._journal_story(story.id)
            self._stories[story.id] = story
            self._set_hash(content_hash, story.id)
            return copy.deepcopy(story)

    def upsert_source(self, story_id: str, source: SourceRecord) -> bool:
        with self.transaction():
            if self._stories.get(story_id) is not None and self._stories[story_id].has_source_url(source.source_url):
                return False
            self._writable(story_id).sources.append(source)
            return True

    def increment_and_touch(self, story_id: str, touched_at: datetime, image_url: Optional[str] = None) -> Story:
        with self.transaction():
            story = self._writable(story_id)
            story.source_count += 1
            story.last_updated_at = max(touched_at, story.first_published_at)
            if image_url and not story.image_url:
                story.image_url = image_url
            return copy.deepcopy(story)

    def classify_story(
        self,
        story_id: str,
        *,
        verified_source_count: int,
        confidence: ConfidenceLevel,
        signal: Signal,
    ) -> None:
        with self.transaction():
            story = self._writable(story_id)
            story.verified_source_count = verified_source_count
            story.confidence = confidence
            story.signal = signal

    def delete_story(self, story_id: str) -> None:
        with self.transaction():
            story = self._stories.pop(story_id, None)
            if story is None:
                return
            # The removed object is never mutated again, so it serves as its own undo copy
            self._undo_stories.setdefault(story_id, story)
            if self._hash_index.get(story.content_hash) == story_id:
                self._set_hash(story.content_hash, None)

    def delete_stories_older_than(self, cutoff: datetime) -> int:
        with self.transaction():
            expired = [s.id for s in self._stories.values() if s.first_published_at < cutoff]
            for story_id in expired:
                self.delete_story(story_id)
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._stories)
