from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List

from ..errors import StoreUnavailableError
from ..models import Story
from ..utils.logging import get_logger
from .base import InMemoryStoryStore

logger = get_logger("nm.store.json")


class JsonStoryStore(InMemoryStoryStore):
    """JSON-backed story store, one file per story under ``store_dir``.

    Stories are loaded into memory at start-up. A committed transaction
    writes only the stories it touched (``<story_id>.json``) and removes the
    files of stories it deleted. Each file is replaced atomically so readers
    never observe a partial write.
    """

    def __init__(self, store_dir: Path | str = "./.cache/stories") -> None:
        super().__init__()
        self.store_dir = Path(store_dir)
        self._load()

    def _file_for(self, story_id: str) -> Path:
        return self.store_dir / f"{story_id}.json"

    def _load(self) -> None:
        if self.store_dir.exists() and not self.store_dir.is_dir():
            raise StoreUnavailableError(f"Story store {self.store_dir} is not a directory")
        self.store_dir.mkdir(parents=True, exist_ok=True)

        count = 0
        for file_path in sorted(self.store_dir.glob("*.json")):
            try:
                story = Story.from_dict(json.loads(file_path.read_text(encoding="utf-8")))
            except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
                raise StoreUnavailableError(f"Cannot read story file {file_path}: {exc}") from exc
            self._stories[story.id] = story
            self._hash_index[story.content_hash] = story.id
            count += 1
        logger.debug("Loaded %d stor(ies) from %s", count, self.store_dir)

    def _commit(self, story_ids: List[str]) -> None:
        # Stage every write before replacing anything, so an I/O error leaves the old files in place
        staged: List[tuple[Path, Path]] = []
        removed: List[Path] = []
        try:
            for story_id in story_ids:
                story = self._stories.get(story_id)
                target = self._file_for(story_id)
                if story is None:
                    removed.append(target)
                    continue
                tmp_path = target.with_suffix(".json.tmp")
                tmp_path.write_text(json.dumps(story.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
                staged.append((tmp_path, target))
            for tmp_path, target in staged:
                os.replace(tmp_path, target)
            for target in removed:
                target.unlink(missing_ok=True)
        except OSError as exc:
            for tmp_path, _ in staged:
                tmp_path.unlink(missing_ok=True)
            raise StoreUnavailableError(f"Cannot write story store {self.store_dir}: {exc}") from exc
