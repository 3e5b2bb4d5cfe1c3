"""Spec Loader: reads `<spec_id>.*.active.json` documents and caches the compiled spec.

Invariants:
    - A spec id is loaded from disk at most once per loader; later calls
      return the same DecisionSpec object
    - Schema errors and structural problems raise SpecValidationError; a
      missing file raises SpecNotFoundError
    - Authoring warnings (malformed rules, unsupported expressions) are logged,
      the spec still loads
    - With several active files for one id, the lexicographically first wins

Design Decisions:
    - File reads run in a worker thread (asyncio.to_thread) so the event loop
      never blocks on disk
    - One asyncio.Lock guards the cache so concurrent first requests read the
      file once
"""

import asyncio
import json
import logging
from pathlib import Path

from pydantic import ValidationError

from decision_router.core.errors import SpecNotFoundError, SpecValidationError
from decision_router.core.spec_model import DecisionSpec
from decision_router.core.spec_validation import spec_warnings, validate_spec
from decision_router.schemas.decision_spec import DecisionSpecDocument

logger = logging.getLogger(__name__)


class FileSystemSpecLoader:
    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self._cache: dict[str, DecisionSpec] = {}
        self._lock = asyncio.Lock()

    def find_active_file(self, spec_id: str) -> Path:
        matches = sorted(self.directory.glob(f"{spec_id}.*.active.json"))
        if not matches:
            raise SpecNotFoundError(spec_id)
        if len(matches) > 1:
            logger.warning(
                f"Multiple active specs found for {spec_id}, using {matches[0].name}",
                extra={"spec_id": spec_id},
            )
        return matches[0]

    async def load_active_spec(self, spec_id: str) -> DecisionSpec:
        cached = self._cache.get(spec_id)
        if cached is not None:
            return cached

        async with self._lock:
            cached = self._cache.get(spec_id)
            if cached is not None:
                return cached
            spec = await asyncio.to_thread(self._load_from_disk, spec_id)
            self._cache[spec_id] = spec
            return spec

    def _load_from_disk(self, spec_id: str) -> DecisionSpec:
        path = self.find_active_file(spec_id)
        logger.info(f"Loading spec from {path.name}", extra={"spec_id": spec_id})

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            document = DecisionSpecDocument.model_validate(raw)
        except json.JSONDecodeError as e:
            raise SpecValidationError(spec_id, [f"invalid JSON: {e.msg} (line {e.lineno})"])
        except ValidationError as e:
            raise SpecValidationError(spec_id, [
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ])

        if document.spec_id != spec_id:
            raise SpecValidationError(
                spec_id, [f"file declares spec_id '{document.spec_id}'"],
            )

        spec = document.to_domain()
        problems = validate_spec(spec)
        if problems:
            raise SpecValidationError(spec_id, problems)

        for warning in spec_warnings(spec):
            logger.warning(f"Spec {spec_id}: {warning}", extra={"spec_id": spec_id})

        logger.info(
            f"Loaded spec {spec.spec_id} v{spec.version}: {len(spec.traits)} traits, "
            f"{len(spec.outcomes)} outcomes",
            extra={"spec_id": spec_id},
        )
        return spec

    def clear_cache(self) -> None:
        self._cache.clear()
