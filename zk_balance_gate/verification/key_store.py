"""
Verification key store with per-circuit single-flight loading.

A store instance owns its cache; build a new instance to start empty. Keys
are immutable once loaded and are never re-fetched for the life of the
store. A failed or empty fetch is not cached, so a key published later is
picked up on the next call.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Protocol

import trio

from .circuit import TOKEN_BALANCE_CIRCUIT
from .config import KEY_FETCH_TIMEOUT, MAX_VK_BYTES
from .exceptions import InvalidInputError, KeySourceError
from .types import VerificationKey

logger = logging.getLogger(__name__)

DEFAULT_KEY_OBJECT = "verification_key.json"
DEFAULT_KEY_NAMES: Mapping[str, str] = {
    TOKEN_BALANCE_CIRCUIT.key_id: DEFAULT_KEY_OBJECT,
}


class KeySource(Protocol):
    """Backing store for verification key JSON."""

    name: str

    async def fetch(self, circuit_id: str) -> Optional[Mapping[str, Any]]:
        """
        Return the key JSON, or None if no key is published.

        Raises:
            KeySourceError: If the source could not be read
        """
        ...


class StaticKeySource:
    """Keys embedded in the process (bundled resources, tests)."""

    name = "static"

    def __init__(self, keys: Mapping[str, Mapping[str, Any]]) -> None:
        self._keys = dict(keys)

    async def fetch(self, circuit_id: str) -> Optional[Mapping[str, Any]]:
        return self._keys.get(circuit_id)


class FileKeySource:
    """Keys stored as JSON files in a directory."""

    name = "file"

    def __init__(
        self,
        base_dir: Path | str,
        names: Optional[Mapping[str, str]] = None,
        max_bytes: int = MAX_VK_BYTES,
    ) -> None:
        self._base_dir = Path(base_dir)
        self._names = dict(DEFAULT_KEY_NAMES if names is None else names)
        self._max_bytes = max_bytes

    def candidates(self, circuit_id: str) -> tuple[Path, ...]:
        names = []
        if circuit_id in self._names:
            names.append(self._names[circuit_id])
        safe_id = circuit_id.replace("@", "_").replace("/", "_")
        names.append(f"{safe_id}.json")
        return tuple(self._base_dir / name for name in names)

    async def fetch(self, circuit_id: str) -> Optional[Mapping[str, Any]]:
        path = await _first_existing(self.candidates(circuit_id))
        if path is None:
            return None
        try:
            stat = await trio.Path(path).stat()
            if stat.st_size > self._max_bytes:
                raise KeySourceError(f"{path} exceeds {self._max_bytes} bytes")
            text = await trio.Path(path).read_text(encoding="utf-8")
            return json.loads(text)
        except OSError as exc:
            raise KeySourceError(f"cannot read {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise KeySourceError(f"malformed JSON in {path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise KeySourceError(f"{path} is not UTF-8: {exc}") from exc


async def _first_existing(candidates: Iterable[Path]) -> Optional[Path]:
    for path in candidates:
        if await trio.Path(path).is_file():
            return path
    return None


@dataclass
class _Flight:
    done: trio.Event = field(default_factory=trio.Event)
    key: Optional[VerificationKey] = None
    aborted: bool = False


class VerificationKeyStore:
    """
    Lazily loaded, process-lifetime cache of verification keys.

    Concurrent first loads of one circuit id share a single fetch: the first
    caller fetches, later callers wait on its result. Already-cached keys are
    returned without suspension.
    """

    def __init__(
        self,
        source: Optional[KeySource],
        *,
        fetch_timeout: float = KEY_FETCH_TIMEOUT,
    ) -> None:
        self._source = source
        self._fetch_timeout = fetch_timeout
        self._keys: Dict[str, VerificationKey] = {}
        self._inflight: Dict[str, _Flight] = {}
        self._fetches: Dict[str, int] = {}

    @property
    def source_name(self) -> Optional[str]:
        return None if self._source is None else self._source.name

    def cached(self, circuit_id: str) -> Optional[VerificationKey]:
        return self._keys.get(circuit_id)

    def fetch_count(self, circuit_id: str) -> int:
        return self._fetches.get(circuit_id, 0)

    async def load(self, circuit_id: str) -> Optional[VerificationKey]:
        """
        Return the key for ``circuit_id``, or None if none can be obtained.

        Absence is a normal operating mode (structural-only verification),
        so source failures are logged and reported as None.
        """
        while True:
            cached = self._keys.get(circuit_id)
            if cached is not None:
                return cached
            if self._source is None:
                return None
            flight = self._inflight.get(circuit_id)
            if flight is None:
                break
            await flight.done.wait()
            if not flight.aborted:
                return flight.key

        flight = _Flight()
        self._inflight[circuit_id] = flight
        try:
            key = await self._fetch(circuit_id)
        except BaseException:
            # Waiters retry with their own fetch instead of inheriting our
            # cancellation.
            flight.aborted = True
            raise
        else:
            if key is not None:
                self._keys[circuit_id] = key
            flight.key = key
            return key
        finally:
            del self._inflight[circuit_id]
            flight.done.set()

    async def _fetch(self, circuit_id: str) -> Optional[VerificationKey]:
        assert self._source is not None
        self._fetches[circuit_id] = self._fetches.get(circuit_id, 0) + 1
        try:
            with trio.fail_after(self._fetch_timeout):
                raw = await self._source.fetch(circuit_id)
        except trio.TooSlowError:
            logger.warning(
                "verification key fetch for %s timed out after %.1fs (source=%s)",
                circuit_id,
                self._fetch_timeout,
                self._source.name,
            )
            return None
        except KeySourceError as exc:
            logger.warning(
                "verification key for %s unavailable (source=%s): %s",
                circuit_id,
                self._source.name,
                exc,
            )
            return None

        if raw is None:
            logger.info("no verification key published for %s", circuit_id)
            return None

        try:
            key = VerificationKey.parse(raw)
        except InvalidInputError as exc:
            logger.warning("malformed verification key for %s: %s", circuit_id, exc.detail)
            return None

        logger.info(
            "loaded verification key for %s from %s (sha256=%s)",
            circuit_id,
            self._source.name,
            key.fingerprint[:16],
        )
        return key
