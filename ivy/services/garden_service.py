from __future__ import annotations

import json
import logging
import threading
import time
from datetime import datetime, timezone

from ivy.core.exceptions import PersistenceError, PlantNotFoundError
from ivy.core.schemas import CareAction, GardenPlant, ImageInput, PlantCareGuide
from ivy.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class GardenStore:
    """
    The user's adopted plants, persisted as one JSON list under a single key.

    Every mutation rewrites the whole collection. A failed write raises
    ``PersistenceError`` but the in-memory collection keeps the change.
    Callers get copies; mutate through ``update`` and friends.
    """

    def __init__(self, kv_store: KeyValueStore, key: str = "myGarden"):
        self.kv_store = kv_store
        self.key = key
        self._lock = threading.RLock()
        self._plants: list[GardenPlant] = self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def _load(self) -> list[GardenPlant]:
        try:
            raw = self.kv_store.get(self.key)
            if not raw:
                return []
            records = json.loads(raw)
        except (OSError, ValueError) as e:
            logger.warning("Garden blob %r is corrupt, starting empty: %s", self.key, e)
            return []
        if not isinstance(records, list):
            logger.warning("Garden blob %r is not a list, starting empty", self.key)
            return []

        plants: list[GardenPlant] = []
        for record in records:
            if not isinstance(record, dict):
                logger.warning("Skipping garden record that is not an object: %r", record)
                continue
            try:
                plants.append(GardenPlant.from_dict(record))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed garden record: %s", e)
        logger.info("Loaded %s plant(s) from garden store", len(plants))
        return plants

    def _save(self) -> None:
        blob = json.dumps([p.to_dict() for p in self._plants])
        try:
            self.kv_store.set(self.key, blob)
        except OSError as e:
            logger.error("Failed to persist garden (%s plants): %s", len(self._plants), e)
            raise PersistenceError(f"Garden write failed: {e}") from e

    def _index(self, plant_id: int) -> int:
        for i, plant in enumerate(self._plants):
            if plant.id == plant_id:
                return i
        raise PlantNotFoundError(plant_id)

    # ------------------------------------------------------------------
    # Collection primitives
    # ------------------------------------------------------------------
    def list(self) -> list[GardenPlant]:
        with self._lock:
            return [p.copy() for p in self._plants]

    def get(self, plant_id: int) -> GardenPlant:
        with self._lock:
            return self._plants[self._index(plant_id)].copy()

    def add(self, plant: GardenPlant) -> None:
        with self._lock:
            if any(p.id == plant.id for p in self._plants):
                raise ValueError(f"Garden already has a plant with id {plant.id}")
            self._plants.append(plant.copy())
            self._save()

    def update(self, plant: GardenPlant) -> None:
        with self._lock:
            self._plants[self._index(plant.id)] = plant.copy()
            self._save()

    def remove(self, plant_id: int) -> None:
        with self._lock:
            self._index(plant_id)
            self._plants = [p for p in self._plants if p.id != plant_id]
            self._save()

    # ------------------------------------------------------------------
    # Garden actions
    # ------------------------------------------------------------------
    def new_id(self) -> int:
        with self._lock:
            candidate = int(time.time() * 1000)
            highest = max((p.id for p in self._plants), default=0)
            return max(candidate, highest + 1)

    def adopt(self, guide: PlantCareGuide, image: ImageInput | str) -> GardenPlant:
        image_url = image.to_data_url() if isinstance(image, ImageInput) else image
        with self._lock:
            plant = GardenPlant(
                id=self.new_id(),
                name=guide.plant_name,
                image=image_url,
                summary=guide.summary,
                care_instructions=list(guide.instructions),
            )
            self.add(plant)
        logger.info("🌱 Added %s to the garden (id=%s)", plant.name, plant.id)
        return plant.copy()

    def log_care_event(self, plant_id: int, action: CareAction, when: datetime | None = None) -> GardenPlant:
        when = when or datetime.now(timezone.utc)
        with self._lock:
            plant = self.get(plant_id)
            log = plant.log_for(action)
            if log and _sort_key(when) < _sort_key(log[-1]):
                raise ValueError(f"{action.value} event {when.isoformat()} is earlier than the last one")
            log.append(when)
            self.update(plant)
            return plant

    def update_notes(self, plant_id: int, notes: str) -> GardenPlant:
        with self._lock:
            plant = self.get(plant_id)
            plant.notes = notes
            self.update(plant)
            return plant


def _sort_key(ts: datetime) -> datetime:
    # naive entries are local wall-clock time
    return ts if ts.tzinfo is not None else ts.astimezone()
