"""The Planet entity and its in-memory repository."""

import threading
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PlanetInput(BaseModel):
    """Writable planet fields, as sent by clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = ""
    is_giant: bool = False
    discovery_date: datetime | None = None
    mass: float
    radius: float
    number_of_satelites: int = 0


class Planet(PlanetInput):
    """A stored planet."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = Field(default_factory=_now)


class PlanetRepository:
    """Keeps planets in memory, in insertion order."""

    def __init__(self):
        self._planets: dict[str, Planet] = {}
        self._lock = threading.Lock()

    def list(self) -> list[Planet]:
        with self._lock:
            return list(self._planets.values())

    def get(self, planet_id: str) -> Planet | None:
        with self._lock:
            return self._planets.get(planet_id)

    def create(self, data: PlanetInput) -> Planet:
        planet = Planet(**data.model_dump())
        with self._lock:
            self._planets[planet.id] = planet
        return planet

    def update(self, planet_id: str, data: PlanetInput) -> Planet | None:
        with self._lock:
            current = self._planets.get(planet_id)
            if current is None:
                return None
            planet = current.model_copy(update=data.model_dump())
            self._planets[planet_id] = planet
            return planet

    def delete(self, planet_id: str) -> bool:
        with self._lock:
            return self._planets.pop(planet_id, None) is not None
