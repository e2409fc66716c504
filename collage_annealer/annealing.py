"""Generic simulated annealing with linear cooling and best-state tracking."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

import numpy as np

from collage_annealer.errors import PreconditionViolation

logger = logging.getLogger(__name__)


class Annealable(Protocol):
    """Anything the annealer can search over."""

    def energy(self) -> float: ...

    def random_neighbor(
        self, temperature: float, rng: np.random.Generator,
    ) -> Annealable: ...


S = TypeVar("S", bound=Annealable)


@dataclass(frozen=True)
class StateEnergy(Generic[S]):
    state: S
    energy: float

    @classmethod
    def of(cls, state: S) -> StateEnergy[S]:
        return cls(state, float(state.energy()))


class Annealer(Generic[S]):
    """Threshold-accepting annealer.

    At step ``k`` of ``steps`` the temperature is
    ``max_temperature * (1 - (k + 1) / steps)``, reaching zero on the last
    step. A neighbour replaces the current state when its energy is at most
    ``temperature`` worse. The walk may drift uphill, so the lowest-energy
    state seen is tracked separately and returned.
    """

    def __init__(
        self,
        start: S,
        max_temperature: float,
        rng: np.random.Generator,
    ) -> None:
        self.current: StateEnergy[S] = StateEnergy.of(start)
        self.best: StateEnergy[S] = self.current
        self.max_temperature = max_temperature
        self.rng = rng
        self.accepted = 0

    def temperature(self, step: int, steps: int) -> float:
        return self.max_temperature * (1.0 - (step + 1) / steps)

    @staticmethod
    def accepts(energy: float, neighbor_energy: float, temperature: float) -> bool:
        return neighbor_energy - energy <= temperature

    def step(self, temperature: float) -> None:
        neighbor = StateEnergy.of(
            self.current.state.random_neighbor(temperature, self.rng)
        )
        if neighbor.energy < self.best.energy:
            self.best = neighbor
        if self.accepts(self.current.energy, neighbor.energy, temperature):
            self.current = neighbor
            self.accepted += 1

    def anneal(self, steps: int) -> StateEnergy[S]:
        """Run *steps* annealing steps and return the best state seen.

        Raises:
            PreconditionViolation: if ``steps`` is zero.
        """
        if steps <= 0:
            raise PreconditionViolation("annealing needs at least one step")

        start_energy = self.current.energy
        t0 = time.perf_counter()
        for k in range(steps):
            self.step(self.temperature(k, steps))

        logger.debug(
            "anneal    | steps=%d  energy %.3f -> %.3f  accepted=%d  (%.2f s)",
            steps, start_energy, self.best.energy, self.accepted,
            time.perf_counter() - t0,
        )
        return self.best
