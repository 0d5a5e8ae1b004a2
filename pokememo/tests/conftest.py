"""
Pytest fixtures for PokeMemo tests.
"""

import random

import pytest

from ..assets import StaticAssetProvider
from ..engine.controller import GameController
from ..engine.scheduler import VirtualScheduler
from ..engine.state import Difficulty, GameConfig, PlayerSetup
from .helpers import EventRecorder


@pytest.fixture
def scheduler() -> VirtualScheduler:
    """Manual clock starting at zero."""
    return VirtualScheduler()


@pytest.fixture
def provider() -> StaticAssetProvider:
    """Offline Kanto catalogue with a fixed sampling seed."""
    return StaticAssetProvider(rng=random.Random(7))


@pytest.fixture
def controller(provider, scheduler) -> GameController:
    """Controller with default settings and a seeded shuffle."""
    controller = GameController(provider, scheduler, rng=random.Random(42))
    yield controller
    controller.destroy()


@pytest.fixture
def recorder(controller) -> EventRecorder:
    return EventRecorder(controller.events)


@pytest.fixture
def two_player_config() -> GameConfig:
    return GameConfig(
        difficulty=Difficulty.EASY,
        players=[PlayerSetup(name="Ash"), PlayerSetup(name="Misty")],
    )


@pytest.fixture
def running_game(controller, two_player_config):
    """A two-player easy game, started. Returns the controller."""
    controller.init_game(two_player_config)
    controller.start_game()
    return controller
