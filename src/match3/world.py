import random

from esper import World

from match3.components.engine_config import EngineConfig
from match3.components.engine_state import EngineState
from match3.components.token_factory import TokenFactory


def create_world(
    *,
    config: EngineConfig | None = None,
    rng: random.Random | None = None,
) -> World:
    """Build the ECS world holding engine-wide singletons.

    The board entity itself is created by ``BoardSystem``; every random draw
    (refill, shuffle, generation) goes through ``world.random`` so tests can
    seed or replace it.
    """
    world = World()
    setattr(world, "random", rng or random.Random())
    config = config or EngineConfig()
    world.create_entity(
        config,
        TokenFactory(kinds=list(config.kinds)),
        EngineState(),
    )
    return world
