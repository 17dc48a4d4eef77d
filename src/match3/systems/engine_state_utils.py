from esper import World

from match3.components.engine_state import EngineState


def get_or_create_engine_state(world: World) -> EngineState:
    """Return the shared EngineState component, creating it if absent."""
    existing = list(world.get_component(EngineState))
    if existing:
        return existing[0][1]
    world.create_entity(EngineState())
    return list(world.get_component(EngineState))[0][1]
