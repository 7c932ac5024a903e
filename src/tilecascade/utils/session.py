from esper import World

from tilecascade.components.session import Session


def get_or_create_session(world: World) -> Session:
    """Return the shared Session component, creating it if absent."""
    existing = list(world.get_component(Session))
    if existing:
        return existing[0][1]
    world.create_entity(Session())
    return list(world.get_component(Session))[0][1]
