from tilecascade.events.bus import EventBus, GameEvent


def test_event_bus_emit_subscribe():
    bus = EventBus()
    received = {}

    def handler(sender, **kwargs):
        received.update(kwargs)

    bus.subscribe(GameEvent.SCORE_UPDATE, handler)
    bus.emit(GameEvent.SCORE_UPDATE, score=42, delta=12)

    assert received["score"] == 42
    assert received["delta"] == 12


def test_emit_without_listeners_is_noop():
    bus = EventBus()
    bus.emit(GameEvent.BOARD_STABLE, combo_count=1, score=0)
    assert bus.listener_count(GameEvent.BOARD_STABLE) == 0


def test_unsubscribe_stops_delivery():
    bus = EventBus()
    calls = []

    def handler(sender, **kwargs):
        calls.append(kwargs)

    bus.subscribe(GameEvent.MOVES_UPDATE, handler)
    bus.emit(GameEvent.MOVES_UPDATE, moves=1)
    bus.unsubscribe(GameEvent.MOVES_UPDATE, handler)
    bus.emit(GameEvent.MOVES_UPDATE, moves=2)
    assert calls == [{"moves": 1}]


def test_once_fires_a_single_time():
    bus = EventBus()
    calls = []
    bus.once(GameEvent.GAME_START, lambda sender, **kw: calls.append(sender))
    bus.emit(GameEvent.GAME_START)
    bus.emit(GameEvent.GAME_START)
    assert calls == [bus]
    assert bus.listener_count(GameEvent.GAME_START) == 0


def test_listener_count_and_clear():
    bus = EventBus()
    bus.subscribe(GameEvent.TICK, lambda sender, **kw: None)
    bus.subscribe(GameEvent.TICK, lambda sender, **kw: None)
    assert bus.listener_count(GameEvent.TICK) == 2
    bus.clear()
    assert bus.listener_count(GameEvent.TICK) == 0


def test_event_names_are_strings():
    assert GameEvent.SWAP_REQUEST == "swap_request"
    assert GameEvent("game_over") is GameEvent.GAME_OVER
