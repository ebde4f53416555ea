import random

import pytest

from partyhub.domain.hub.handlers import (
    handle_choose_game,
    handle_hub_disconnect,
    handle_join_hub,
    handle_leave,
    handle_leave_game,
    handle_refresh_hub,
    handle_register_tv,
    handle_set_name,
    handle_set_ready,
    handle_start_game,
    handle_tv_control,
)
from partyhub.domain.hub.service import HubService
from partyhub.domain.trivia.runner import RoundTimings
from partyhub.store.hub import HubState, clean_name
from partyhub.transport.dispatcher import dispatch_hub_message
from partyhub.transport.protocols import (
    InChooseGame,
    InHubStartGame,
    InJoinHub,
    InLeave,
    InLeaveGame,
    InRefreshHub,
    InRegisterTV,
    InSetName,
    InSetReady,
    InTvControl,
)


class FakePacks:
    def load(self, game_id):
        return []


class FakeBroadcaster:
    def __init__(self):
        self.sent = []

    async def broadcast(self, event, exclude=None):
        self.sent.append(event)

    async def send_to(self, conn_id, event):
        self.sent.append(event)


class FakeApp:
    def __init__(self, hub):
        self.state = type("State", (), {"hub": hub})()


def _hub():
    return HubService(
        state=HubState(code="HUB001", rng=random.Random(3)),
        packs=FakePacks(),
        timings=RoundTimings(),
        out=FakeBroadcaster(),
        rng=random.Random(3),
    )


async def _join(app, conn_id, name, pid=None):
    to_sender, _ = await handle_join_hub(app=app, conn_id=conn_id, msg=InJoinHub(name=name, pid=pid))
    return to_sender[0].pid


def _types(events):
    return [e["type"] if isinstance(e, dict) else e.type for e in events]


def test_clean_name():
    assert clean_name(None) == "Player"
    assert clean_name("   ") == "Player"
    assert clean_name("  Ana ") == "Ana"
    assert clean_name("x" * 40) == "x" * 16


@pytest.mark.asyncio
async def test_join_mints_pid_and_broadcasts_state():
    hub = _hub()
    app = FakeApp(hub)

    to_sender, to_all = await handle_join_hub(app=app, conn_id="c1", msg=InJoinHub(name="Ana"))
    joined = to_sender[0]
    assert joined.type == "joined"
    assert joined.pid.startswith("p_")
    assert joined.name == "Ana"
    assert joined.code == "HUB001"
    assert _types(to_all) == ["hubState"]
    assert to_all[0].players == [{"pid": joined.pid, "name": "Ana", "ready": False}]
    assert to_all[0].host == joined.pid


@pytest.mark.asyncio
async def test_unknown_pid_gets_a_fresh_one():
    hub = _hub()
    app = FakeApp(hub)
    pid = await _join(app, "c1", "Ana", pid="p_made_up")
    assert pid != "p_made_up"


@pytest.mark.asyncio
async def test_long_name_is_truncated_not_rejected():
    hub = _hub()
    app = FakeApp(hub)

    to_sender, to_all = await dispatch_hub_message(app=app, conn_id="c1", raw={"type": "joinHub", "name": "N" * 80})
    assert to_sender[0]["type"] == "joined"
    assert to_sender[0]["name"] == "N" * 16
    assert to_all[0]["players"][0]["name"] == "N" * 16

    pid = to_sender[0]["pid"]
    _, to_all = await dispatch_hub_message(app=app, conn_id="c1", raw={"type": "setName", "pid": pid, "name": "M" * 80})
    assert to_all[0]["players"][0]["name"] == "M" * 16


@pytest.mark.asyncio
async def test_repeat_join_without_pid_keeps_the_same_player():
    hub = _hub()
    app = FakeApp(hub)
    pid = await _join(app, "c1", "Ana")
    await _join(app, "c2", "Bo")

    again = await _join(app, "c1", "Ana")
    assert again == pid
    assert len(hub.state.identities) == 2
    assert hub.state.is_host("c1")


@pytest.mark.asyncio
async def test_rejoin_with_same_pid_restores_name_and_ready():
    hub = _hub()
    app = FakeApp(hub)
    pid = await _join(app, "c1", "Ana")
    await handle_set_ready(app=app, conn_id="c1", msg=InSetReady(pid=pid, ready=True))

    await handle_hub_disconnect(app=app, conn_id="c1")
    assert hub.state.players == {}

    to_sender, to_all = await handle_join_hub(app=app, conn_id="c9", msg=InJoinHub(name="ignored", pid=pid))
    assert to_sender[0].pid == pid
    assert to_sender[0].name == "Ana"
    assert to_all[0].players == [{"pid": pid, "name": "Ana", "ready": True}]


@pytest.mark.asyncio
async def test_set_name_and_ready_ignore_foreign_or_unknown_pid():
    hub = _hub()
    app = FakeApp(hub)
    ana = await _join(app, "c1", "Ana")
    leo = await _join(app, "c2", "Leo")

    # c2 claims to be Ana
    assert await handle_set_name(app=app, conn_id="c2", msg=InSetName(pid=ana, name="Hacked")) == ([], [])
    assert await handle_set_ready(app=app, conn_id="c2", msg=InSetReady(pid=ana, ready=True)) == ([], [])
    assert await handle_set_ready(app=app, conn_id="c3", msg=InSetReady(pid="p_nobody")) == ([], [])

    _, to_all = await handle_set_name(app=app, conn_id="c2", msg=InSetName(pid=leo, name="  Leonardo  "))
    names = {p["pid"]: p["name"] for p in to_all[0].players}
    assert names == {ana: "Ana", leo: "Leonardo"}


@pytest.mark.asyncio
async def test_host_moves_to_earliest_joiner_then_display():
    hub = _hub()
    app = FakeApp(hub)
    await handle_register_tv(app=app, conn_id="tv", msg=InRegisterTV())
    assert hub.state.host_label() == "tv"

    ana = await _join(app, "c1", "Ana")
    leo = await _join(app, "c2", "Leo")
    # the display registered first and keeps hosting
    assert hub.state.host_conn == "tv"

    await handle_hub_disconnect(app=app, conn_id="tv")
    assert hub.state.host_label() == ana

    await handle_leave(app=app, conn_id="c1", msg=InLeave(pid=ana))
    assert hub.state.host_label() == leo

    await handle_register_tv(app=app, conn_id="tv2", msg=InRegisterTV())
    await handle_hub_disconnect(app=app, conn_id="c2")
    assert hub.state.host_label() == "tv"


@pytest.mark.asyncio
async def test_first_joiner_hosts_without_display():
    hub = _hub()
    app = FakeApp(hub)
    ana = await _join(app, "c1", "Ana")
    await _join(app, "c2", "Leo")
    assert hub.state.host_label() == ana


@pytest.mark.asyncio
async def test_leave_forgets_identity():
    hub = _hub()
    app = FakeApp(hub)
    ana = await _join(app, "c1", "Ana")
    await handle_leave(app=app, conn_id="c1", msg=InLeave(pid=ana))

    again = await _join(app, "c1", "Ana", pid=ana)
    assert again != ana


@pytest.mark.asyncio
async def test_choose_game_is_host_only_and_clears_ready():
    hub = _hub()
    app = FakeApp(hub)
    ana = await _join(app, "c1", "Ana")
    leo = await _join(app, "c2", "Leo")
    await handle_set_ready(app=app, conn_id="c2", msg=InSetReady(pid=leo, ready=True))

    to_sender, to_all = await handle_choose_game(app=app, conn_id="c2", msg=InChooseGame(id="party.quick-quiz"))
    assert to_sender[0].code == "NOT_HOST"
    assert to_all == []
    assert hub.state.current_game is None

    to_sender, to_all = await handle_choose_game(app=app, conn_id="c1", msg=InChooseGame(id="party.quick-quiz"))
    assert to_sender == []
    assert _types(to_all) == ["gameSelected", "hubState"]
    assert to_all[0].meta["min"] == 2
    assert to_all[1].currentGame == "party.quick-quiz"
    assert all(p["ready"] is False for p in to_all[1].players)

    to_sender, _ = await handle_choose_game(app=app, conn_id="c1", msg=InChooseGame(id="party.nope"))
    assert to_sender[0].code == "UNKNOWN_GAME"
    assert hub.state.current_game == "party.quick-quiz"
    assert ana in hub.state.connected_pids()


@pytest.mark.asyncio
async def test_start_game_out_of_range_toasts_and_changes_nothing():
    hub = _hub()
    app = FakeApp(hub)
    await _join(app, "c1", "Ana")
    await _join(app, "c2", "Leo")

    _, to_all = await handle_start_game(app=app, conn_id="c1", msg=InHubStartGame(rounds=3))
    assert to_all[0].msg == "Pick a game first"

    await handle_choose_game(app=app, conn_id="c1", msg=InChooseGame(id="party.answer-roulette"))
    _, to_all = await handle_start_game(app=app, conn_id="c1", msg=InHubStartGame(rounds=3))
    assert _types(to_all) == ["toast"]
    assert to_all[0].msg == "Party is 2. 3-10 players required."
    assert hub.runner is None
    assert hub.generation == 1  # only the chooseGame abort

    to_sender, _ = await handle_start_game(app=app, conn_id="c2", msg=InHubStartGame())
    assert to_sender[0].code == "NOT_HOST"


@pytest.mark.asyncio
async def test_leave_game_and_refresh():
    hub = _hub()
    app = FakeApp(hub)
    ana = await _join(app, "c1", "Ana")
    await handle_choose_game(app=app, conn_id="c1", msg=InChooseGame(id="party.quick-quiz"))

    _, to_all = await handle_leave_game(app=app, conn_id="c1", msg=InLeaveGame())
    assert _types(to_all) == ["gameEnded", "hubState"]
    assert to_all[1].currentGame is None

    _, to_all = await handle_refresh_hub(app=app, conn_id="c1", msg=InRefreshHub())
    assert to_all[0].players == []
    assert to_all[0].code != "HUB001"
    assert ana not in hub.state.identities


@pytest.mark.asyncio
async def test_tv_control_goes_to_display_only():
    hub = _hub()
    app = FakeApp(hub)
    await _join(app, "c1", "Ana")
    hub.state.display_conn = "tv"

    _, to_all = await handle_tv_control(app=app, conn_id="c1", msg=InTvControl(action="next", data={"page": 2}))
    assert to_all == [{"type": "tvNavigate", "action": "next", "data": {"page": 2}, "targets": ["tv"]}]

    await _join(app, "c2", "Leo")
    to_sender, _ = await handle_tv_control(app=app, conn_id="c2", msg=InTvControl(action="next"))
    assert to_sender[0].code == "NOT_HOST"
