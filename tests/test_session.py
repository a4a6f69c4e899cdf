import json
import stat

import pytest

from roledash.client.session import DEFAULT_PREFERENCES, Session, SessionStore
from roledash.errors import UnauthorizedError


def test_login_persists_token(tmp_path):
    path = tmp_path / "session.json"
    session = Session(SessionStore(path))
    assert not session.is_active
    with pytest.raises(UnauthorizedError):
        session.acquire()

    session.login(" abc ")
    assert session.acquire() == "abc"
    data = json.loads(path.read_text())
    assert data == {"token": "abc", "preferences": DEFAULT_PREFERENCES}
    assert stat.S_IMODE(path.stat().st_mode) == 0o600

    assert Session(SessionStore(path)).acquire() == "abc"


def test_invalidate_runs_callbacks_once(tmp_path):
    path = tmp_path / "session.json"
    session = Session(SessionStore(path))
    session.login("abc")
    seen = []
    session.on_logout(seen.append)

    session.invalidate("expired")
    session.invalidate("again")

    assert seen == ["expired"]
    assert json.loads(path.read_text())["token"] is None


def test_preferences_and_corrupt_file(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{broken")
    session = Session(SessionStore(path))
    assert session.state.preferences == DEFAULT_PREFERENCES

    session.set_preference("theme", "light")
    reloaded = SessionStore(path).load()
    assert reloaded.preferences == {"theme": "light", "language": "en"}
