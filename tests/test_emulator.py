"""Tests for the in-memory Realtime Database emulator."""

import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from fbrtdb import FirebaseClient
from fbrtdb.emulator.app import create_app
from fbrtdb.emulator.routes import relative_change, sse, stream_changes
from fbrtdb.emulator.tree import DataTree, join_path, prune, split_path

FORM = {"content-type": "application/x-www-form-urlencoded"}


class TestPaths:
    """Tests for path helpers."""

    def test_split_and_join(self):
        assert split_path("/users//ada/") == ["users", "ada"]
        assert split_path("/") == []
        assert join_path("users", "/ada/score") == "/users/ada/score"
        assert join_path("") == "/"

    def test_prune(self):
        assert prune({"a": None, "b": {}, "c": {"d": 1}}) == {"c": {"d": 1}}
        assert prune({}) is None
        assert prune([1, None]) == [1, None]


class TestDataTree:
    """Tests for DataTree reads and writes."""

    def test_get_missing(self):
        assert DataTree().get("/nothing/here") is None

    def test_set_and_get(self):
        tree = DataTree()
        tree.set("/users/ada", {"score": 3})
        assert tree.get("/users/ada/score") == 3
        assert tree.get("/") == {"users": {"ada": {"score": 3}}}

    def test_set_replaces(self):
        tree = DataTree({"users": {"ada": {"score": 3, "team": "red"}}})
        tree.set("/users/ada", {"score": 4})
        assert tree.get("/users/ada") == {"score": 4}

    def test_set_root(self):
        tree = DataTree({"a": 1})
        tree.set("/", {"b": 2})
        assert tree.get("/") == {"b": 2}

    def test_set_through_scalar(self):
        tree = DataTree({"a": 1})
        tree.set("/a/b", 2)
        assert tree.get("/") == {"a": {"b": 2}}

    def test_update_keeps_siblings(self):
        tree = DataTree({"users": {"ada": {"score": 3, "team": "red"}}})
        tree.update("/users/ada", {"score": 5, "stats/wins": 2})
        assert tree.get("/users/ada") == {"score": 5, "team": "red", "stats": {"wins": 2}}

    def test_update_requires_object(self):
        with pytest.raises(TypeError):
            DataTree().update("/", [1, 2])

    def test_push_keys_are_ordered(self):
        tree = DataTree()
        first = tree.push("/messages", {"text": "hi"})
        second = tree.push("/messages", {"text": "there"})
        assert first < second
        assert list(tree.get("/messages")) == [first, second]

    def test_delete_prunes_empty_parents(self):
        tree = DataTree({"users": {"ada": {"score": 3}}, "rooms": {"a": 1}})
        tree.delete("/users/ada")
        assert tree.get("/") == {"rooms": {"a": 1}}

    def test_null_deletes(self):
        tree = DataTree({"a": {"b": 1, "c": 2}})
        tree.set("/a/b", None)
        assert tree.get("/a") == {"c": 2}

    def test_get_returns_copy(self):
        tree = DataTree({"a": {"b": 1}})
        tree.get("/a")["b"] = 99
        assert tree.get("/a/b") == 1


class TestChangeFeed:
    """Tests for subscriptions and streamed changes."""

    def test_subscribers_receive_changes(self):
        async def main():
            tree = DataTree()
            queue = tree.subscribe()
            tree.set("users/ada", {"score": 1})
            tree.update("/users", {"bob": 2})
            tree.unsubscribe(queue)
            tree.set("/ignored", 1)
            return [queue.get_nowait() for _ in range(queue.qsize())]

        assert asyncio.run(main()) == [
            ("/users/ada", {"score": 1}),
            ("/users/bob", 2),
        ]

    def test_relative_change(self):
        tree = DataTree({"users": {"ada": 1}})
        assert relative_change("/users", "/users", tree, {"x": 1}) == {"path": "/", "data": {"x": 1}}
        assert relative_change("/users", "/users/ada", tree, 1) == {"path": "/ada", "data": 1}
        assert relative_change("/", "/users/ada", tree, 1) == {"path": "/users/ada", "data": 1}
        assert relative_change("/users", "/", tree, None) == {"path": "/", "data": {"ada": 1}}
        assert relative_change("/users", "/rooms", tree, 1) is None
        assert relative_change("/users", "/usersX", tree, 1) is None

    def test_sse_framing(self):
        assert sse("put", {"path": "/", "data": 1}) == b'event: put\ndata: {"path": "/", "data": 1}\n\n'
        assert sse("keep-alive", None) == b"event: keep-alive\ndata: null\n\n"

    def test_stream_changes(self):
        async def main():
            tree = DataTree({"users": {"ada": 1}})
            gen = stream_changes(tree, "/users", keepalive=0.01)
            chunks = [await gen.__anext__()]
            tree.set("/users/bob", 2)
            tree.set("/rooms/a", 1)
            chunks.append(await gen.__anext__())
            chunks.append(await gen.__anext__())
            await gen.aclose()
            return chunks, tree

        chunks, tree = asyncio.run(main())
        assert chunks == [
            b'event: put\ndata: {"path": "/", "data": {"ada": 1}}\n\n',
            b'event: put\ndata: {"path": "/bob", "data": 2}\n\n',
            b"event: keep-alive\ndata: null\n\n",
        ]
        assert not tree._subscribers


class TestRoutes:
    """Tests for the emulator's REST surface."""

    @pytest.fixture
    def client(self):
        with TestClient(create_app({"users": {"ada": {"score": 3}}}, keepalive=1.0)) as c:
            yield c

    def test_get(self, client):
        assert client.get("/users/ada.json").json() == {"score": 3}
        assert client.get("/.json").json() == {"users": {"ada": {"score": 3}}}
        assert client.get("/missing.json").json() is None

    def test_get_shallow(self, client):
        """shallow=true truncates object children to true."""
        assert client.get("/.json?shallow=true").json() == {"users": True}
        assert client.get("/users/ada/score.json?shallow=true").json() == 3

    def test_requires_json_suffix(self, client):
        assert client.get("/users").status_code == 404

    def test_put_with_form_content_type(self, client):
        resp = client.put("/users/bob.json", content=b'{"score":1}', headers=FORM)
        assert resp.status_code == 200
        assert resp.json() == {"score": 1}
        assert client.get("/users/bob/score.json").json() == 1

    def test_patch(self, client):
        resp = client.patch("/users/ada.json", content=b'{"team":"red"}', headers=FORM)
        assert resp.json() == {"team": "red"}
        assert client.get("/users/ada.json").json() == {"score": 3, "team": "red"}

    def test_patch_requires_object(self, client):
        resp = client.patch("/users/ada.json", content=b"[1]", headers=FORM)
        assert resp.status_code == 400

    def test_post(self, client):
        resp = client.post("/messages.json", content=b'{"text":"hi"}', headers=FORM)
        key = resp.json()["name"]
        assert client.get(f"/messages/{key}.json").json() == {"text": "hi"}

    def test_delete(self, client):
        resp = client.delete("/users/ada.json")
        assert resp.status_code == 200
        assert resp.json() is None
        assert client.get("/.json").json() is None

    def test_bad_json(self, client):
        resp = client.put("/users.json", content=b"not-json", headers=FORM)
        assert resp.status_code == 400
        assert "couldn't parse" in resp.json()["error"]

    def test_function(self, client):
        assert client.get("/functions/greet?who=ada").json() == {"function": "greet", "query": {"who": "ada"}}


class TestClientAgainstEmulator:
    """FirebaseClient one-shot requests served by the emulator."""

    def test_write_then_read(self):
        results = []

        async def main():
            app = create_app(keepalive=1.0)
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport) as http:
                client = FirebaseClient(
                    "http://emulator", "http://emulator/functions/", "scores",
                    http=http, on_function_result=results.append,
                )
                await client.write({"ada": 3}, "PUT")
                await client.write({"bob": 1})
                pushed = await client.write({"by": "eve"}, "POST")
                body = await client.read()
                await client.call_function("tally")
                return json.loads(pushed.content)["name"], json.loads(body)

        key, data = asyncio.run(main())
        assert data == {"ada": 3, "bob": 1, key: {"by": "eve"}}
        assert json.loads(results[0]) == {"function": "tally", "query": {}}


class TestEmulatorMain:
    """Tests for the ``python -m fbrtdb.emulator`` entry point."""

    def test_seeds_and_configures(self, tmp_path, monkeypatch):
        from fbrtdb.emulator import __main__ as entry

        seed = tmp_path / "seed.json"
        seed.write_text(json.dumps({"users": {"ada": {"score": 3}}}))
        monkeypatch.setenv("FBRTDB_KEEPALIVE", "2.5")
        monkeypatch.setenv("FBRTDB_EMULATOR_PORT", "9123")
        served = {}
        monkeypatch.setattr(entry.uvicorn, "run", lambda app, **kw: served.update(app=app, **kw))

        entry.main([str(seed)])

        app = served["app"]
        assert app.state.tree.get("/users/ada/score") == 3
        assert app.state.keepalive == 2.5
        assert served["port"] == 9123
        assert served["host"] == "127.0.0.1"
