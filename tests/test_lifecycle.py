import threading
from datetime import timedelta

import pytest

from awgman.api.peer_lifecycle import (
	ClientNotFoundError,
	DownloadOutcome,
	attachment_filename,
)
from awgman.api.wireguard_apply import ApplyError
from awgman.db.allocator import PoolExhaustedError
from awgman.utils.crypto import KeyGenerationError
from awgman.utils.time import utcnow

from conftest import read_json, set_next_host


@pytest.mark.parametrize(
	"name, expected",
	[
		("alice", "alice.conf"),
		("Bob's Phone", "bob-s-phone.conf"),
		("  --Work_Laptop--  ", "work_laptop.conf"),
		("日本", "client.conf"),
	],
)
def test_attachment_filename(name, expected):
	assert attachment_filename(name) == expected


def test_create_assigns_distinct_addresses(lifecycle, store, applier):
	a = lifecycle.create_client("a")
	b = lifecycle.create_client("b")

	assert a.address == "10.8.0.2/32"
	assert b.address == "10.8.0.3/32"
	assert a.id != b.id
	assert store.read_server_state().next_host == 4

	# every create pushes the whole peer set
	assert len(applier.applied) == 2
	assert applier.applied[-1][0] == "wg0"
	assert a.public_key in applier.last
	assert b.public_key in applier.last


def test_public_projection_hides_private_key(lifecycle, cfg):
	created = lifecycle.create_client("alice")
	assert "private_key" not in created.model_dump()

	stored = read_json(cfg.data_dir / "clients.json")[0]
	assert stored["privateKey"]
	assert stored["address"] == created.address
	assert "expiresAt" not in stored


def test_delete_never_reuses_address(lifecycle, applier):
	a = lifecycle.create_client("a")
	lifecycle.delete_client(a.id)
	b = lifecycle.create_client("b")

	assert b.address == "10.8.0.3/32"
	assert a.public_key not in applier.last
	assert [c.id for c in lifecycle.list_clients()] == [b.id]


def test_delete_unknown_client(lifecycle, applier):
	with pytest.raises(ClientNotFoundError):
		lifecycle.delete_client("missing")
	assert applier.applied == []


def test_pool_exhaustion_changes_nothing(cfg, lifecycle, store, applier):
	set_next_host(cfg, 255)
	with pytest.raises(PoolExhaustedError):
		lifecycle.create_client("late")

	assert store.load_clients() == []
	assert store.read_server_state().next_host == 255
	assert applier.applied == []


def test_apply_failure_keeps_record(lifecycle, store, applier):
	applier.error = "awg: no such device"
	with pytest.raises(ApplyError):
		lifecycle.create_client("a")
	assert len(store.load_clients()) == 1

	# next successful apply carries the earlier client too
	applier.error = None
	lifecycle.create_client("b")
	assert applier.last.count("[Peer]") == 2


def test_keygen_failure_burns_address(lifecycle, store, applier, monkeypatch):
	def broken():
		raise KeyGenerationError("no entropy")

	monkeypatch.setattr("awgman.api.peer_lifecycle.generate_keypair", broken)
	with pytest.raises(KeyGenerationError):
		lifecycle.create_client("a")

	assert store.load_clients() == []
	assert store.read_server_state().next_host == 3
	assert applier.applied == []

	monkeypatch.undo()
	assert lifecycle.create_client("b").address == "10.8.0.3/32"


def test_expired_client_stays_listed_but_leaves_gateway(lifecycle, store, applier):
	lifecycle.create_client("old", utcnow() + timedelta(days=1))
	clients = store.load_clients()
	clients[0].expires_at = utcnow() - timedelta(minutes=1)
	store.save_clients(clients)

	fresh = lifecycle.create_client("fresh")

	assert len(lifecycle.list_clients()) == 2
	assert applier.last.count("[Peer]") == 1
	assert fresh.public_key in applier.last


def test_apply_current_pushes_stored_state(lifecycle, applier):
	lifecycle.create_client("a")
	applier.applied.clear()
	lifecycle.apply_current()
	assert len(applier.applied) == 1
	assert "[Peer]" in applier.last


def test_client_config(lifecycle):
	alice = lifecycle.create_client("Alice")
	result = lifecycle.client_config(alice.id)
	assert result.ok
	assert result.filename == "alice.conf"
	assert "Endpoint = vpn.example.com:51820" in result.content

	assert lifecycle.client_config("missing").outcome is DownloadOutcome.NOT_FOUND


def test_concurrent_creates_get_distinct_addresses(cfg, lifecycle, applier):
	workers = 12
	barrier = threading.Barrier(workers)
	created = []
	errors = []

	def worker(n):
		barrier.wait()
		try:
			created.append(lifecycle.create_client(f"peer-{n}"))
		except Exception as exc:
			errors.append(exc)

	threads = [threading.Thread(target=worker, args=(n,)) for n in range(workers)]
	for t in threads:
		t.start()
	for t in threads:
		t.join()

	assert errors == []
	addresses = {c.address for c in created}
	assert len(addresses) == workers
	assert "10.8.0.1/32" not in addresses
	assert read_json(cfg.data_dir / "server.json")["nextHost"] == 2 + workers

	# the last push carries every peer, none lost to an interleaving
	assert len(applier.applied) == workers
	assert applier.last.count("[Peer]") == workers
	for c in created:
		assert c.public_key in applier.last
