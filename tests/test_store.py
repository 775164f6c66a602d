import base64
import os
import stat

import pytest

from awgman.db.snapshots import SnapshotError, read_snapshot, write_snapshot
from awgman.db.state import StateStore
from awgman.utils.config import ConfigValidationError

from conftest import read_json


def test_ensure_server_state_creates_once(tmp_path):
	store = StateStore(tmp_path)
	first = store.ensure_server_state("10.8.0.0/24", "10.8.0.1")

	assert first.next_host == 2
	assert first.server_private_key != first.server_public_key
	assert len(base64.b64decode(first.server_public_key)) == 32

	raw = read_json(tmp_path / "server.json")
	assert set(raw) == {"serverPrivateKey", "serverPublicKey", "subnetCidr", "serverIp", "nextHost"}
	assert stat.S_IMODE(os.stat(tmp_path / "server.json").st_mode) == 0o600

	# Existing state wins on restart, keys are never rotated
	again = StateStore(tmp_path).ensure_server_state("10.9.0.0/24", "10.9.0.1")
	assert again == first


@pytest.mark.parametrize(
	"subnet, server_ip",
	[
		("10.8.0.0/16", "10.8.0.1"),
		("not-a-subnet", "10.8.0.1"),
		("10.8.0.0/24", "10.9.0.1"),
	],
)
def test_ensure_server_state_rejects_bad_pool(tmp_path, subnet, server_ip):
	with pytest.raises(ConfigValidationError):
		StateStore(tmp_path).ensure_server_state(subnet, server_ip)
	assert not (tmp_path / "server.json").exists()


def test_missing_collections_load_empty(store):
	assert store.load_clients() == []
	assert store.load_tokens() == []


def test_snapshot_replace_leaves_no_temp_files(tmp_path):
	path = tmp_path / "clients.json"
	write_snapshot(path, [{"id": "a"}])
	write_snapshot(path, [{"id": "b"}])
	assert read_snapshot(path) == [{"id": "b"}]
	assert sorted(p.name for p in tmp_path.iterdir()) == ["clients.json"]


def test_failed_write_keeps_previous_snapshot(tmp_path, monkeypatch):
	path = tmp_path / "clients.json"
	write_snapshot(path, [{"id": "a"}])

	def broken_replace(src, dst):
		raise OSError("disk full")

	monkeypatch.setattr("awgman.db.snapshots.os.replace", broken_replace)
	with pytest.raises(SnapshotError):
		write_snapshot(path, [{"id": "b"}])

	assert read_snapshot(path) == [{"id": "a"}]
	assert sorted(p.name for p in tmp_path.iterdir()) == ["clients.json"]


def test_corrupt_snapshot_is_reported(tmp_path):
	(tmp_path / "dl-tokens.json").write_text("{not json")
	with pytest.raises(SnapshotError):
		StateStore(tmp_path).load_tokens()
