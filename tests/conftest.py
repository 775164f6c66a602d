import json
from datetime import timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from awgman.api.download_tokens import TokenManager
from awgman.api.peer_lifecycle import PeerLifecycle
from awgman.api.wireguard_apply import ApplyError
from awgman.db.state import StateStore
from awgman.main import create_app
from awgman.utils.config import Config
from awgman.utils.rate_limit import limiter

ADMIN_TOKEN = "test-admin-token"
AUTH = {"Authorization": f"Bearer {ADMIN_TOKEN}"}


class FakeApplier:
	"""Records every applied gateway config; raises ApplyError when ``error`` is set."""

	def __init__(self):
		self.applied = []
		self.error = None

	def apply(self, interface, config_text):
		if self.error:
			raise ApplyError(self.error)
		self.applied.append((interface, config_text))

	@property
	def last(self):
		return self.applied[-1][1]


def read_json(path: Path):
	return json.loads(path.read_text(encoding="utf-8"))


def write_json(path: Path, payload):
	path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def set_next_host(cfg: Config, value: int):
	path = cfg.data_dir / "server.json"
	state = read_json(path)
	state["nextHost"] = value
	write_json(path, state)


def age_tokens(cfg: Config, delta: timedelta):
	"""Shift every stored token's expiry by ``delta`` (negative = into the past)."""
	store = StateStore(cfg.data_dir)
	tokens = store.load_tokens()
	for t in tokens:
		t.expires_at = t.expires_at + delta
	store.save_tokens(tokens)


@pytest.fixture
def cfg(tmp_path) -> Config:
	return Config(
		data_dir=tmp_path,
		admin_token=ADMIN_TOKEN,
		subnet_cidr="10.8.0.0/24",
		server_ip="10.8.0.1",
		endpoint="vpn.example.com:51820",
		apply_on_startup=False,
	)


@pytest.fixture
def applier() -> FakeApplier:
	return FakeApplier()


@pytest.fixture
def store(cfg) -> StateStore:
	s = StateStore(cfg.data_dir)
	s.ensure_server_state(cfg.subnet_cidr, cfg.server_ip)
	return s


@pytest.fixture
def lifecycle(store, cfg, applier) -> PeerLifecycle:
	return PeerLifecycle(store, cfg, applier)


@pytest.fixture
def tokens(store, cfg) -> TokenManager:
	return TokenManager(store, cfg)


@pytest.fixture
def client(cfg, applier):
	limiter.reset()
	app = create_app(cfg, applier)
	with TestClient(app) as c:
		yield c
