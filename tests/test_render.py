from datetime import datetime, timedelta, timezone

from awgman.api.wireguard_config import (
	RenderOverrides,
	load_overrides,
	render_client_config,
	render_gateway_config,
)
from awgman.models.clients import Client, ServerState

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

STATE = ServerState(
	server_private_key="SERVERPRIV=",
	server_public_key="SERVERPUB=",
	subnet_cidr="10.8.0.0/24",
	server_ip="10.8.0.1",
	next_host=5,
)


def _client(name, host, expires_at=None):
	return Client(
		id=f"id-{name}",
		name=name,
		public_key=f"{name.upper()}PUB=",
		private_key=f"{name.upper()}PRIV=",
		address=f"10.8.0.{host}/32",
		created_at=NOW - timedelta(days=1),
		expires_at=expires_at,
	)


def test_gateway_config_without_peers():
	assert render_gateway_config(STATE, [], 51820, NOW) == (
		"[Interface]\n"
		"PrivateKey = SERVERPRIV=\n"
		"ListenPort = 51820\n"
		"\n"
	)


def test_gateway_config_omits_expired_clients():
	active = _client("a", 2)
	expired = _client("b", 3, expires_at=NOW - timedelta(seconds=1))
	future = _client("c", 4, expires_at=NOW + timedelta(hours=1))

	text = render_gateway_config(STATE, [active, expired, future], 51820, NOW)

	assert text == (
		"[Interface]\n"
		"PrivateKey = SERVERPRIV=\n"
		"ListenPort = 51820\n"
		"\n"
		"[Peer]\n"
		"PublicKey = APUB=\n"
		"AllowedIPs = 10.8.0.2/32\n"
		"\n"
		"[Peer]\n"
		"PublicKey = CPUB=\n"
		"AllowedIPs = 10.8.0.4/32\n"
		"\n"
	)
	assert "BPUB=" not in text


def test_client_expiring_exactly_now_is_still_rendered():
	edge = _client("a", 2, expires_at=NOW)
	assert "APUB=" in render_gateway_config(STATE, [edge], 51820, NOW)


def test_client_config_defaults():
	text = render_client_config(_client("alice", 2), STATE, endpoint="vpn.example.com:51820")
	assert text == (
		"[Interface]\n"
		"PrivateKey = ALICEPRIV=\n"
		"Address = 10.8.0.2/32\n"
		"\n"
		"[Peer]\n"
		"PublicKey = SERVERPUB=\n"
		"Endpoint = vpn.example.com:51820\n"
		"AllowedIPs = 0.0.0.0/0, ::/0\n"
	)


def test_client_config_with_overrides_and_no_endpoint():
	overrides = RenderOverrides(extra_interface="Jc = 4\nJmin = 40", allowed_ips="10.0.0.0/8")
	text = render_client_config(_client("alice", 2), STATE, overrides=overrides)
	assert text == (
		"[Interface]\n"
		"PrivateKey = ALICEPRIV=\n"
		"Address = 10.8.0.2/32\n"
		"Jc = 4\n"
		"Jmin = 40\n"
		"\n"
		"[Peer]\n"
		"PublicKey = SERVERPUB=\n"
		"AllowedIPs = 10.0.0.0/8\n"
	)


def test_load_overrides_strips_and_defaults(tmp_path):
	assert load_overrides(tmp_path) == RenderOverrides()

	(tmp_path / "client-extra-interface.txt").write_text("\n  Jc = 4\nS1 = 15  \n\n")
	(tmp_path / "client-allowedips.txt").write_text("   \n")
	overrides = load_overrides(tmp_path)

	assert overrides.extra_interface == "Jc = 4\nS1 = 15"
	assert overrides.allowed_ips == ""
	assert overrides.effective_allowed_ips == "0.0.0.0/0, ::/0"
