import pytest

from awgman.db.allocator import AllocationError, PoolExhaustedError, allocate_next_address
from awgman.models.clients import ServerState


def _state(next_host=2, server_ip="10.8.0.1", subnet="10.8.0.0/24"):
	return ServerState(
		server_private_key="priv",
		server_public_key="pub",
		subnet_cidr=subnet,
		server_ip=server_ip,
		next_host=next_host,
	)


def test_first_allocation_is_host_two():
	state = _state()
	assert allocate_next_address(state) == "10.8.0.2/32"
	assert state.next_host == 3


def test_skips_gateway_address():
	state = _state(next_host=5, server_ip="10.8.0.5")
	assert allocate_next_address(state) == "10.8.0.6/32"
	assert state.next_host == 7


def test_whole_pool_is_distinct_and_never_the_gateway():
	state = _state(server_ip="10.8.0.100")
	seen = set()
	while True:
		try:
			seen.add(allocate_next_address(state))
		except PoolExhaustedError:
			break
	# hosts 2..254 minus the gateway
	assert len(seen) == 252
	assert "10.8.0.100/32" not in seen
	assert "10.8.0.1/32" not in seen
	assert "10.8.0.255/32" not in seen


def test_exhausted_cursor_fails_without_moving():
	state = _state(next_host=255)
	with pytest.raises(PoolExhaustedError):
		allocate_next_address(state)
	assert state.next_host == 255


def test_gateway_on_last_host_exhausts_pool():
	state = _state(next_host=254, server_ip="10.8.0.254")
	with pytest.raises(PoolExhaustedError):
		allocate_next_address(state)


def test_cursor_below_range_is_rejected():
	with pytest.raises(PoolExhaustedError):
		allocate_next_address(_state(next_host=1))


def test_non_slash_24_is_a_config_error():
	with pytest.raises(AllocationError) as info:
		allocate_next_address(_state(subnet="10.8.0.0/16"))
	assert not isinstance(info.value, PoolExhaustedError)


def test_ipv6_subnet_is_rejected():
	with pytest.raises(AllocationError):
		allocate_next_address(_state(subnet="fd00::/120", server_ip="fd00::1"))
