from minnownet.address import Address
from minnownet.config import FdAdapterConfig
from minnownet.fd_adapter import FdAdapterBase


def test_not_listening_by_default():
    adapter = FdAdapterBase()
    assert adapter.listening() is False


def test_set_listening_round_trip():
    adapter = FdAdapterBase()
    adapter.set_listening(True)
    assert adapter.listening() is True
    adapter.set_listening(False)
    assert adapter.listening() is False


def test_default_config_is_any_address():
    adapter = FdAdapterBase()
    assert adapter.config().source == Address.from_ip("0", 0)
    assert adapter.config().destination == Address.from_ip("0", 0)
    assert adapter.config().loss_rate_up == 0
    assert adapter.config().loss_rate_dn == 0


def test_given_config_is_kept_and_mutable():
    config = FdAdapterConfig(source=Address.from_ip("10.0.0.1", 1000))
    adapter = FdAdapterBase(config)
    assert adapter.config() is config
    adapter.config().destination = Address.from_ip("10.0.0.2", 2000)
    assert config.destination == Address.from_ip("10.0.0.2", 2000)


def test_tick_leaves_state_unchanged():
    config = FdAdapterConfig(source=Address.from_ip("10.0.0.1", 1000))
    adapter = FdAdapterBase(config)
    adapter.set_listening(True)
    adapter.tick(50)
    assert adapter.listening() is True
    assert adapter.config() is config
    assert config.source == Address.from_ip("10.0.0.1", 1000)