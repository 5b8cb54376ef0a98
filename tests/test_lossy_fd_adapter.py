from minnownet.config import FdAdapterConfig
from minnownet.lossy_fd_adapter import LossyFdAdapter
from minnownet.tcp_message import TCPMessage, TCPSenderMessage

MESSAGE = TCPMessage(TCPSenderMessage(seqno=1, payload=b"data"))


class FixedRng:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    def getrandbits(self, k):
        self.calls += 1
        return self.value


class FakeAdapter:
    def __init__(self, config):
        self._config = config
        self.written = []
        self.reads = 0
        self.listening_flag = False
        self.ticks = []
        self.descriptor = object()

    def fd(self):
        return self.descriptor

    def read(self):
        self.reads += 1
        return MESSAGE

    def write(self, message):
        self.written.append(message)

    def set_listening(self, listening):
        self.listening_flag = listening

    def config(self):
        return self._config

    def tick(self, ms):
        self.ticks.append(ms)


def make(loss_up=0, loss_dn=0, rng_value=0):
    inner = FakeAdapter(FdAdapterConfig(loss_rate_up=loss_up, loss_rate_dn=loss_dn))
    rng = FixedRng(rng_value)
    return LossyFdAdapter(inner, rng), inner, rng


def test_no_loss_passes_everything_without_drawing():
    lossy, inner, rng = make()
    assert lossy.read() == MESSAGE
    lossy.write(MESSAGE)
    assert inner.written == [MESSAGE]
    assert rng.calls == 0


def test_read_dropped_when_draw_below_rate():
    lossy, inner, rng = make(loss_dn=1, rng_value=0)
    assert lossy.read() is None
    assert inner.reads == 1
    assert rng.calls == 1


def test_read_kept_when_draw_equals_rate():
    lossy, inner, _ = make(loss_dn=5, rng_value=5)
    assert lossy.read() == MESSAGE


def test_write_dropped_when_draw_below_rate():
    lossy, inner, _ = make(loss_up=1, rng_value=0)
    lossy.write(MESSAGE)
    assert inner.written == []


def test_directions_use_their_own_rates():
    lossy, inner, _ = make(loss_up=0, loss_dn=65535, rng_value=0)
    lossy.write(MESSAGE)
    assert inner.written == [MESSAGE]
    assert lossy.read() is None


def test_default_rng_with_no_loss_never_drops():
    inner = FakeAdapter(FdAdapterConfig())
    lossy = LossyFdAdapter(inner)
    results = [lossy.read() for _ in range(100)]
    assert results == [MESSAGE] * 100


def test_passthroughs():
    lossy, inner, _ = make()
    assert lossy.fd() is inner.descriptor
    assert lossy.config() is inner.config()
    lossy.set_listening(True)
    assert inner.listening_flag is True
    lossy.tick(10)
    assert inner.ticks == [10]