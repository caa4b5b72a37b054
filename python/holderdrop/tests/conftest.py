import pytest
from solders.keypair import Keypair

from holderdrop.mechanisms.svm.signers import KeypairSigner

from fakes import FakeClock, FakeTimer, RecordingSleep


@pytest.fixture
def signer() -> KeypairSigner:
    return KeypairSigner(Keypair())


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers():
    FakeTimer.created = []
    yield FakeTimer
    FakeTimer.created = []
