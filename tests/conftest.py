import matplotlib

matplotlib.use("Agg")

import pytest

from cdma.config import ChannelConfig
from cdma.message import Message


@pytest.fixture
def reference_messages():
    return [
        Message(sender=1, destination=3, value=4),
        Message(sender=2, destination=1, value=5),
        Message(sender=3, destination=2, value=7),
    ]


@pytest.fixture
def fast_config():
    return ChannelConfig(host="127.0.0.1", port=0, join_timeout=5.0, recv_timeout=5.0)
