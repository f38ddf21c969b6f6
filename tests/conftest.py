import sys
from pathlib import Path
from typing import Iterator

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from email_dispatch.config import Config
from email_dispatch.debug import set_debug
from email_dispatch.models import Transmission


@pytest.fixture(autouse=True)
def _debug_off() -> Iterator[None]:
    set_debug(False)
    yield
    set_debug(False)


@pytest.fixture
def config() -> Config:
    return Config(
        url="https://api.mailgun.net",
        api_key="k",
        domain="d",
        from_address="a@b.c",
        from_name="N",
    )


@pytest.fixture
def transmission() -> Transmission:
    return Transmission(recipients=["r@x"], subject="S", html="<h1>H</h1>")
