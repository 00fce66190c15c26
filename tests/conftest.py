" generic fixtures "
import pytest

from bot.app import BotApp
from bot.config import BotConfig
from bot.events import EventBus
from bot.middleware import MiddlewareChain
from bot.scope import Scope
from commands.commander import Commander

from .fakes import FakeBot


@pytest.fixture
def bot():
    return FakeBot()


@pytest.fixture
def root():
    return Scope("root")


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def chain():
    return MiddlewareChain()


@pytest.fixture
def commander(root, event_bus, chain):
    return Commander(root, event_bus, chain, prefix="!")


@pytest.fixture
def app():
    return BotApp(BotConfig(command_prefix="!"))
