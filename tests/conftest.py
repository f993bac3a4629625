"""Shared fixtures for the listener tests."""

import io

import pytest

from models.connection_state import ConnectionState
from services.message_handler import MessageHandler
from services.notification_service import NotificationService
from services.template_manager import TemplateManager


@pytest.fixture
def console() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def template_manager() -> TemplateManager:
    return TemplateManager(watch=False)


@pytest.fixture
def notifier(template_manager, console) -> NotificationService:
    return NotificationService(template_manager, stream=console)


@pytest.fixture
def state() -> ConnectionState:
    return ConnectionState()


@pytest.fixture
def handler(state, notifier) -> MessageHandler:
    return MessageHandler(state, notifier)
