"""Request/response transports between the controller and the page engine."""

import logging
from typing import Optional

import requests
from pydantic import ValidationError

import recruit_config
from messages import MessageRequest, MessageResponse

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """The message never got a usable answer (engine gone, timeout, bad reply)."""


class MessageTransport:
    def send(self, request: MessageRequest) -> MessageResponse:
        raise NotImplementedError


class HttpTransport(MessageTransport):
    """Posts messages to an engine_server instance."""

    def __init__(self, base_url: str = recruit_config.ENGINE_URL,
                 timeout: Optional[float] = recruit_config.REQUEST_TIMEOUT):
        self.url = f"{base_url.rstrip('/')}/api/messages"
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'BOSS-Recruit-Controller/1.0'
        })

    def send(self, request: MessageRequest) -> MessageResponse:
        try:
            response = self.session.post(self.url, json=request.to_wire(), timeout=self.timeout)
            response.raise_for_status()
            return MessageResponse.model_validate(response.json())
        except requests.RequestException as e:
            raise TransportError(f"{request.action} failed: {e}") from e
        except (ValueError, ValidationError) as e:
            raise TransportError(f"{request.action} returned an unreadable response: {e}") from e


class LocalTransport(MessageTransport):
    """Hands messages straight to an in-process engine."""

    def __init__(self, engine):
        self.engine = engine

    def send(self, request: MessageRequest) -> MessageResponse:
        return self.engine.handle(request)
