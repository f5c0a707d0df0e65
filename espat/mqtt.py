"""MQTT client driven through the ESP8266 AT command set."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .esp8266 import Esp8266, Esp8266Error, Response

_PREFIX = "+MQTTSUBRECV:"
_TOPIC_SIZE = 64
_MESSAGE_SIZE = 256
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class ReceivedMessage:
    """A message the broker delivered on a subscribed topic."""

    link_id: int
    topic: str
    message_length: int
    message: str


def _leading_int(text: str) -> int:
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def parse_received_message(raw_message: str) -> ReceivedMessage:
    """Parse a +MQTTSUBRECV line; raise ValueError if it is not one."""
    if _PREFIX not in raw_message:
        raise ValueError("not an MQTT subscription message")

    body = raw_message[len(_PREFIX):]
    comma1 = body.find(",")
    comma2 = body.find(",", comma1 + 1) if comma1 >= 0 else -1
    comma3 = body.find(",", comma2 + 1) if comma2 >= 0 else -1
    if comma3 < 0:
        raise ValueError("MQTT subscription message has too few fields")

    topic_start = comma1 + 1
    topic_end = comma2
    if body[topic_start] == '"':
        topic_start += 1
    quote_end = body.find('"', topic_start)
    if 0 <= quote_end < topic_end:
        topic_end = quote_end
    topic_length = topic_end - topic_start
    topic = body[topic_start:topic_end] if 0 < topic_length < _TOPIC_SIZE else ""

    message = body[comma3 + 1:][: _MESSAGE_SIZE - 1]
    length = len(message)
    cut = length
    if length > 0 and message[-1] == "\n":
        cut = length - 1
    if length > 1 and message[length - 2] == "\r":
        cut = length - 2

    return ReceivedMessage(
        link_id=_leading_int(body) & 0xFF,
        topic=topic,
        message_length=_leading_int(body[comma2 + 1:]) & 0xFFFF,
        message=message[:cut],
    )


def _fit(command: str, size: int) -> str:
    return command[: size - 1]


class MqttClient:
    """Configures the module's MQTT link 0 and exchanges messages over it."""

    def __init__(self, device: Esp8266) -> None:
        self._device = device

    def clean_session(self) -> str:
        response = self._device.send_and_wait("AT+MQTTCLEAN=0\r\n", 5000)
        self._check(response, "MQTT - session clean failed")
        return "MQTT - session cleaned successfully"

    def configure(self, client_id: str) -> str:
        command = _fit(f'AT+MQTTUSERCFG=0,1,"{client_id}","","",0,0,""\r\n', 200)
        self._check(self._device.send_and_wait(command, 5000), "MQTT - initialization failed")
        return "MQTT - initialized successfully"

    def connect(self, broker: str, port: int) -> str:
        command = _fit(f'AT+MQTTCONN=0,"{broker}",{int(port) & 0xFFFF},1\r\n', 200)
        self._check(self._device.send_and_wait(command, 5000), "MQTT - connection failed")
        return "MQTT - connected successfully"

    def publish(self, topic: str, message: str, qos: int = 0, retain: int = 0) -> str:
        """Send a publish command without waiting for the module's answer."""
        command = _fit(
            f'AT+MQTTPUB=0,"{topic}","{message}",{int(qos) & 0xFF},{int(retain) & 0xFF}\r\n',
            300,
        )
        self._check(self._device.send(command), "MQTT - publish failed")
        return "MQTT - published successfully"

    def subscribe(self, topic: str, qos: int = 0) -> str:
        command = _fit(f'AT+MQTTSUB=0,"{topic}",{int(qos) & 0xFF}\r\n', 200)
        self._check(self._device.send_and_wait(command, 5000), "MQTT - subscribe failed")
        return "MQTT - subscribed successfully"

    def unsubscribe(self, topic: str) -> str:
        command = _fit(f'AT+MQTTUNSUB=0,"{topic}"\r\n', 200)
        self._check(self._device.send_and_wait(command, 5000), "MQTT - unsubscribe failed")
        return "MQTT - unsubscribed successfully"

    @staticmethod
    def _check(response: Response, failure: str) -> None:
        if not response.ok:
            raise Esp8266Error(response.status, failure)