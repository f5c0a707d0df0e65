"""AT-command driver for ESP8266 Wi-Fi modules attached to a serial line."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional

RX_BUFFER_SIZE = 512
RESPONSE_DATA_SIZE = 256
MAX_SSID_LENGTH = 32
JOIN_COMMAND_SIZE = 128

_TERMINATORS = (b"\r\nOK\r\n", b"\r\nERROR\r\n", b"\r\nFAIL\r\n")


class Status(IntEnum):
    """Outcome of an AT command exchange."""

    OK = 0
    ERROR_COMMAND = 1
    ERROR_TIMEOUT = 2
    ERROR_NO_RESPONSE = 3
    ERROR_UART = 4
    ERROR_INVALID_PARAM = 5
    ERROR_BUFFER_OVERFLOW = 6
    ERROR_WIFI_WRONG_PASSWORD = 7
    ERROR_WIFI_NOT_FOUND = 8
    ERROR_WIFI_CONN_FAIL = 9
    ERROR_WIFI_ALREADY_CONNECTED = 10


class Mode(IntEnum):
    """Wi-Fi operating modes understood by AT+CWMODE."""

    NULL = 0
    STATION = 1
    SOFTAP = 2
    SOFTAP_STATION = 3


_MODE_NAMES = {
    Mode.NULL: "Null",
    Mode.STATION: "Station",
    Mode.SOFTAP: "SoftAP",
    Mode.SOFTAP_STATION: "Station+SoftAP",
}

_WIFI_ERROR_MESSAGES = {
    Status.ERROR_WIFI_WRONG_PASSWORD: "WiFi - Wrong password",
    Status.ERROR_WIFI_NOT_FOUND: "WiFi - Network not found",
    Status.ERROR_WIFI_CONN_FAIL: "WiFi - Connection failed",
    Status.ERROR_TIMEOUT: "WiFi - Connection timeout",
}


@dataclass(frozen=True)
class Response:
    """A module reply: its status, its text and how many bytes arrived."""

    status: Status
    data: str = ""
    data_length: int = 0

    @property
    def ok(self) -> bool:
        return self.status is Status.OK


class Esp8266Error(Exception):
    """Raised when the module reports or causes a failure."""

    def __init__(self, status: Status, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


def parse_response(response: Optional[str]) -> Status:
    """Classify the text the module sent back."""
    if response is None:
        return Status.ERROR_NO_RESPONSE
    if "OK" in response:
        return Status.OK
    if "ERROR" in response or "FAIL" in response:
        return Status.ERROR_COMMAND
    for code, status in (
        ("+CWJAP:1", Status.ERROR_TIMEOUT),
        ("+CWJAP:2", Status.ERROR_WIFI_WRONG_PASSWORD),
        ("+CWJAP:3", Status.ERROR_WIFI_NOT_FOUND),
        ("+CWJAP:4", Status.ERROR_WIFI_CONN_FAIL),
    ):
        if code in response:
            return status
    return Status.ERROR_TIMEOUT


def open_serial(port: str, baudrate: int = 115200):
    """Open a serial port set up the way the driver reads it."""
    import serial

    return serial.Serial(port, baudrate, timeout=0.01, write_timeout=1.0)


class Esp8266:
    """Talks to an ESP8266 through a transport with write(bytes) and read(n)."""

    def __init__(
        self,
        transport,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self._transport = transport
        self._clock = clock or time.monotonic
        self._sleep = sleep or time.sleep

    def initialize(self) -> str:
        """Wait for boot and check that the module answers AT."""
        self._sleep(2.0)
        for _ in range(3):
            if self.send_and_wait("AT\r\n", 1000).ok:
                return "ESP8266 - initialized successfully"
            self._sleep(0.5)
        raise Esp8266Error(Status.ERROR_NO_RESPONSE, "ESP8266 - No response from module")

    def restart(self) -> str:
        """Reset the module and check that it comes back."""
        response = self.send_and_wait("AT+RST\r\n", 1000)
        if not response.ok:
            raise Esp8266Error(response.status, "ESP8266 - Failed to send restart command")
        self._sleep(3.0)
        response = self.send_and_wait("AT\r\n", 2000)
        if not response.ok:
            raise Esp8266Error(
                response.status, "ESP8266 - restart failed or module not responding"
            )
        return "ESP8266 - restarted successfully"

    def set_mode(self, mode) -> str:
        """Select station, soft-AP or combined mode."""
        try:
            mode = Mode(mode)
        except ValueError:
            mode = None
        if mode is None or mode is Mode.NULL:
            raise Esp8266Error(Status.ERROR_INVALID_PARAM, "WiFi - Invalid mode specified")
        response = self.send_and_wait(f"AT+CWMODE={int(mode)}\r\n", 3000)
        if not response.ok:
            raise Esp8266Error(response.status, "WiFi - Failed to set mode")
        return f"WiFi - mode set to {_MODE_NAMES[mode]}"

    def connect_wifi(self, ssid: str, password: str) -> str:
        """Leave any current network and join the given one."""
        if ssid is None or password is None:
            raise Esp8266Error(
                Status.ERROR_INVALID_PARAM, "WiFi - NULL SSID or password provided"
            )
        if not 0 < len(ssid.encode()) <= MAX_SSID_LENGTH:
            raise Esp8266Error(
                Status.ERROR_INVALID_PARAM, "WiFi - Invalid SSID length (1-32 characters)"
            )

        self.send_and_wait("AT+CWQAP\r\n", 5000)
        self._sleep(1.0)

        command = f'AT+CWJAP="{ssid}","{password}"\r\n'
        if len(command.encode()) >= JOIN_COMMAND_SIZE:
            raise Esp8266Error(Status.ERROR_BUFFER_OVERFLOW, "Command too long for buffer")

        response = self.send_and_wait(command, 15000)
        if response.ok:
            return "WiFi - Connected successfully"
        raise Esp8266Error(
            response.status,
            _WIFI_ERROR_MESSAGES.get(response.status, "WiFi - Unknown connection error"),
        )

    def disconnect_wifi(self) -> str:
        """Leave the current access point."""
        response = self.send_and_wait("AT+CWQAP\r\n", 5000)
        if not response.ok:
            raise Esp8266Error(response.status, "WiFi - Failed to disconnect")
        return "WiFi - Disconnected"

    def set_auto_connect(self) -> str:
        """Ask the module to rejoin its network on power-up; failure is only reported in the message."""
        response = self.send_and_wait("AT+CWAUTOCONN=1\r\n", 2000)
        if response.ok:
            return "WiFi - Auto-connect mode enabled"
        return "WiFi - Failed to enable auto-connect mode"

    def send_and_wait(self, command: str, timeout_ms: int) -> Response:
        """Send a command and collect the reply until a terminator or the timeout."""
        if command is None:
            return Response(Status.ERROR_INVALID_PARAM)
        if not self._transmit(command):
            return Response(Status.ERROR_UART)

        buffer = bytearray()
        start = self._clock()
        while (self._clock() - start) * 1000 < timeout_ms:
            try:
                chunk = self._transport.read(1)
            except OSError:
                continue
            if not chunk:
                continue
            if len(buffer) >= RX_BUFFER_SIZE - 1:
                return Response(Status.ERROR_BUFFER_OVERFLOW)
            buffer += chunk[:1]
            if any(terminator in buffer for terminator in _TERMINATORS):
                break

        text = buffer.decode("utf-8", errors="replace")
        data = text if len(buffer) < RESPONSE_DATA_SIZE else ""
        return Response(parse_response(text), data, len(buffer))

    def send(self, command: str) -> Response:
        """Send a command without waiting for any reply."""
        if command is None:
            return Response(Status.ERROR_INVALID_PARAM)
        if not self._transmit(command):
            return Response(Status.ERROR_UART)
        return Response(Status.OK)

    def _transmit(self, command: str) -> bool:
        try:
            self._transport.write(command.encode())
        except OSError:
            return False
        return True