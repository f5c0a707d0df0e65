import pytest

from espat.esp8266 import Esp8266, Esp8266Error, Status
from espat.mqtt import MqttClient, ReceivedMessage, parse_received_message


class FakeModem:
    def __init__(self, replies=None, write_error=False):
        self.replies = replies or {}
        self.write_error = write_error
        self.written = []
        self._pending = bytearray()

    def write(self, data):
        if self.write_error:
            raise OSError("line down")
        self.written.append(bytes(data))
        self._pending += self.replies.get(bytes(data), b"")
        return len(data)

    def read(self, size):
        chunk = bytes(self._pending[:size])
        del self._pending[:size]
        return chunk


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        self.now += 0.01
        return self.now

    def sleep(self, seconds):
        self.now += seconds


def make_client(replies=None, write_error=False):
    modem = FakeModem(replies, write_error)
    clock = FakeClock()
    return MqttClient(Esp8266(modem, clock=clock, sleep=clock.sleep)), modem


OK = b"\r\nOK\r\n"
ERROR = b"\r\nERROR\r\n"


def test_parse_direct_format():
    parsed = parse_received_message('+MQTTSUBRECV:0,"home/temp",4,21.5\r\n')
    assert parsed == ReceivedMessage(
        link_id=0, topic="home/temp", message_length=4, message="21.5"
    )


def test_parse_single_char_prefix():
    parsed = parse_received_message('A+MQTTSUBRECV:0,"home/temp",4,21.5')
    assert parsed.topic == "home/temp"
    assert parsed.message == "21.5"
    assert parsed.message_length == 4


def test_parse_message_keeps_commas():
    parsed = parse_received_message('+MQTTSUBRECV:0,"t",3,a,b')
    assert parsed.message == "a,b"
    assert parsed.topic == "t"


def test_parse_unquoted_topic():
    parsed = parse_received_message("+MQTTSUBRECV:0,room,2,on\n")
    assert parsed.topic == "room"
    assert parsed.message == "on"


def test_parse_long_message_truncated():
    parsed = parse_received_message('+MQTTSUBRECV:0,"t",300,' + "m" * 300)
    assert parsed.message == "m" * 255


def test_parse_topic_too_long_is_dropped():
    parsed = parse_received_message('+MQTTSUBRECV:0,"' + "t" * 64 + '",1,x')
    assert parsed.topic == ""
    assert parsed.message == "x"


def test_parse_empty_topic():
    parsed = parse_received_message('+MQTTSUBRECV:0,"",1,x')
    assert parsed.topic == ""


@pytest.mark.parametrize(
    "raw",
    ["", "+MQTTCONNECTED:0", '+MQTTSUBRECV:0,"t",3', "+MQTTSUBRECV:0"],
)
def test_parse_rejects_invalid(raw):
    with pytest.raises(ValueError):
        parse_received_message(raw)


def test_clean_session():
    client, modem = make_client({b"AT+MQTTCLEAN=0\r\n": OK})
    assert client.clean_session() == "MQTT - session cleaned successfully"
    assert modem.written == [b"AT+MQTTCLEAN=0\r\n"]


def test_clean_session_failure():
    client, _ = make_client({b"AT+MQTTCLEAN=0\r\n": ERROR})
    with pytest.raises(Esp8266Error) as info:
        client.clean_session()
    assert info.value.status is Status.ERROR_COMMAND
    assert info.value.message == "MQTT - session clean failed"


def test_configure():
    command = b'AT+MQTTUSERCFG=0,1,"dev",' + b'"","",0,0,""\r\n'
    client, modem = make_client({command: OK})
    assert client.configure("dev") == "MQTT - initialized successfully"
    assert modem.written == [command]


def test_connect():
    command = b'AT+MQTTCONN=0,"broker.example.com",1883,1\r\n'
    client, modem = make_client({command: OK})
    assert client.connect("broker.example.com", 1883) == "MQTT - connected successfully"
    assert modem.written == [command]


def test_connect_timeout():
    client, _ = make_client()
    with pytest.raises(Esp8266Error) as info:
        client.connect("broker.example.com", 1883)
    assert info.value.status is Status.ERROR_TIMEOUT
    assert str(info.value) == "MQTT - connection failed"


def test_publish_does_not_wait():
    client, modem = make_client()
    assert client.publish("home/temp", "21.5", 1, 0) == "MQTT - published successfully"
    assert modem.written == [b'AT+MQTTPUB=0,"home/temp","21.5",1,0\r\n']


def test_publish_uart_failure():
    client, _ = make_client(write_error=True)
    with pytest.raises(Esp8266Error) as info:
        client.publish("home/temp", "21.5", 0, 1)
    assert info.value.status is Status.ERROR_UART


def test_subscribe_and_unsubscribe():
    sub = b'AT+MQTTSUB=0,"home/#",1\r\n'
    unsub = b'AT+MQTTUNSUB=0,"home/#"\r\n'
    client, modem = make_client({sub: OK, unsub: OK})
    assert client.subscribe("home/#", 1) == "MQTT - subscribed successfully"
    assert client.unsubscribe("home/#") == "MQTT - unsubscribed successfully"
    assert modem.written == [sub, unsub]


def test_subscribe_failure():
    client, _ = make_client({b'AT+MQTTSUB=0,"x",0\r\n': ERROR})
    with pytest.raises(Esp8266Error) as info:
        client.subscribe("x", 0)
    assert info.value.message == "MQTT - subscribe failed"


def test_long_command_is_truncated():
    client, modem = make_client()
    client.publish("t" * 400, "m", 0, 0)
    assert len(modem.written[0]) == 299
    assert modem.written[0].startswith(b'AT+MQTTPUB=0,"ttt')