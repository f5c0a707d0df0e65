# espat

`espat` talks to an ESP8266 Wi-Fi module through its AT command set over a
serial line. It brings the module up, chooses its Wi-Fi mode, and joins and
leaves networks. It also drives the module's built-in MQTT client and parses
the `+MQTTSUBRECV:` lines that the module sends when a subscribed message
arrives.

## Installation

```
pip install espat
```

To run the test suite:

```
pip install "espat[test]"
pytest
```

## Wi-Fi

```python
from espat.esp8266 import Esp8266, Esp8266Error, Mode, open_serial

device = Esp8266(open_serial("/dev/ttyUSB0", 115200))

password = "password"
try:
    print(device.initialize())
    print(device.set_mode(Mode.STATION))
    print(device.connect_wifi("MyNetwork", password))
    print(device.set_auto_connect())
except Esp8266Error as exc:
    print("module reported a problem:", exc.status.name, exc.message)
```

`open_serial(port, baudrate=115200)` opens a pyserial port with a short read
timeout. `Esp8266` accepts any transport that has `write(bytes)` and
`read(n)`. You can also pass a `clock` (returns seconds) and a `sleep`
function. Both default to `time.monotonic` and `time.sleep`.

Each method returns a short status message when it succeeds:

- `initialize()` waits two seconds for the module to boot. It then sends `AT`
  up to three times.
- `restart()` sends `AT+RST`, waits three seconds and checks that `AT` is
  answered again.
- `set_mode(mode)` accepts `Mode.STATION`, `Mode.SOFTAP` or
  `Mode.SOFTAP_STATION`, or their integer values 1 to 3.
- `connect_wifi(ssid, password)` leaves any current network first, then joins
  the new one. The SSID must be 1 to 32 bytes long. The whole join command must
  stay under 128 bytes.
- `disconnect_wifi()` leaves the current access point.
- `set_auto_connect()` enables rejoining on power-up. It does not raise. If the
  module refuses, the returned message says so.

When a command fails, the method raises `Esp8266Error`. The error's `status` is
a `Status` value, and its `message` describes the failure. For example,
`connect_wifi` reports `Status.ERROR_WIFI_WRONG_PASSWORD`,
`Status.ERROR_WIFI_NOT_FOUND`, `Status.ERROR_WIFI_CONN_FAIL` or
`Status.ERROR_TIMEOUT`.

### Raw commands

`send_and_wait(command, timeout_ms)` writes a raw AT line and reads the reply
until one of these happens:

- the reply contains `\r\nOK\r\n`, `\r\nERROR\r\n` or `\r\nFAIL\r\n`;
- the time limit runs out.

It never raises. It returns a `Response` with these fields:

- `status`: the result of `parse_response` on the reply, or
  `Status.ERROR_UART` if the write failed, or `Status.ERROR_BUFFER_OVERFLOW` if
  the reply grows beyond 511 bytes.
- `data`: the reply text. It is empty when the reply is 256 bytes or longer.
- `data_length`: the number of bytes received.

`Response.ok` is true when the status is `Status.OK`. `send(command)` writes
the line and returns at once without reading anything.

## MQTT

```python
from espat.mqtt import MqttClient, parse_received_message

mqtt = MqttClient(device)
mqtt.configure("sensor-01")
mqtt.connect("broker.example.com", 1883)
mqtt.subscribe("home/temperature", 0)
mqtt.publish("home/status", "online", 0, 0)

message = parse_received_message('+MQTTSUBRECV:0,"home/temperature",4,21.5\r\n')
print(message.link_id, message.topic, message.message_length, message.message)
```

`MqttClient` uses the module's MQTT link 0. It provides these methods:

- `clean_session()`
- `configure(client_id)`
- `connect(broker, port)`
- `subscribe(topic, qos=0)`
- `unsubscribe(topic)`
- `publish(topic, message, qos=0, retain=0)`

Each returns a status message, or raises `Esp8266Error` with the module's
status. `publish` does not wait for the module's answer, so it fails only when
the line cannot be written. Commands that grow too long are cut to 199
characters, or 299 for `publish`.

`parse_received_message(raw_message)` expects the line to begin with
`+MQTTSUBRECV:`. It returns a `ReceivedMessage` with `link_id`, `topic`,
`message_length` and `message`. A trailing `\r\n` is removed from the payload,
and the payload is limited to 255 characters. A topic of 64 characters or
more comes back empty. The function raises `ValueError` in two cases: the
prefix is missing, or the line has fewer than four comma-separated fields.

## What it does not do

`espat` has no command-line tool and no background listener. Incoming
`+MQTTSUBRECV:` lines are not read from the serial line on their own. You need
to read them from your transport and pass them to `parse_received_message`.