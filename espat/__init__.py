"""Drive an ESP8266 module's Wi-Fi and MQTT client through AT commands."""

__version__ = "0.1.0"
__all__ = ["esp8266", "mqtt"]