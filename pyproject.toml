[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "espat"
version = "0.1.0"
description = "Drive an ESP8266 Wi-Fi module and its MQTT client over the AT command set on a serial line."
requires-python = ">=3.10"
dependencies = [
    "pyserial",
]
keywords = ["esp8266", "at-commands", "wifi", "mqtt", "serial", "uart"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications",
    "Topic :: Terminals :: Serial",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["espat"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
