"""Structured field names shared by log context and formatters."""

# Core fields emitted on every JSON line.
TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EXCEPTION = "exception"
SERVICE = "service"

# Scenario fields bound while a run is in progress.
INPUT_FILE = "input_file"
OUTPUT_FILE = "output_file"
LINE_NUMBER = "line_number"
COMMAND = "command"
