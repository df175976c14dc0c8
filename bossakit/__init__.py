"""Shell commands, option parsing, text formatting and flash worker threads for SAM-BA tools."""

__version__ = "0.1.0"