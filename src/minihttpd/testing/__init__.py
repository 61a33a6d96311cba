"""Helpers for exercising the server in tests."""

from .helpers import ParsedResponse, ScriptedStream, parse_response, send_request

__all__ = ["ParsedResponse", "ScriptedStream", "parse_response", "send_request"]
