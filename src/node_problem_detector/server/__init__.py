"""Detector HTTP API."""

from node_problem_detector.server.app import basic_auth_header, create_app

__all__ = ["basic_auth_header", "create_app"]
