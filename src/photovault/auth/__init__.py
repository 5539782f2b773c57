"""Requester identity for the HTTP layer."""

from .identity import RequesterTokens, get_requester_id

__all__ = ["RequesterTokens", "get_requester_id"]
