from __future__ import annotations

from .base import BaseBridgeAdapter, QuoteResult
from .http import HttpBridgeAdapter

__all__ = ["BaseBridgeAdapter", "HttpBridgeAdapter", "QuoteResult"]
