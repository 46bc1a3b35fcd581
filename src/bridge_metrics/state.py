"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .adapters.base import BaseBridgeAdapter
from .settings import BridgeSettings


@dataclass
class AppState:
    """Container for application-wide state and dependencies.

    Passed through the pipeline to avoid global state and enable testing.
    """

    settings: BridgeSettings
    logger: logging.Logger
    adapter: BaseBridgeAdapter
