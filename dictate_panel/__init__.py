"""
Dictate Panel - control surface for a background dictation agent

Edit the agent's configuration, follow its recording state and send it
commands through a small command/event boundary.
"""

__version__ = "1.0.0"

from dictate_panel.config import Config
from dictate_panel.controller import PanelController

__all__ = ["PanelController", "Config", "__version__"]
