"""OpenAI Responses API connector for conversational test harnesses."""

from gptconnector.config.capabilities import Capabilities, plugin_capabilities
from gptconnector.core.connector import Connector

__version__ = "0.1.0"

PLUGIN_VERSION = 1
PluginClass = Connector
PLUGIN_DESC = {
    "name": "ChatGPT (OpenAI Responses API)",
    "provider": "OpenAI",
    "capabilities": plugin_capabilities(),
}

__all__ = ["Capabilities", "Connector", "PLUGIN_DESC", "PLUGIN_VERSION", "PluginClass"]
