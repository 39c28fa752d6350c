"""
# @file purpose: Eccezioni del servizio Browserbase MCP
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class BrowserbaseMCPError(Exception):
    """Errore base del servizio"""


class UnknownToolError(BrowserbaseMCPError):
    """Tool MCP non riconosciuto"""

    def __init__(self, tool: Any):
        self.tool = tool
        super().__init__(f"Unknown tool: {tool}")


class ScriptError(BrowserbaseMCPError):
    """Errore nella definizione o esecuzione di uno script"""


class UnknownScriptTypeError(ScriptError):
    """Tipo di script non presente nella tabella di dispatch"""

    def __init__(self, kind: Any):
        self.kind = kind
        super().__init__(f"Unknown script type: {kind}")


class AutomationError(BrowserbaseMCPError):
    """Errore di automazione con metodo e sessione di provenienza"""

    def __init__(
        self,
        message: str,
        method: str,
        session_id: Optional[str] = None,
        timestamp: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.method = method
        self.session_id = session_id
        self.timestamp = timestamp or datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "session_id": self.session_id,
            "error": self.message,
            "timestamp": self.timestamp,
        }
