#!/usr/bin/env python3
"""
# @file purpose: Configurazione da environment per il servizio Browserbase MCP

Legge le variabili d'ambiente del servizio:
- Credenziali Browserbase (API key, project id)
- Parametri di ascolto HTTP (host, porta)
- CORS, API key opzionale del servizio, modello Stagehand
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlencode

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_URL = "wss://connect.browserbase.com"
DEFAULT_PORT = 3000


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


@dataclass
class ServiceConfig:
    """Configurazione del servizio"""
    browserbase_api_key: Optional[str] = None
    browserbase_project_id: Optional[str] = None
    connect_url: str = DEFAULT_CONNECT_URL
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    service_api_key: Optional[str] = None
    model_name: Optional[str] = None
    model_api_key: Optional[str] = None
    allow_custom_scripts: bool = True

    @property
    def ws_endpoint(self) -> str:
        """Endpoint WebSocket autenticato per Playwright"""
        query = urlencode({
            "apiKey": self.browserbase_api_key or "",
            "projectId": self.browserbase_project_id or "",
        })
        return f"{self.connect_url}?{query}"

    @property
    def has_credentials(self) -> bool:
        return bool(self.browserbase_api_key and self.browserbase_project_id)


def load_config(env_file: Optional[str] = ".env") -> ServiceConfig:
    """Costruisce la configurazione dalle variabili d'ambiente (e dal file .env)"""

    # Le variabili già presenti nell'ambiente hanno la precedenza sul .env
    if env_file:
        load_dotenv(env_file)

    config = ServiceConfig(
        browserbase_api_key=os.environ.get("BROWSERBASE_API_KEY"),
        browserbase_project_id=os.environ.get("BROWSERBASE_PROJECT_ID"),
        connect_url=os.environ.get("BROWSERBASE_CONNECT_URL", DEFAULT_CONNECT_URL),
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", DEFAULT_PORT)),
        allowed_origins=[
            origin.strip()
            for origin in os.environ.get("ALLOWED_ORIGINS", "*").split(",")
            if origin.strip()
        ],
        service_api_key=os.environ.get("BROWSERBASE_MCP_API_KEY") or None,
        model_name=os.environ.get("STAGEHAND_MODEL_NAME") or None,
        model_api_key=os.environ.get("MODEL_API_KEY") or None,
        allow_custom_scripts=_env_flag("ALLOW_CUSTOM_SCRIPTS", True),
    )

    # Health check deve funzionare anche senza credenziali
    if not config.has_credentials:
        logger.warning(
            "⚠️ BROWSERBASE_API_KEY/BROWSERBASE_PROJECT_ID non impostate - "
            "le automazioni falliranno"
        )

    return config
