#!/usr/bin/env python3
"""
# @file purpose: Server HTTP FastAPI per automazione Browserbase

Server HTTP REST API che instrada le richieste di automazione verso:
- Stagehand + Browserbase (azioni AI in linguaggio naturale)
- Playwright + Browserbase (script con controllo completo)
- Endpoint MCP unificato, introspezione sessioni, health check
"""

import argparse
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .automation import BrowserbaseAutomation
from .config import ServiceConfig, load_config
from .errors import AutomationError, UnknownToolError
from .scripts import Script

# Configurazione logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SERVICE_NAME = "browserbase-mcp-enhanced"
CAPABILITIES = ["stagehand", "playwright"]


# Modelli Pydantic per API
class McpRequest(BaseModel):
    """Richiesta al tool MCP unificato"""
    tool: str
    params: Dict[str, Any] = Field(default_factory=dict)


class AiAutomationRequest(BaseModel):
    """Richiesta di automazione AI"""
    action: str
    url: Optional[str] = None
    options: Optional[Dict[str, Any]] = None


class AdvancedAutomationRequest(BaseModel):
    """Richiesta di automazione avanzata"""
    script: Script
    options: Optional[Dict[str, Any]] = None


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def error_response(error: Any, status_code: int = 500) -> JSONResponse:
    """Envelope JSON uniforme per gli errori"""
    if isinstance(error, AutomationError):
        body = {"success": False, **error.to_dict()}
    else:
        body = {"success": False, "error": str(error), "timestamp": _timestamp()}
    return JSONResponse(status_code=status_code, content=body)


def get_automation(request: Request) -> BrowserbaseAutomation:
    return request.app.state.automation


# Dependency per verifica API key (attiva solo se configurata)
async def verify_api_key(request: Request, x_api_key: Optional[str] = Header(None)):
    """Verifica API key"""
    expected = request.app.state.config.service_api_key
    if not expected:
        return True
    if x_api_key is None:
        raise HTTPException(status_code=401, detail="Missing API key header")
    if x_api_key != expected:
        raise HTTPException(status_code=403, detail="Invalid API key")
    return True


async def run_tool(automation: BrowserbaseAutomation, tool: str, params: Dict[str, Any]) -> Any:
    """Instrada un tool MCP verso il percorso di automazione corrispondente"""
    if tool == "ai_automation":
        request = AiAutomationRequest.model_validate(params)
        return await automation.ai_automation(request.action, request.url, request.options)

    if tool == "advanced_automation":
        request = AdvancedAutomationRequest.model_validate(params)
        return await automation.advanced_automation(request.script, request.options)

    raise UnknownToolError(tool)


def create_app(
    config: Optional[ServiceConfig] = None,
    automation: Optional[BrowserbaseAutomation] = None
) -> FastAPI:
    """Costruisce l'applicazione FastAPI con il suo contesto di automazione"""
    config = config or load_config()
    automation = automation or BrowserbaseAutomation(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"🚀 {SERVICE_NAME} avviato")
        yield
        # Shutdown (SIGTERM/SIGINT gestiti da uvicorn)
        logger.info("🛑 Arresto in corso, cleanup risorse...")
        await app.state.automation.cleanup()

    app = FastAPI(
        title="Browserbase MCP Enhanced",
        description="API REST per automazione browser su Browserbase",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.config = config
    app.state.automation = automation

    # Configura CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
            for error in exc.errors()
        )
        return error_response(f"Invalid request: {details}")

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        return error_response(exc.detail, status_code=exc.status_code)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "capabilities": CAPABILITIES,
            "timestamp": _timestamp()
        }

    @app.post("/mcp")
    async def mcp_endpoint(
        request: McpRequest,
        automation: BrowserbaseAutomation = Depends(get_automation),
        authorized: bool = Depends(verify_api_key)
    ):
        """Endpoint MCP unificato"""
        try:
            result = await run_tool(automation, request.tool, request.params)
            return {"success": True, "result": result}
        except Exception as e:
            logger.error(f"❌ Errore tool {request.tool}: {e}")
            return error_response(e)

    @app.post("/automation/ai")
    async def ai_automation(
        request: AiAutomationRequest,
        automation: BrowserbaseAutomation = Depends(get_automation),
        authorized: bool = Depends(verify_api_key)
    ):
        """Automazione AI (Stagehand + Browserbase)"""
        try:
            return await automation.ai_automation(request.action, request.url, request.options)
        except Exception as e:
            logger.error(f"❌ Errore automazione AI: {e}")
            return error_response(e)

    @app.post("/automation/advanced")
    async def advanced_automation(
        request: AdvancedAutomationRequest,
        automation: BrowserbaseAutomation = Depends(get_automation),
        authorized: bool = Depends(verify_api_key)
    ):
        """Automazione avanzata (Playwright + Browserbase)"""
        try:
            return await automation.advanced_automation(request.script, request.options)
        except Exception as e:
            logger.error(f"❌ Errore automazione avanzata: {e}")
            return error_response(e)

    @app.get("/sessions")
    async def list_sessions(
        automation: BrowserbaseAutomation = Depends(get_automation),
        authorized: bool = Depends(verify_api_key)
    ):
        """Elenca le sessioni attive"""
        return {"active_sessions": automation.active_sessions()}

    return app


app = create_app()


# Funzione per avvio server
def run_server(
    host: Optional[str] = None,
    port: Optional[int] = None,
    reload: bool = False
):
    """Avvia il server FastAPI"""
    config = app.state.config
    host = host or config.host
    port = port or config.port

    logger.info(f"🚀 Avvio Browserbase MCP su {host}:{port}")
    logger.info("🤖 AI automation (Stagehand+BB): POST /automation/ai")
    logger.info("🎯 Advanced automation (Playwright+BB): POST /automation/advanced")
    logger.info("❤️ Health check: GET /health")

    uvicorn.run(
        "browserbase_mcp.api.server:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info"
    )


def main(argv: Optional[List[str]] = None):
    """Entry point da riga di comando"""
    parser = argparse.ArgumentParser(description="Browserbase MCP Enhanced Server")
    parser.add_argument("--host", default=None, help="Host address")
    parser.add_argument("--port", type=int, default=None, help="Port number")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args(argv)

    run_server(host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
