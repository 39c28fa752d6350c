#!/usr/bin/env python3
"""
# @file purpose: Contesto di automazione Browserbase (Stagehand + Playwright)

Due percorsi di automazione:
- AI: azione in linguaggio naturale eseguita dall'agent Stagehand su Browserbase
- Avanzato: script Playwright su connessione Browserbase dal pool,
  in un context dedicato chiuso a fine richiesta
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field

from .config import ServiceConfig
from .errors import AutomationError
from .scripts import Script, ScriptDispatcher, snake_case_options
from .sessions import BrowserEngine, BrowserPool, SessionRegistry

logger = logging.getLogger(__name__)

AI_METHOD = "stagehand+browserbase"
ADVANCED_METHOD = "playwright+browserbase"
DEFAULT_VIEWPORT = {"width": 1920, "height": 1080}
DEFAULT_USER_AGENT = "BrowserbaseMCP/1.0"


class AutomationOptions(BaseModel):
    """Opzioni per il context del browser nell'automazione avanzata"""
    # null = valore di default
    browser_type: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("browserType", "browser_type")
    )
    viewport: Optional[Dict[str, int]] = None
    user_agent: Optional[str] = Field(None, validation_alias=AliasChoices("userAgent", "user_agent"))
    context_options: Optional[Dict[str, Any]] = Field(
        None,
        validation_alias=AliasChoices("contextOptions", "context_options")
    )


def build_stagehand(config: ServiceConfig) -> Any:
    """Crea il client Stagehand configurato per l'ambiente Browserbase"""
    from stagehand import Stagehand, StagehandConfig

    settings = {
        "env": "BROWSERBASE",
        "api_key": config.browserbase_api_key,
        "project_id": config.browserbase_project_id,
    }
    if config.model_name:
        settings["model_name"] = config.model_name
    if config.model_api_key:
        settings["model_api_key"] = config.model_api_key

    return Stagehand(StagehandConfig(**settings))


def _to_jsonable(value: Any) -> Any:
    """Converte i risultati Pydantic di Stagehand in dati JSON semplici"""
    if isinstance(value, BaseModel):
        return value.model_dump()
    return value


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class BrowserbaseAutomation:
    """Stato di processo: pool browser, registro sessioni, agent Stagehand"""

    def __init__(
        self,
        config: ServiceConfig,
        pool: Optional[BrowserPool] = None,
        registry: Optional[SessionRegistry] = None,
        dispatcher: Optional[ScriptDispatcher] = None,
        agent_factory: Optional[Callable[[ServiceConfig], Any]] = None
    ):
        self.config = config
        self.pool = pool or BrowserPool(config.ws_endpoint)
        self.registry = registry or SessionRegistry()
        self.dispatcher = dispatcher or ScriptDispatcher(
            allow_custom_scripts=config.allow_custom_scripts
        )
        self.agent_factory = agent_factory or build_stagehand
        self._agent: Optional[Any] = None

    async def get_agent(self) -> Any:
        """Agent Stagehand singleton, inizializzato al primo uso"""
        # Senza lock: due prime richieste concorrenti creano due agent e il primo resta aperto
        if self._agent is None:
            logger.info("🤖 Inizializzazione agent Stagehand su Browserbase")
            agent = self.agent_factory(self.config)
            await agent.init()
            self._agent = agent
        return self._agent

    async def ai_automation(
        self,
        action: str,
        url: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Esegue un'azione in linguaggio naturale con Stagehand"""
        agent = await self.get_agent()

        if url:
            await agent.page.goto(url)

        logger.info(f"🤖 Azione AI: {action}")
        result = await agent.page.act(action, **snake_case_options(options))

        return {
            "method": AI_METHOD,
            "action": action,
            "result": _to_jsonable(result),
            "undetectable": True,
            "timestamp": _now()
        }

    async def advanced_automation(
        self,
        script: Any,
        options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Esegue uno script Playwright in un context Browserbase dedicato"""
        if not isinstance(script, Script):
            script = Script.model_validate(script or {})
        if not isinstance(options, AutomationOptions):
            options = AutomationOptions.model_validate(options or {})

        browser_type = options.browser_type or BrowserEngine.CHROMIUM.value
        engine = BrowserEngine.parse(browser_type)
        browser = await self.pool.acquire(engine)

        context = await browser.new_context(**{
            "viewport": options.viewport or DEFAULT_VIEWPORT,
            "user_agent": options.user_agent or DEFAULT_USER_AGENT,
            **snake_case_options(options.context_options)
        })
        try:
            page = await context.new_page()
        except Exception:
            await context.close()
            raise

        async with self.registry.open(context, page) as session:
            try:
                result = await self.dispatcher.run(page, script)
            except Exception as e:
                logger.error(f"❌ Errore script {session.session_id}: {e}")
                raise AutomationError(
                    str(e),
                    method="playwright",
                    session_id=session.session_id
                ) from e

            return {
                "method": ADVANCED_METHOD,
                "browserType": browser_type,
                "sessionId": session.session_id,
                "script": script.name or "custom_script",
                "result": result,
                "undetectable": True,
                "timestamp": _now(),
                "duration": session.duration_ms
            }

    def active_sessions(self) -> List[str]:
        return self.registry.ids()

    async def cleanup(self):
        """Chiude agent e browser, svuota il registro sessioni"""
        if self._agent is not None:
            try:
                await self._agent.close()
            except Exception as e:
                logger.error(f"❌ Errore chiusura agent Stagehand: {e}")
            self._agent = None

        await self.pool.close_all()
        self.registry.clear()
        logger.info("🧹 Cleanup completato")
