#!/usr/bin/env python3
"""
# @file purpose: Registro sessioni e pool connessioni browser remote

Gestione dello stato di processo per l'automazione avanzata:
- Registro sessioni (context + page) con teardown garantito
- Pool di connessioni Browserbase, una per engine, create on-demand

Le mappe sono condivise senza lock: l'event loop asyncio non interrompe
mai una sezione sincrona.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

logger = logging.getLogger(__name__)


class BrowserEngine(str, Enum):
    """Engine browser supportati da Browserbase"""
    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"

    @classmethod
    def parse(cls, tag: Optional[str]) -> "BrowserEngine":
        """Converte un tag in engine, fallback su chromium"""
        try:
            return cls(tag)
        except ValueError:
            return cls.CHROMIUM


@dataclass
class Session:
    """Sessione browser legata a una singola richiesta"""
    session_id: str
    context: BrowserContext
    page: Page
    start_time: float

    @property
    def duration_ms(self) -> int:
        return int((time.time() - self.start_time) * 1000)


class SessionRegistry:
    """Registro in memoria delle sessioni attive"""

    def __init__(self):
        self.sessions: Dict[str, Session] = {}

    @staticmethod
    def new_session_id() -> str:
        return f"session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"

    def create(self, context: BrowserContext, page: Page) -> str:
        """Registra una nuova sessione e ne restituisce l'id"""
        session_id = self.new_session_id()
        self.sessions[session_id] = Session(
            session_id=session_id,
            context=context,
            page=page,
            start_time=time.time()
        )
        logger.info(f"🔄 Sessione creata: {session_id}")
        return session_id

    def get(self, session_id: str) -> Optional[Session]:
        return self.sessions.get(session_id)

    async def delete(self, session_id: str) -> bool:
        """Chiude il context della sessione e la rimuove dal registro"""
        session = self.sessions.get(session_id)
        if session is None:
            return False

        try:
            await session.context.close()
        except Exception as e:
            logger.error(f"❌ Errore chiusura context {session_id}: {e}")
        finally:
            self.sessions.pop(session_id, None)

        logger.info(f"🧹 Sessione chiusa: {session_id}")
        return True

    @asynccontextmanager
    async def open(self, context: BrowserContext, page: Page) -> AsyncIterator[Session]:
        """Sessione con teardown garantito su ogni percorso di uscita"""
        session_id = self.create(context, page)
        try:
            yield self.sessions[session_id]
        finally:
            await self.delete(session_id)

    def ids(self) -> List[str]:
        return list(self.sessions.keys())

    def clear(self):
        self.sessions.clear()

    def __len__(self) -> int:
        return len(self.sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self.sessions


class BrowserPool:
    """
    Pool di connessioni Browserbase, una per engine.

    La connessione viene aperta al primo acquire e riusata per tutto
    il ciclo di vita del processo. Nessun health-check o reconnect.
    """

    def __init__(self, ws_endpoint: str, playwright: Optional[Playwright] = None):
        self.ws_endpoint = ws_endpoint
        self.browsers: Dict[str, Browser] = {}
        self._playwright = playwright
        self._owns_playwright = playwright is None

    @staticmethod
    def pool_key(engine: BrowserEngine) -> str:
        return f"{engine.value}_browserbase"

    async def _get_playwright(self) -> Any:
        if self._playwright is None:
            logger.info("🎭 Avvio driver Playwright")
            self._playwright = await async_playwright().start()
        return self._playwright

    async def acquire(self, engine: Any = BrowserEngine.CHROMIUM) -> Browser:
        """Restituisce la connessione per l'engine, creandola se serve"""
        if not isinstance(engine, BrowserEngine):
            engine = BrowserEngine.parse(engine)

        key = self.pool_key(engine)
        if key not in self.browsers:
            playwright = await self._get_playwright()
            browser_type = getattr(playwright, engine.value)

            logger.info(f"🌐 Connessione Browserbase ({engine.value})")
            self.browsers[key] = await browser_type.connect(self.ws_endpoint)
            logger.info(f"✅ Browser connesso: {key}")

        return self.browsers[key]

    async def close_all(self):
        """Chiude tutte le connessioni; gli errori vengono solo loggati"""
        for key, browser in list(self.browsers.items()):
            try:
                await browser.close()
                logger.info(f"🧹 Browser chiuso: {key}")
            except Exception as e:
                logger.error(f"❌ Errore chiusura browser {key}: {e}")
        self.browsers.clear()

        if self._owns_playwright and self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.error(f"❌ Errore arresto Playwright: {e}")
            self._playwright = None

    def keys(self) -> List[str]:
        return list(self.browsers.keys())
