#!/usr/bin/env python3
"""
# @file purpose: Dispatcher script Playwright e workflow di automazione

Ogni script è composto da un tipo e da un bundle di parametri:
- Il tipo seleziona il workflow dalla tabella di dispatch
- I parametri sono validati dal modello Pydantic del workflow
- Ogni workflow opera su una singola page, senza stato tra invocazioni
"""

import base64
import logging
import re
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type

from playwright.async_api import Page
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .errors import ScriptError, UnknownScriptTypeError

logger = logging.getLogger(__name__)

# Attesa fissa dopo ogni click in scrape_with_interaction
INTERACTION_DELAY_MS = 1000

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")

PERFORMANCE_METRICS_JS = """
() => {
    const navigation = performance.getEntriesByType('navigation')[0];
    const paint = performance.getEntriesByType('paint')[0];
    return {
        domContentLoaded: navigation
            ? navigation.domContentLoadedEventEnd - navigation.domContentLoadedEventStart
            : 0,
        load: navigation ? navigation.loadEventEnd - navigation.loadEventStart : 0,
        firstPaint: paint ? paint.startTime : 0
    };
}
"""


def snake_case_options(options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Converte le chiavi camelCase delle opzioni nei keyword argument Playwright.

    Solo le chiavi di primo livello: fullPage -> full_page,
    ignoreHTTPSErrors -> ignore_https_errors. Le chiavi già snake_case
    restano invariate.
    """
    converted = {}
    for key, value in (options or {}).items():
        name = _ACRONYM_BOUNDARY.sub(r"\1_\2", key)
        name = _WORD_BOUNDARY.sub(r"\1_\2", name)
        converted[name.lower()] = value
    return converted


class ScriptType(str, Enum):
    """Tipi di script supportati"""
    NAVIGATE_AND_INTERACT = "navigate_and_interact"
    SCRAPE_WITH_INTERACTION = "scrape_with_interaction"
    FORM_AUTOMATION = "form_automation"
    MULTI_PAGE_WORKFLOW = "multi_page_workflow"
    PERFORMANCE_TESTING = "performance_testing"
    CUSTOM = "custom"


class Script(BaseModel):
    """Script di automazione: tipo + parametri"""
    kind: str = Field(validation_alias=AliasChoices("kind", "type"))
    params: Dict[str, Any] = Field(default_factory=dict)
    name: Optional[str] = None


# Modelli parametri per tipo di script
class _Params(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Interaction(_Params):
    """Singolo step di interazione"""
    action: str
    selector: Optional[str] = None
    value: Optional[Any] = None
    options: Optional[Dict[str, Any]] = None


class NavigateAndInteractParams(_Params):
    url: str
    interactions: List[Interaction] = Field(default_factory=list)


class ClickInteraction(_Params):
    selector: str


class ScrapeWithInteractionParams(_Params):
    url: str
    selectors: Dict[str, str] = Field(default_factory=dict)
    interactions: Optional[List[ClickInteraction]] = None


class FormAutomationParams(_Params):
    url: str
    form_data: Dict[str, Any] = Field(default_factory=dict, alias="formData")
    submit_selector: Optional[str] = Field(None, alias="submitSelector")


class MultiPageWorkflowParams(_Params):
    workflow: List[Script] = Field(default_factory=list)


class PerformanceTestingParams(_Params):
    url: str


class CustomScriptParams(_Params):
    code: str
    args: Any = None


async def navigate_and_interact(page: Page, params: NavigateAndInteractParams) -> Dict[str, Any]:
    """Naviga e esegue la sequenza di interazioni"""
    await page.goto(params.url)
    await page.wait_for_load_state("networkidle")

    results = []

    for interaction in params.interactions:
        options = snake_case_options(interaction.options)

        if interaction.action == "click":
            await page.locator(interaction.selector).click(**options)
        elif interaction.action == "type":
            value = "" if interaction.value is None else str(interaction.value)
            await page.locator(interaction.selector).fill(value)
        elif interaction.action == "wait":
            await page.wait_for_selector(interaction.selector, **options)
        elif interaction.action == "screenshot":
            screenshot = await page.screenshot(**options)
            results.append({
                "action": interaction.action,
                "screenshot": base64.b64encode(screenshot).decode("ascii")
            })
        # Azioni sconosciute ignorate

    return {"url": params.url, "interactions": results}


async def scrape_with_interaction(page: Page, params: ScrapeWithInteractionParams) -> Dict[str, Any]:
    """Esegue i click richiesti ed estrae il testo dei selettori"""
    await page.goto(params.url)

    for interaction in params.interactions or []:
        await page.locator(interaction.selector).click()
        await page.wait_for_timeout(INTERACTION_DELAY_MS)

    data = {}
    for key, selector in params.selectors.items():
        data[key] = await page.locator(selector).text_content()

    return {"url": params.url, "data": data}


async def form_automation(page: Page, params: FormAutomationParams) -> Dict[str, Any]:
    """Compila un form ed eventualmente lo invia"""
    await page.goto(params.url)

    for selector, value in params.form_data.items():
        await page.locator(selector).fill(str(value))

    if params.submit_selector:
        await page.locator(params.submit_selector).click()
        await page.wait_for_load_state("networkidle")

    return {"url": params.url, "formSubmitted": True}


async def performance_testing(page: Page, params: PerformanceTestingParams) -> Dict[str, Any]:
    """Misura il tempo di caricamento e le metriche di navigation/paint"""
    start = time.perf_counter()
    await page.goto(params.url)
    load_time = int((time.perf_counter() - start) * 1000)

    metrics = await page.evaluate(PERFORMANCE_METRICS_JS) or {}

    return {
        "url": params.url,
        "loadTime": load_time,
        "metrics": {
            "domContentLoaded": metrics.get("domContentLoaded") or 0,
            "load": metrics.get("load") or 0,
            "firstPaint": metrics.get("firstPaint") or 0,
        }
    }


Handler = Callable[[Page, Any], Awaitable[Any]]


class ScriptDispatcher:
    """
    Esegue uno script sulla page scegliendo il workflow dal suo tipo.

    Il codice degli script custom gira senza sandbox nel contesto della
    pagina remota; allow_custom_scripts=False lo disabilita.
    """

    def __init__(self, allow_custom_scripts: bool = True):
        self.allow_custom_scripts = allow_custom_scripts
        self._handlers: Dict[ScriptType, Tuple[Type[BaseModel], Handler]] = {
            ScriptType.NAVIGATE_AND_INTERACT: (NavigateAndInteractParams, navigate_and_interact),
            ScriptType.SCRAPE_WITH_INTERACTION: (ScrapeWithInteractionParams, scrape_with_interaction),
            ScriptType.FORM_AUTOMATION: (FormAutomationParams, form_automation),
            ScriptType.MULTI_PAGE_WORKFLOW: (MultiPageWorkflowParams, self.multi_page_workflow),
            ScriptType.PERFORMANCE_TESTING: (PerformanceTestingParams, performance_testing),
            ScriptType.CUSTOM: (CustomScriptParams, self.custom_script),
        }

    async def run(self, page: Page, script: Any) -> Any:
        """Valida lo script ed esegue il workflow corrispondente"""
        if not isinstance(script, Script):
            script = Script.model_validate(script)

        try:
            kind = ScriptType(script.kind)
        except ValueError:
            raise UnknownScriptTypeError(script.kind)

        params_model, handler = self._handlers[kind]
        params = params_model.model_validate(script.params)

        logger.info(f"🎯 Esecuzione script: {kind.value}")
        return await handler(page, params)

    async def multi_page_workflow(self, page: Page, params: MultiPageWorkflowParams) -> Dict[str, Any]:
        """Esegue in ordine i sotto-script sulla stessa page"""
        results = []
        for step in params.workflow:
            results.append(await self.run(page, step))
        return {"workflow": results}

    async def custom_script(self, page: Page, params: CustomScriptParams) -> Dict[str, Any]:
        """Valuta codice JavaScript arbitrario nella page, con args come parametro"""
        if not self.allow_custom_scripts:
            raise ScriptError("Custom scripts are disabled")

        result = await page.evaluate(f"(args) => {{\n{params.code}\n}}", params.args)
        return {"custom": True, "result": result}
