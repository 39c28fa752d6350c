# @file purpose: Definisce il modulo API per automazione Browserbase
#
# Questo modulo fornisce:
# - Server HTTP FastAPI con endpoint MCP e di automazione
# - Registro sessioni Playwright con teardown garantito
# - Pool di connessioni Browserbase per engine
# - Dispatcher di script e workflow Playwright

"""
Browserbase MCP API module for remote browser automation.

Provides HTTP REST API endpoints for:
- AI automation with Stagehand on Browserbase
- Scripted Playwright automation on pooled Browserbase connections
- Session introspection and health checks
"""
