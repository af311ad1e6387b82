"""
Shared, cross-cutting code for the gateway.

`core/` holds small building blocks used by the feature packages (settings,
logging, the Keycloak HTTP client). Request orchestration and response shaping
live in `identity/`.
"""
