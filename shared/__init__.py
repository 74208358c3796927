"""
Shared utilities for the Venue service.

This package aggregates common building blocks:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Tagged error types and responses
- base_service: FastAPI application scaffolding

Do not import from service_* packages into shared/.
"""
