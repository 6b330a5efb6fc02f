"""HTTP API: routes, request/response models and dependencies."""
