"""Core (UI-agnostic) dashboard logic.

This package contains:
- settings and data loading (catalog + per-entry indices over HTTP)
- typed test-run records
- filter normalization and the filter engine
- summary / trend compute functions (JSON-serializable payloads)
- card and detail payloads, the list/detail view router
- chart helpers (Altair -> Vega-Lite spec dict)
"""
