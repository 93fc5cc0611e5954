"""Core (UI-agnostic) vehicle status dashboard logic.

This package contains:
- row batch types and loaders (Sheets batchGet payloads, XLSX -> batch)
- text/date normalization and row classification
- the two-pass aggregation pipeline and its view builders
- chart helpers (Altair -> Vega-Lite spec dict)
"""
