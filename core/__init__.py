"""Core (UI-agnostic) dashboard logic.

This package contains:
- data loading (CSV URL / file -> pandas)
- date key normalization
- country / city catalog and selection normalization
- per-city series assembly (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
