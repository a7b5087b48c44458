"""
Shared, cross-cutting code for the API.

`core/` holds small building blocks: settings, logging, the error taxonomy,
DB wiring and the enrichment HTTP client. Plate SQL and the batch workflow
live in `plates/`.
"""
