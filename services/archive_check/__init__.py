"""Archive check service.

Bulk Wayback Machine lookups for domains pasted as free text.

Components:
- Config: Batch, concurrency, retry, and endpoint settings (config.py)
- Models: Per-domain records and run statistics (models.py)
- Scanner: Batched, bounded-concurrency lookups (scanner.py)
- Export: CSV serialization (export.py)
- Service: Wires everything together (service.py)
"""
