"""CLI tools for the job openings service.

- ``python -m src.cli.ingest`` -- index JSON job openings, query the index,
  and delete vector records by content hash.
"""
