"""CLI tools for linkvault.

- ``python -m src.cli.links`` -- save, preview, list and ask about links,
  backfill missing embeddings, and mint bearer tokens.

Commands use argparse and build the same service graph as the API via
``src.main.build_services``; heavy imports are deferred until a command
needs them.
"""
