# relay_indexer/cli/commands/__init__.py
