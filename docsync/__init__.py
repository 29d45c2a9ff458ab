"""docsync: keeps editor documents in sync with a language server."""
