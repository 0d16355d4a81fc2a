"""Client module - Document store API, sync state, and synchronizer."""
