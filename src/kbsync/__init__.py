"""kbsync - Mirror a directory of documents into an AnythingLLM workspace."""

__version__ = "0.1.0"
