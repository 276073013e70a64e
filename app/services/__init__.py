"""Provider clients and services used by the media search API."""
