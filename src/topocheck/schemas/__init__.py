"""Bundled JSON Schemas for topocheck documents."""
