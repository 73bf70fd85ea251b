"""Classifieds marketplace REST backend."""
