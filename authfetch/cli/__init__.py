"""CLI module for authfetch."""
