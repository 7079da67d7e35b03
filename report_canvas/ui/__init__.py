"""Dash adapter: layout builders and callback registration."""
