"""Ingestion helpers.

Everything that arrives over the websocket passes through
:mod:`heatfeed.ingestion.normalize` before it touches producer or
viewer state.
"""
