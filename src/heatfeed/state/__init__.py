"""State layer.

Each side of the feed owns exactly one piece of mutable state: the
producer its :class:`~heatfeed.state.intensity.IntensityState`, the
viewer its :class:`~heatfeed.state.overlay.HeatOverlay`.
"""
